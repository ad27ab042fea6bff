# app/api/v1/places.py
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
import logging

from ...database import get_db
from ...schemas.church import ChurchOut
from ...services import places as place_service
from ...utils import response
from ...utils.controller import handle_service_error, parse_id

logger = logging.getLogger(__name__)

router = APIRouter()

# Mounted at /churches
churches_router = APIRouter()


def _parse_near(near: Optional[str]):
    """'lat,lng' -> (lat, lng); 400 on anything else"""
    if not near:
        return None
    try:
        lat, lng = (float(part) for part in near.split(","))
    except ValueError:
        response.bad_request('near must be "lat,lng"')
    if not (-90 <= lat <= 90 and -180 <= lng <= 180):
        response.bad_request("near is out of range")
    return lat, lng


@router.get("/suggest")
async def suggest_places(
    q: Optional[str] = None,
    near: Optional[str] = None,
    radius: Optional[float] = None,
    limit: int = 10,
    source: str = "combined",
    country: Optional[str] = None,
    db: Session = Depends(get_db),
):
    try:
        if not q or len(q.strip()) < 2:
            response.bad_request("Query must be at least 2 characters")
        if limit < 1 or limit > place_service.MAX_SUGGESTIONS:
            response.bad_request(f"limit must be between 1 and {place_service.MAX_SUGGESTIONS}")
        if source not in place_service.SOURCES:
            response.bad_request(f"source must be one of: {', '.join(place_service.SOURCES)}")
        if radius is not None and radius <= 0:
            response.bad_request("radius must be positive")

        result = await place_service.suggest(
            db, q, near=_parse_near(near), radius=radius, limit=limit, source=source, country=country
        )
        return response.success(response.camelize(result), "Suggestions retrieved successfully")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to suggest places", q=q)


@churches_router.get("/{church_id}")
def get_church(church_id: str, db: Session = Depends(get_db)):
    try:
        church = place_service.get_church_with_branches(db, parse_id(church_id, "church ID"))
        if church is None:
            response.not_found("Church not found")
        return response.success(ChurchOut.model_validate(church), "Church retrieved successfully")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to retrieve church", church_id=church_id)
