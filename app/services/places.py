"""
Church and branch suggestions.

Internal matches are scored on name similarity, distance from an optional
`near` point and verification. Mapbox POIs fill the remaining slots when a
token is configured. Results are de-duplicated on name and address,
preferring internal entries.
"""

import asyncio
import logging
import math
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote

import aiohttp
from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload
from starlette.concurrency import run_in_threadpool

from ..config import settings
from ..models.church import Church, ChurchBranch
from ..utils.errors import ExternalServiceError
from ..utils.query import LIKE_ESCAPE, escape_like

logger = logging.getLogger(__name__)

EARTH_RADIUS_M = 6371000
DEFAULT_RADIUS_M = 50000
MAX_SUGGESTIONS = 20
SOURCES = ("internal", "mapbox", "combined")

LatLng = Tuple[float, float]


@dataclass
class PlaceResult:
    id: str
    type: str  # church | branch
    name: str
    source: str  # internal | mapbox
    address: Dict[str, Optional[str]] = field(default_factory=dict)
    location: Optional[Dict[str, float]] = None
    parent_church: Optional[Dict[str, Any]] = None
    confidence: float = 0.0
    distance_meters: Optional[float] = None
    verified: bool = False

    def to_dict(self) -> dict:
        return asdict(self)


def haversine_meters(a: LatLng, b: LatLng) -> float:
    lat1, lng1 = map(math.radians, a)
    lat2, lng2 = map(math.radians, b)
    d_lat = lat2 - lat1
    d_lng = lng2 - lng1
    h = math.sin(d_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lng / 2) ** 2
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def proximity_score(distance: Optional[float], radius: float) -> float:
    """1 at the point, decaying exponentially to e^-3 at the radius"""
    if distance is None or not math.isfinite(distance) or distance < 0:
        return 0.0
    d = min(distance, radius)
    return max(0.0, min(1.0, math.exp(-3 * d / max(1.0, radius))))


def text_score(name: str, query: str, aliases: Optional[List[str]] = None) -> float:
    q = query.strip().lower()
    n = (name or "").lower()
    if n == q:
        return 1.0
    if n.startswith(q):
        return 0.9
    if q in n:
        return 0.75
    if aliases and any(q in (alias or "").lower() for alias in aliases):
        return 0.7

    # Share of query characters found in order
    idx = 0
    for ch in n:
        if idx < len(q) and ch == q[idx]:
            idx += 1
        if idx == len(q):
            break
    return idx / max(1, len(q)) * 0.6


def _confidence(text: float, proximity: float, verified: bool) -> float:
    return 0.6 * text + 0.3 * proximity + 0.1 * (0.15 if verified else 0)


def _located(obj) -> Optional[LatLng]:
    if obj.latitude is None or obj.longitude is None:
        return None
    return obj.latitude, obj.longitude


def _internal_results(db: Session, q: str, near: Optional[LatLng], radius: float) -> List[PlaceResult]:
    pattern = f"%{escape_like(q)}%"
    branches = (
        db.query(ChurchBranch)
        .options(selectinload(ChurchBranch.church))
        .filter(ChurchBranch.is_active.is_(True))
        .filter(or_(ChurchBranch.name.ilike(pattern, escape=LIKE_ESCAPE), ChurchBranch.address.ilike(pattern, escape=LIKE_ESCAPE)))
        .limit(50)
        .all()
    )
    churches = (
        db.query(Church)
        .filter(Church.is_active.is_(True))
        .filter(or_(Church.name.ilike(pattern, escape=LIKE_ESCAPE), Church.address.ilike(pattern, escape=LIKE_ESCAPE)))
        .limit(30)
        .all()
    )

    results = []
    for branch in branches:
        location = _located(branch)
        distance = haversine_meters(near, location) if near and location else None
        parent = branch.church
        score = _confidence(
            text_score(f"{branch.name} {parent.name if parent else ''}", q),
            proximity_score(distance, radius) if near and location else 0.0,
            bool(branch.is_verified),
        )
        results.append(PlaceResult(
            id=str(branch.id),
            type="branch",
            name=branch.name,
            source="internal",
            address={"line1": branch.address, "state": branch.state},
            location={"lat": location[0], "lng": location[1]} if location else None,
            parent_church={"id": str(parent.id), "name": parent.name} if parent else None,
            confidence=score,
            distance_meters=distance,
            verified=bool(branch.is_verified),
        ))

    for church in churches:
        location = _located(church)
        distance = haversine_meters(near, location) if near and location else None
        score = _confidence(
            text_score(church.name, q, church.aliases),
            proximity_score(distance, radius) if near and location else 0.0,
            bool(church.is_verified),
        )
        results.append(PlaceResult(
            id=str(church.id),
            type="church",
            name=church.name,
            source="internal",
            address={"line1": church.address, "state": church.state},
            location={"lat": location[0], "lng": location[1]} if location else None,
            confidence=score,
            distance_meters=distance,
            verified=bool(church.is_verified),
        ))
    return results


def _context(feature: dict, prefix: str, key: str = "text") -> Optional[str]:
    for entry in feature.get("context") or []:
        if str(entry.get("id", "")).startswith(prefix):
            return entry.get(key)
    return None


def normalize_mapbox_feature(feature: dict, q: str, near: Optional[LatLng], radius: float) -> Optional[PlaceResult]:
    """None for POIs that are not churches or places of worship"""
    properties = feature.get("properties") or {}
    categories = str(properties.get("category") or properties.get("category_en") or "").lower()
    if "church" not in categories and "place_of_worship" not in categories:
        return None

    center = feature.get("center")
    location = (center[1], center[0]) if isinstance(center, list) and len(center) == 2 else None
    distance = haversine_meters(near, location) if near and location else None
    name = feature.get("text") or feature.get("text_en") or feature.get("place_name") or ""
    country = _context(feature, "country", "short_code")

    return PlaceResult(
        id=str(feature.get("id")),
        type="branch",
        name=name,
        source="mapbox",
        address={
            "line1": properties.get("address") or feature.get("address"),
            "city": _context(feature, "place"),
            "state": _context(feature, "region"),
            "postal_code": _context(feature, "postcode"),
            "country_code": country.upper() if country else None,
        },
        location={"lat": location[0], "lng": location[1]} if location else None,
        confidence=text_score(name, q),
        distance_meters=distance,
    )


async def fetch_mapbox(q: str, limit: int, near: Optional[LatLng], country: Optional[str]) -> List[dict]:
    params = {"access_token": settings.MAPBOX_ACCESS_TOKEN, "limit": min(limit, 10), "types": "poi"}
    if near:
        params["proximity"] = f"{near[1]},{near[0]}"
    if country:
        params["country"] = country

    url = f"{settings.MAPBOX_API_URL}/{quote(q)}.json"
    timeout = aiohttp.ClientTimeout(total=7)
    try:
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.get(url, params=params) as response:
                response.raise_for_status()
                body = await response.json(content_type=None)
    except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
        raise ExternalServiceError(f"Mapbox request failed: {e!r}") from e

    features = body.get("features") if isinstance(body, dict) else None
    if not isinstance(features, list):
        raise ExternalServiceError("Mapbox returned no feature list")
    return [f for f in features if isinstance(f, dict)]


def dedupe(results: List[PlaceResult]) -> List[PlaceResult]:
    seen: Dict[str, PlaceResult] = {}
    for result in results:
        address = result.address
        key = "|".join([
            result.name.lower(),
            address.get("line1") or "",
            address.get("city") or "",
            address.get("state") or "",
        ])
        existing = seen.get(key)
        if existing is None or (
            (existing.source == "mapbox" and result.source == "internal")
            or result.confidence > existing.confidence
        ):
            seen[key] = result
    return list(seen.values())


def _rank(result: PlaceResult):
    return (
        -result.confidence,
        0 if result.source == "internal" else 1,
        result.distance_meters if result.distance_meters is not None else math.inf,
    )


async def suggest(
    db: Session,
    q: str,
    near: Optional[LatLng] = None,
    radius: Optional[float] = None,
    limit: int = 10,
    source: str = "combined",
    country: Optional[str] = None,
) -> Dict[str, Any]:
    q = q.strip()
    if len(q) < 2:
        return {"source": source, "results": []}

    radius = radius or DEFAULT_RADIUS_M
    limit = max(1, min(limit, MAX_SUGGESTIONS))

    results: List[PlaceResult] = []
    if source in ("internal", "combined"):
        results = await run_in_threadpool(_internal_results, db, q, near, radius)

    if source in ("mapbox", "combined") and len(results) < limit and settings.is_mapbox_enabled:
        try:
            features = await fetch_mapbox(q, limit - len(results), near, country)
            results.extend(
                r for r in (normalize_mapbox_feature(f, q, near, radius) for f in features) if r is not None
            )
        except ExternalServiceError as e:
            logger.warning(f"⚠️ Mapbox lookup failed for '{q}': {e}")

    ranked = sorted(dedupe(results), key=_rank)[:limit]
    return {"source": source, "results": [r.to_dict() for r in ranked]}


def get_church_with_branches(db: Session, church_id: int) -> Optional[Church]:
    return (
        db.query(Church)
        .options(selectinload(Church.branches))
        .filter(Church.id == church_id)
        .first()
    )
