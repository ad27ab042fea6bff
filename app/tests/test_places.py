import asyncio
import math

import aiohttp
import pytest

from app.config import settings
from app.models.church import Church, ChurchBranch
from app.services.places import (
    PlaceResult,
    dedupe,
    haversine_meters,
    normalize_mapbox_feature,
    proximity_score,
    text_score,
)
from app.tests.helpers import FakeHTTPSession

LAGOS = (6.5244, 3.3792)
ABUJA = (9.0765, 7.3986)


@pytest.fixture
def churches(db):
    rccg = Church(name="Redeemed Christian Church of God", aliases=["RCCG"], address="Redemption Camp",
                  state="Ogun", latitude=6.8, longitude=3.45, is_verified=True)
    db.add(rccg)
    db.flush()
    db.add_all([
        ChurchBranch(church_id=rccg.id, name="RCCG Lagos Central", address="Ikeja", state="Lagos",
                     latitude=6.6, longitude=3.35, is_verified=True),
        ChurchBranch(church_id=rccg.id, name="RCCG Abuja Parish", address="Wuse", state="FCT",
                     latitude=9.07, longitude=7.4),
    ])
    db.commit()
    return rccg


def test_haversine_known_distance():
    # Lagos to Abuja is roughly 525 km
    assert haversine_meters(LAGOS, ABUJA) == pytest.approx(525000, rel=0.02)
    assert haversine_meters(LAGOS, LAGOS) == 0


def test_proximity_score_decays():
    assert proximity_score(0, 50000) == 1.0
    assert proximity_score(50000, 50000) == pytest.approx(math.exp(-3))
    assert proximity_score(None, 50000) == 0.0
    assert proximity_score(100000, 50000) == proximity_score(50000, 50000)


@pytest.mark.parametrize(
    "name, query, aliases, expected",
    [
        ("Grace Chapel", "grace chapel", None, 1.0),
        ("Grace Chapel", "grace", None, 0.9),
        ("House of Grace", "grace", None, 0.75),
        ("Redeemed Christian Church of God", "rccg", ["RCCG"], 0.7),
    ],
)
def test_text_score_tiers(name, query, aliases, expected):
    assert text_score(name, query, aliases) == expected


def test_text_score_in_order_characters():
    # g, c, h found in order; x is not
    assert text_score("Grace Chapel", "gchx") == pytest.approx(3 / 4 * 0.6)


def test_dedupe_prefers_internal():
    address = {"line1": "Ikeja", "state": "Lagos"}
    mapbox = PlaceResult(id="mb.1", type="branch", name="Grace Chapel", source="mapbox",
                         address=dict(address), confidence=0.9)
    internal = PlaceResult(id="7", type="branch", name="grace chapel", source="internal",
                           address=dict(address), confidence=0.5)

    results = dedupe([mapbox, internal])

    assert len(results) == 1
    assert results[0].source == "internal"


def test_normalize_mapbox_skips_non_churches():
    feature = {"id": "poi.1", "text": "Shoprite", "properties": {"category": "supermarket"}}
    assert normalize_mapbox_feature(feature, "shop", None, 50000) is None


def test_normalize_mapbox_church():
    feature = {
        "id": "poi.2",
        "text": "Grace Chapel",
        "center": [3.35, 6.6],
        "properties": {"category": "church, place_of_worship", "address": "12 Allen Ave"},
        "context": [
            {"id": "place.1", "text": "Ikeja"},
            {"id": "country.1", "text": "Nigeria", "short_code": "ng"},
        ],
    }

    result = normalize_mapbox_feature(feature, "grace", LAGOS, 50000)

    assert result.source == "mapbox"
    assert result.location == {"lat": 6.6, "lng": 3.35}
    assert result.address["city"] == "Ikeja"
    assert result.address["country_code"] == "NG"
    assert result.distance_meters > 0


def test_suggest_ranks_nearby_branch_first(client, churches):
    res = client.get("/api/v1/places/suggest", params={"q": "RCCG", "near": "6.6,3.35", "source": "internal"})

    assert res.status_code == 200
    results = res.json()["data"]["results"]
    assert results[0]["name"] == "RCCG Lagos Central"
    assert results[0]["parentChurch"]["name"] == "Redeemed Christian Church of God"
    assert results[0]["distanceMeters"] == pytest.approx(0, abs=1)


@pytest.mark.parametrize(
    "params",
    [
        {"q": "a"},
        {"q": "grace", "limit": 21},
        {"q": "grace", "source": "google"},
        {"q": "grace", "near": "north"},
        {"q": "grace", "near": "95,3"},
        {"q": "grace", "radius": 0},
    ],
)
def test_suggest_validation(client, params):
    assert client.get("/api/v1/places/suggest", params=params).status_code == 400


def test_church_detail_includes_branches(client, churches):
    res = client.get(f"/api/v1/churches/{churches.id}")
    assert res.status_code == 200
    assert len(res.json()["data"]["branches"]) == 2


def test_missing_church_is_404(client):
    res = client.get("/api/v1/churches/999")
    assert res.status_code == 404
    assert res.json()["message"] == "Church not found"


@pytest.mark.parametrize(
    "session",
    [
        FakeHTTPSession(error=asyncio.TimeoutError()),
        FakeHTTPSession(error=aiohttp.ClientConnectionError("refused")),
        FakeHTTPSession(body=["not", "a", "feature collection"]),
    ],
)
def test_mapbox_failure_keeps_internal_results(client, churches, monkeypatch, session):
    monkeypatch.setattr(settings, "MAPBOX_ACCESS_TOKEN", "pk.test")
    monkeypatch.setattr(aiohttp, "ClientSession", session)

    res = client.get("/api/v1/places/suggest", params={"q": "RCCG", "near": "6.6,3.35"})

    assert res.status_code == 200
    results = res.json()["data"]["results"]
    assert results[0]["name"] == "RCCG Lagos Central"
    assert {r["source"] for r in results} == {"internal"}
    assert len(session.requests) == 1
