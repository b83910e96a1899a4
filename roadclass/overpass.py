"""Overpass API client that fetches OSM highway ways and classifies them."""

import logging
import os
from dataclasses import dataclass, field

import requests

from .classification import RoadClassificationData

logger = logging.getLogger(__name__)

OVERPASS_URLS = [
    "https://overpass-api.de/api/interpreter",
    "https://overpass.kumi.systems/api/interpreter",
]

if os.environ.get("OVERPASS_URL"):
    OVERPASS_URLS.insert(0, os.environ["OVERPASS_URL"])


@dataclass
class RoadWay:
    id: int
    name: str
    highway: str
    tags: dict[str, str] = field(default_factory=dict)
    classification: RoadClassificationData = field(default_factory=RoadClassificationData)


def _build_query(bbox: str, timeout: int) -> str:
    """Build an Overpass QL query for all highway ways in the bbox."""
    return f"""
    [out:json][timeout:{timeout}];
    way["highway"]({bbox});
    out body;
    """


def _fetch_overpass(query: str, timeout: int) -> dict:
    """Execute an Overpass query, trying multiple mirrors."""
    if not OVERPASS_URLS:
        raise RuntimeError("no Overpass mirrors configured")
    last_err = None
    for url in OVERPASS_URLS:
        try:
            resp = requests.post(url, data={"data": query}, timeout=timeout + 30)
            resp.raise_for_status()
            return resp.json()
        except (requests.RequestException, ValueError) as exc:
            logger.warning(f"Overpass mirror {url} failed: {exc}")
            last_err = exc
            continue
    raise last_err  # type: ignore[misc]


def fetch_classified_ways(south: float, west: float, north: float, east: float,
                          timeout: int = 90) -> list[RoadWay]:
    """Fetch every highway way in the bounding box with its classification.

    Tries multiple Overpass mirrors if the first one fails.
    """
    bbox = f"{south},{west},{north},{east}"
    logger.info(f"Querying Overpass for highways in {bbox}")
    data = _fetch_overpass(_build_query(bbox, timeout), timeout)

    ways = []
    for el in data.get("elements", []):
        if el.get("type") != "way":
            continue
        tags = el.get("tags", {})
        highway = tags.get("highway")
        if not highway:
            continue

        ways.append(RoadWay(
            id=el["id"],
            name=tags.get("name", ""),
            highway=highway,
            tags=tags,
            classification=RoadClassificationData.from_tags(tags),
        ))

    logger.info(f"Classified {len(ways)} ways")
    return ways

