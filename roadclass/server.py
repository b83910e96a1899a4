"""Flask application exposing road classification as a JSON API."""

import logging
import math
import os

from flask import Flask, jsonify, request

from .classification import (
    DEFAULT_PRIORITY,
    PRIORITIES,
    RoadClassification,
    can_be_seen_as_fork,
)
from .overpass import fetch_classified_ways

logger = logging.getLogger(__name__)

app = Flask(__name__)

MAX_AREA_KM2 = float(os.environ.get("MAX_AREA_KM2", 4.0))


def _classification_json(rc: RoadClassification) -> dict:
    return {
        "motorway_class": rc.motorway_class,
        "link_class": rc.link_class,
        "may_be_ignored": rc.may_be_ignored,
        "priority": rc.priority,
        "bits": rc.to_bits(),
        "label": rc.to_string(),
    }


def _parse_tags(value) -> dict[str, str]:
    if not isinstance(value, dict):
        raise ValueError("tags must be an object")
    bad = [k for k, v in value.items() if not isinstance(v, str)]
    if bad:
        raise ValueError(f"tag values must be strings: {bad}")
    return value


@app.route("/api/priorities")
def priorities():
    return jsonify({"priorities": dict(PRIORITIES), "default": DEFAULT_PRIORITY})


@app.route("/api/classify", methods=["POST"])
def classify():
    data = request.get_json(force=True, silent=True)
    try:
        tags = _parse_tags(data["tags"])
    except (KeyError, TypeError, ValueError) as exc:
        return jsonify({"error": f"Invalid parameters: {exc}"}), 400

    return jsonify(_classification_json(RoadClassification.from_tags(tags)))


@app.route("/api/fork", methods=["POST"])
def fork():
    data = request.get_json(force=True, silent=True)
    try:
        first = RoadClassification.from_tags(_parse_tags(data["first"]))
        second = RoadClassification.from_tags(_parse_tags(data["second"]))
    except (KeyError, TypeError, ValueError) as exc:
        return jsonify({"error": f"Invalid parameters: {exc}"}), 400

    return jsonify({
        "fork": can_be_seen_as_fork(first, second),
        "first": _classification_json(first),
        "second": _classification_json(second),
    })


@app.route("/api/area", methods=["POST"])
def area():
    data = request.get_json(force=True, silent=True)
    try:
        south = float(data["south"])
        west = float(data["west"])
        north = float(data["north"])
        east = float(data["east"])
    except (KeyError, TypeError, ValueError) as exc:
        return jsonify({"error": f"Invalid parameters: {exc}"}), 400

    if not all(map(math.isfinite, (south, west, north, east))):
        return jsonify({"error": "Invalid parameters: coordinates must be finite"}), 400

    if not (-90 <= south < north <= 90 and -180 <= west < east <= 180):
        return jsonify({"error": "Invalid parameters: bounding box is out of range or reversed"}), 400

    # Rough area check
    lat_mid = math.radians((south + north) / 2)
    height_km = (north - south) * 111.32
    width_km = (east - west) * 111.32 * math.cos(lat_mid)
    size = abs(height_km * width_km)
    if size > MAX_AREA_KM2:
        return jsonify({"error": f"Selected area ~{size:.1f} km² exceeds {MAX_AREA_KM2} km² limit."}), 400

    try:
        ways = fetch_classified_ways(south, west, north, east)
    except Exception as exc:
        logger.error(f"Overpass query failed: {exc}")
        return jsonify({"error": f"Overpass query failed: {exc}"}), 502

    return jsonify({
        "ways": [
            {
                "id": w.id,
                "name": w.name,
                "highway": w.highway,
                "classification": _classification_json(w.classification.road_classification),
            }
            for w in ways
        ]
    })
