"""
Mapbox GL style handler (style spec version 8).
"""

import json
from typing import Any, Dict, List

from pydantic import ValidationError

from ..models import MapboxStyle
from ..translator import StyleTranslator, mapbox_to_cartosym
from .base import FormatHandler
from .cartosym import format_pydantic_errors, load_json_object

MAPBOX_MIME_TYPE = "application/vnd.mapbox.style+json"


def validate_mapbox(content: str, version: str) -> List[str]:
    try:
        document = load_json_object(content)
    except ValueError as e:
        return [f"Invalid JSON: {e}"]

    try:
        style = MapboxStyle.model_validate(document)
    except ValidationError as e:
        return format_pydantic_errors(e)

    errors = []
    if str(style.version) != version:
        errors.append(f"version: expected {version}, got {style.version}")

    seen = set()
    for layer in style.layers:
        if layer.id in seen:
            errors.append(f"layers: duplicate layer id '{layer.id}'")
        seen.add(layer.id)
    return errors


def parse_mapbox(content: str, version: str) -> Dict[str, Any]:
    return mapbox_to_cartosym(load_json_object(content))


def encode_mapbox(style: Dict[str, Any], version: str) -> bytes:
    return json.dumps(StyleTranslator(style).to_mapbox(), indent=2).encode("utf-8")


MAPBOX_HANDLER = FormatHandler(
    format="mapbox",
    versions=("8",),
    mime_types={"8": MAPBOX_MIME_TYPE},
    extension="json",
    encoder=encode_mapbox,
    validator=validate_mapbox,
    parser=parse_mapbox,
    title="Mapbox GL style",
    specification="https://docs.mapbox.com/mapbox-gl-js/style-spec/"
)
