"""
Leaflet style handler.

Output-only: Leaflet path options lose the rule structure, so styles are
served in this format but never stored in it.
"""

import json
from typing import Any, Dict, List

from ..translator import StyleTranslator
from .base import FormatHandler
from .cartosym import load_json_object

LEAFLET_MIME_TYPE = "application/vnd.leaflet.style+json"


def validate_leaflet(content: str, version: str) -> List[str]:
    try:
        load_json_object(content)
    except ValueError as e:
        return [f"Invalid JSON: {e}"]
    return []


def encode_leaflet(style: Dict[str, Any], version: str) -> bytes:
    return json.dumps(StyleTranslator(style).to_leaflet(), indent=2).encode("utf-8")


LEAFLET_HANDLER = FormatHandler(
    format="leaflet",
    versions=("1.0",),
    mime_types={"1.0": LEAFLET_MIME_TYPE},
    extension="json",
    encoder=encode_leaflet,
    validator=validate_leaflet,
    title="Leaflet style"
)
