"""
CartoSym-JSON handler.

CartoSym-JSON is the canonical model, so parsing returns the document as-is
and encoding is plain JSON serialization. Validation runs the document
through the CartoSymStyle pydantic model and reports every error.
"""

import json
from typing import Any, Dict, List

from pydantic import ValidationError

from ..models import CartoSymStyle
from .base import FormatHandler

CARTOSYM_MIME_TYPE = "application/vnd.ogc.cartosym+json"


def format_pydantic_errors(error: ValidationError) -> List[str]:
    """One "loc: msg" line per pydantic error."""
    messages = []
    for err in error.errors():
        location = ".".join(str(part) for part in err.get("loc", ())) or "<root>"
        messages.append(f"{location}: {err.get('msg')}")
    return messages


def load_json_object(content: str) -> Dict[str, Any]:
    """
    Parse JSON text that must hold an object.

    Raises:
        ValueError: If content is not a JSON object
    """
    document = json.loads(content)
    if not isinstance(document, dict):
        raise ValueError(f"Expected a JSON object, got {type(document).__name__}")
    return document


def validate_cartosym(content: str, version: str) -> List[str]:
    try:
        document = load_json_object(content)
    except ValueError as e:
        return [f"Invalid JSON: {e}"]

    try:
        CartoSymStyle.model_validate(document)
    except ValidationError as e:
        return format_pydantic_errors(e)
    return []


def parse_cartosym(content: str, version: str) -> Dict[str, Any]:
    return load_json_object(content)


def encode_cartosym(style: Dict[str, Any], version: str) -> bytes:
    return json.dumps(style, indent=2).encode("utf-8")


CARTOSYM_HANDLER = FormatHandler(
    format="cartosym",
    versions=("1.0",),
    mime_types={"1.0": CARTOSYM_MIME_TYPE},
    extension="json",
    encoder=encode_cartosym,
    validator=validate_cartosym,
    parser=parse_cartosym,
    title="CartoSym-JSON",
    specification="https://docs.ogc.org/DRAFTS/18-067r4.html"
)
