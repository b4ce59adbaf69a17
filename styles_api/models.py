# ============================================================================
# CLAUDE CONTEXT - STYLES API PYDANTIC MODELS
# ============================================================================
# EPOCH: 4 - ACTIVE
# STATUS: Data models - style documents, catalog records, API responses
# PURPOSE: Define type-safe models for OGC API Styles
# EXPORTS: CartoSym* models, MapboxStyle*, StyleRecord, ValidationMode, documents
# DEPENDENCIES: pydantic
# ============================================================================
"""
Styles API Pydantic Models.

Defines schemas for:
- CartoSym-JSON (canonical style model every handler converts through)
- Mapbox GL style root (validation of uploaded Mapbox styles)
- Style catalog records
- OGC API Styles responses (styles list, style metadata, conformance)
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .exceptions import BadRequestError


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================================
# OGC LINK MODEL
# ============================================================================

class OGCLink(BaseModel):
    """OGC API link object."""
    rel: str
    href: str
    type: Optional[str] = None
    title: Optional[str] = None


# ============================================================================
# CARTOSYM-JSON MODELS (Canonical Style Model)
# ============================================================================

class CartoSymFill(BaseModel):
    """CartoSym-JSON fill specification."""
    color: str
    opacity: float = Field(default=1.0, ge=0, le=1)


class CartoSymStroke(BaseModel):
    """CartoSym-JSON stroke specification."""
    color: str
    width: float = Field(default=1.0, ge=0)
    opacity: float = Field(default=1.0, ge=0, le=1)
    cap: str = "round"
    join: str = "round"


class CartoSymMarker(BaseModel):
    """CartoSym-JSON marker specification for point geometries."""
    size: float = Field(default=6, ge=0)
    fill: Optional[CartoSymFill] = None
    stroke: Optional[CartoSymStroke] = None


class CartoSymSymbolizer(BaseModel):
    """CartoSym-JSON symbolizer specification."""
    type: str = Field(pattern="^(Polygon|Line|Point)$")
    fill: Optional[CartoSymFill] = None
    stroke: Optional[CartoSymStroke] = None
    marker: Optional[CartoSymMarker] = None


class CartoSymSelector(BaseModel):
    """
    CQL2-JSON selector for data-driven styling.

    Example:
        {"op": "=", "args": [{"property": "iucn_cat"}, "Ia"]}
    """
    op: str = Field(pattern="^(=|<>|>|<|>=|<=)$")
    args: List[Any] = Field(min_length=2, max_length=2)


class CartoSymRule(BaseModel):
    """CartoSym-JSON styling rule."""
    name: str
    selector: Optional[CartoSymSelector] = None
    symbolizer: CartoSymSymbolizer


class CartoSymStyle(BaseModel):
    """CartoSym-JSON style document."""
    name: str
    title: Optional[str] = None
    description: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    stylingRules: List[CartoSymRule] = Field(min_length=1)


# ============================================================================
# MAPBOX GL MODELS (Validation of uploaded Mapbox styles)
# ============================================================================

class MapboxLayer(BaseModel):
    """Single Mapbox GL layer. Only the fields the translator reads are typed."""
    model_config = ConfigDict(extra="allow")

    id: str
    type: str = Field(pattern="^(fill|line|circle|symbol|raster|background|fill-extrusion|heatmap|hillshade)$")
    paint: Dict[str, Any] = Field(default_factory=dict)
    layout: Dict[str, Any] = Field(default_factory=dict)
    filter: Optional[List[Any]] = None


class MapboxStyle(BaseModel):
    """
    Mapbox GL style root.

    Sources are optional because layer-only styles are attached to client
    sources at render time.
    """
    model_config = ConfigDict(extra="allow")

    version: int
    name: Optional[str] = None
    sources: Dict[str, Any] = Field(default_factory=dict)
    layers: List[MapboxLayer]


# ============================================================================
# CATALOG RECORD
# ============================================================================

class ValidationMode(str, Enum):
    """
    Controls validation and persistence on PUT.

    yes  - validate, then store
    no   - store without validating
    only - validate, never store
    """
    YES = "yes"
    NO = "no"
    ONLY = "only"

    @classmethod
    def parse(cls, value: Optional[str]) -> "ValidationMode":
        if value is None or value == "":
            return cls.NO
        if isinstance(value, cls):
            return value
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise BadRequestError(
                f"Invalid validate value '{value}': expected one of yes, no, only"
            )


class StyleRecord(BaseModel):
    """
    Style catalog entry.

    Content bytes live in the store next to the record; the record carries
    only metadata. `format`/`format_version` of None mean "configured
    default format" and "handler's first version" respectively.
    `charset` is the encoding the content was uploaded in (None: UTF-8).
    """
    model_config = ConfigDict(from_attributes=True)

    name: str = Field(min_length=1)
    workspace: Optional[str] = None
    format: Optional[str] = None
    format_version: Optional[str] = None
    charset: Optional[str] = None
    filename: Optional[str] = None
    title: Optional[str] = None
    created_at: datetime = Field(default_factory=_utc_now)
    updated_at: datetime = Field(default_factory=_utc_now)

    @property
    def prefixed_name(self) -> str:
        return f"{self.workspace}:{self.name}" if self.workspace else self.name


# ============================================================================
# OGC API STYLES RESPONSE MODELS
# ============================================================================

class StyleSummary(BaseModel):
    """Style entry in GET /styles."""
    id: str
    title: Optional[str] = None
    links: List[OGCLink] = Field(default_factory=list)


class StylesDocument(BaseModel):
    """Response for GET /styles."""
    styles: List[StyleSummary] = Field(default_factory=list)
    links: List[OGCLink] = Field(default_factory=list)


class StyleSheet(BaseModel):
    """One available encoding of a style."""
    title: str
    version: str
    specification: Optional[str] = None
    native: bool = False
    link: OGCLink


class StyleMetadataDocument(BaseModel):
    """Response for GET /styles/{styleId}/metadata."""
    id: str
    title: Optional[str] = None
    scope: str = "style"
    format: str
    formatVersion: str
    nativeMediaType: str
    stylesheets: List[StyleSheet] = Field(default_factory=list)
    links: List[OGCLink] = Field(default_factory=list)


class ConformanceDocument(BaseModel):
    """Response for GET /styles/conformance."""
    conformsTo: List[str] = Field(default_factory=list)


class StyleResponse(BaseModel):
    """Style bytes plus the media type they were encoded in."""
    body: bytes
    content_type: str
    charset: str = "utf-8"
    transcoded: bool = False
