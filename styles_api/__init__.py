# ============================================================================
# CLAUDE CONTEXT - OGC API STYLES MODULE
# ============================================================================
# EPOCH: 4 - ACTIVE
# STATUS: OGC API Styles implementation
# PURPOSE: Store style documents in any registered format and serve them in any other
# EXPORTS: StylesService, FormatRegistry, NegotiationEngine, get_styles_triggers
# DEPENDENCIES: azure.functions, psycopg, pydantic
# ============================================================================
"""
OGC API Styles Module.

Server-side style management:
- Store styles natively in the format they were uploaded in (CartoSym-JSON,
  Mapbox GL, SLD 1.0/1.1)
- Serve styles in the stored format or transcode them to any registered
  format (including Leaflet) via Accept header or ?f= parameter
- Validate uploads with ?validate=yes|no|only

Endpoints:
    GET /styles/conformance            - Conformance classes
    GET /styles                        - List styles
    GET /styles/{style_id}             - Get style (multi-format)
    PUT /styles/{style_id}             - Create or update style
    GET /styles/{style_id}/metadata    - Style metadata

Usage:
    from styles_api import StylesService

    service = StylesService()
    service.put_style("roads", body, "application/vnd.ogc.sld+xml", validate="yes")
    response = service.get_style("roads", accept="application/vnd.mapbox.style+json")
"""

from .negotiation import NegotiationEngine, NegotiationResult
from .registry import FormatRegistry, build_registry
from .service import StylesService
from .triggers import get_styles_triggers

__version__ = "1.0.0"
__all__ = [
    "FormatRegistry",
    "NegotiationEngine",
    "NegotiationResult",
    "StylesService",
    "build_registry",
    "get_styles_triggers",
]
