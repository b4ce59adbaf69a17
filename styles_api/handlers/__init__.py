"""
Built-in style format handlers.

Exports:
    FormatHandler: Handler value type
    DEFAULT_HANDLERS: Handlers registered at startup, in registration order
"""

from .base import FormatHandler
from .cartosym import CARTOSYM_HANDLER, CARTOSYM_MIME_TYPE
from .leaflet import LEAFLET_HANDLER, LEAFLET_MIME_TYPE
from .mapbox import MAPBOX_HANDLER, MAPBOX_MIME_TYPE
from .sld import SLD_HANDLER, SLD_10_MIME_TYPE, SLD_11_MIME_TYPE

DEFAULT_HANDLERS = (
    CARTOSYM_HANDLER,
    MAPBOX_HANDLER,
    LEAFLET_HANDLER,
    SLD_HANDLER,
)

__all__ = [
    "FormatHandler",
    "DEFAULT_HANDLERS",
    "CARTOSYM_HANDLER",
    "MAPBOX_HANDLER",
    "LEAFLET_HANDLER",
    "SLD_HANDLER",
    "CARTOSYM_MIME_TYPE",
    "MAPBOX_MIME_TYPE",
    "LEAFLET_MIME_TYPE",
    "SLD_10_MIME_TYPE",
    "SLD_11_MIME_TYPE",
]
