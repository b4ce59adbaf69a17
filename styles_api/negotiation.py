"""
Content negotiation for style reads.

Picks the representation of a stored style to send back:

1. No Accept preference (empty list or exactly */*): native passthrough.
2. Otherwise walk the client's list in order. The first entry that is
   compatible with the native media type gives passthrough; the first entry
   with an exactly registered handler gives a transcode. First hit wins.
3. Nothing matched: UnsupportedFormatError listing every type tried.

Quality values are not consulted; listing order alone decides.
"""

from dataclasses import dataclass
from typing import List, Optional

from .exceptions import UnsupportedFormatError
from .handlers import FormatHandler
from .media_types import MediaType, is_accept_all
from .registry import FormatRegistry
from .util_logger import ComponentType, LoggerFactory

logger = LoggerFactory.create_logger(ComponentType.SERVICE, "NegotiationEngine")


@dataclass(frozen=True)
class NegotiationResult:
    """
    Chosen representation.

    handler is None for native passthrough.
    """
    media_type: MediaType
    handler: Optional[FormatHandler] = None
    version: Optional[str] = None

    @property
    def is_native(self) -> bool:
        return self.handler is None


class NegotiationEngine:
    """First-acceptable-wins negotiation against a FormatRegistry."""

    def __init__(self, registry: FormatRegistry):
        self.registry = registry

    def negotiate(
        self,
        native: MediaType,
        requested: Optional[List[MediaType]]
    ) -> NegotiationResult:
        """
        Args:
            native: Media type the style is stored in
            requested: Client media types in preference order

        Raises:
            UnsupportedFormatError: If no requested type can be produced
        """
        requested = list(requested or [])
        if is_accept_all(requested):
            return NegotiationResult(media_type=native)

        for candidate in requested:
            if candidate.is_compatible_with(native):
                logger.debug(f"Requested {candidate} matches native {native}")
                return NegotiationResult(media_type=native)

            resolved = self.registry.resolve_by_mime_type(candidate)
            if resolved is not None:
                handler, version = resolved
                logger.debug(f"Requested {candidate} served by {handler.format} {version}")
                return NegotiationResult(
                    media_type=MediaType.parse(handler.mime_type(version)),
                    handler=handler,
                    version=version
                )

        attempted = [str(m) for m in requested]
        raise UnsupportedFormatError(
            f"Could not find a style encoder for requested media types {attempted}",
            requested=attempted
        )
