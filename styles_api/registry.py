# ============================================================================
# CLAUDE CONTEXT - STYLE FORMAT REGISTRY
# ============================================================================
# EPOCH: 4 - ACTIVE
# STATUS: Registry - MIME type -> format handler lookup
# PURPOSE: Resolve style format handlers by MIME type or format name
# EXPORTS: FormatRegistry, build_registry
# DEPENDENCIES: styles_api.handlers
# ============================================================================
"""
Style Format Registry.

Maps each MIME type a handler declares to (handler, version). Built once at
startup and read-only afterwards, so concurrent lookups need no locking.

Registration of an already known MIME type replaces the earlier entry
(last writer wins). This is logged but not an error.

Usage:
    registry = build_registry()
    resolved = registry.resolve_by_mime_type("application/vnd.ogc.sld+xml")
    if resolved:
        handler, version = resolved
"""

from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .exceptions import FormatHandlerNotFoundError
from .handlers import DEFAULT_HANDLERS, FormatHandler
from .media_types import MediaType
from .util_logger import ComponentType, LoggerFactory

logger = LoggerFactory.create_logger(ComponentType.REGISTRY, "FormatRegistry")


class FormatRegistry:
    """
    MIME type keyed registry of style format handlers.

    Lookups are exact on type/subtype; media type parameters are ignored.
    """

    def __init__(self, handlers: Optional[Iterable[FormatHandler]] = None):
        self._by_mime_type: Dict[str, Tuple[FormatHandler, str]] = {}
        self._handlers: List[FormatHandler] = []
        for handler in handlers or ():
            self.register(handler)

    def register(self, handler: FormatHandler) -> None:
        """Register every (MIME type, version) pair the handler declares."""
        for version in handler.versions:
            mime_type = MediaType.parse(handler.mime_type(version)).mime_type
            previous = self._by_mime_type.get(mime_type)
            if previous is not None:
                logger.debug(
                    f"MIME type {mime_type} re-registered: "
                    f"{previous[0].format} {previous[1]} replaced by {handler.format} {version}"
                )
            self._by_mime_type[mime_type] = (handler, version)

        if not any(h is handler for h in self._handlers):
            self._handlers.append(handler)

    def resolve_by_mime_type(self, mime_type) -> Optional[Tuple[FormatHandler, str]]:
        """
        Exact lookup by MIME type.

        Args:
            mime_type: MediaType or media type string

        Returns:
            (handler, version) or None
        """
        if not isinstance(mime_type, MediaType):
            mime_type = MediaType.parse(mime_type)
        return self._by_mime_type.get(mime_type.mime_type)

    def resolve_by_format_name(self, name: str) -> FormatHandler:
        """
        Raises:
            FormatHandlerNotFoundError: If no handler declares the format
        """
        for handler in self._handlers:
            if handler.format == name:
                return handler
        raise FormatHandlerNotFoundError(f"No style handler registered for format '{name}'")

    @property
    def media_types(self) -> List[MediaType]:
        """Registered media types, in registration order."""
        return [MediaType.parse(m) for m in self._by_mime_type]

    @property
    def handlers(self) -> Sequence[FormatHandler]:
        return tuple(self._handlers)

    def __contains__(self, mime_type) -> bool:
        return self.resolve_by_mime_type(mime_type) is not None

    def __len__(self) -> int:
        return len(self._by_mime_type)


def build_registry(
    format_names: Optional[Iterable[str]] = None,
    handlers: Sequence[FormatHandler] = DEFAULT_HANDLERS
) -> FormatRegistry:
    """
    Build the registry used by the service.

    Args:
        format_names: Formats to enable (None or empty = all handlers)
        handlers: Candidate handlers, in registration order

    Raises:
        FormatHandlerNotFoundError: If a requested format has no handler
    """
    wanted = [name.lower() for name in format_names or ()]
    known = {h.format for h in handlers}
    unknown = [name for name in wanted if name not in known]
    if unknown:
        raise FormatHandlerNotFoundError(
            f"Unknown style formats {unknown}; available: {sorted(known)}"
        )

    selected = [h for h in handlers if not wanted or h.format in wanted]
    registry = FormatRegistry(selected)
    logger.info(
        f"Style format registry built with {len(registry)} media types "
        f"from formats {[h.format for h in registry.handlers]}"
    )
    return registry
