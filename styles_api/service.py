# ============================================================================
# CLAUDE CONTEXT - STYLES SERVICE
# ============================================================================
# EPOCH: 4 - ACTIVE
# STATUS: Business logic - style retrieval, negotiation and upsert
# PURPOSE: Serve stored styles in negotiated formats and store uploaded styles
# EXPORTS: StylesService, conformance classes
# DEPENDENCIES: styles_api.repository, styles_api.registry, styles_api.negotiation
# ============================================================================
"""
Styles Service Layer.

Business logic for OGC API Styles:
- Get a style, passing stored bytes through or transcoding them
- Create or update a style from uploaded bytes, with optional validation
- List styles and describe a style's available encodings
- Report conformance classes for the registered formats

Usage:
    service = StylesService()

    response = service.get_style("roads", accept="application/vnd.mapbox.style+json")
    service.put_style("roads", body, "application/vnd.ogc.sld+xml; charset=UTF-8", validate="yes")
"""

import codecs
from typing import Any, Dict, List, Optional, Union

from .config import StylesAPIConfig, get_styles_config
from .exceptions import (
    AmbiguousStyleError,
    BadRequestError,
    FormatHandlerNotFoundError,
    InvalidStyleError,
    StyleConfigurationError,
    StyleNotFoundError,
    UnsupportedMediaTypeError,
)
from .handlers import FormatHandler
from .media_types import InvalidMediaTypeError, MediaType, parse_accept_header
from .models import (
    ConformanceDocument,
    OGCLink,
    StyleMetadataDocument,
    StyleRecord,
    StyleResponse,
    StylesDocument,
    StyleSheet,
    StyleSummary,
    ValidationMode,
)
from .negotiation import NegotiationEngine
from .registry import FormatRegistry, build_registry
from .repository import IStyleRepository, get_style_repository
from .util_logger import ComponentType, LoggerFactory

logger = LoggerFactory.create_logger(ComponentType.SERVICE, "StylesService")

DEFAULT_CHARSET = "utf-8"

CONF_BASE = "http://www.opengis.net/spec/ogcapi-styles-1/1.0/conf"
CORE = f"{CONF_BASE}/core"
JSON = f"{CONF_BASE}/json"
MANAGE = f"{CONF_BASE}/manage-styles"
VALIDATION = f"{CONF_BASE}/style-validation"
MAPBOX = f"{CONF_BASE}/mapbox-styles"
SLD10 = f"{CONF_BASE}/sld-10"
SLD11 = f"{CONF_BASE}/sld-11"

# Conformance classes contributed by registered (format, version) pairs
FORMAT_CONFORMANCE = {
    ("mapbox", "8"): MAPBOX,
    ("sld", "1.0.0"): SLD10,
    ("sld", "1.1.0"): SLD11,
}


class StylesService:
    """
    OGC API Styles business logic.

    Stateless apart from the registry, which is built once and only read.
    Every call works on its own request data.
    """

    def __init__(
        self,
        repository: Optional[IStyleRepository] = None,
        registry: Optional[FormatRegistry] = None,
        config: Optional[StylesAPIConfig] = None
    ):
        """
        Args:
            repository: Style store (configured backend if not provided)
            registry: Format registry (built from config if not provided)
            config: Styles configuration (singleton if not provided)
        """
        self.config = config or get_styles_config()
        self.repository = repository or get_style_repository(self.config)
        self.registry = registry or build_registry(self.config.enabled_formats)
        self.negotiator = NegotiationEngine(self.registry)
        logger.info("StylesService initialized")

    # ========================================================================
    # LOOKUP
    # ========================================================================

    def get_style_info(
        self,
        name: str,
        workspace: Optional[str] = None,
        fail_if_not_found: bool = True
    ) -> Optional[StyleRecord]:
        """
        Resolve a style name to exactly one record.

        Raises:
            StyleNotFoundError: No match and fail_if_not_found
            AmbiguousStyleError: More than one match
        """
        records = self.repository.find_styles(name, workspace)
        if not records:
            if fail_if_not_found:
                raise StyleNotFoundError(f"Could not locate style {name}")
            return None
        if len(records) > 1:
            logger.error(f"Style name '{name}' matches {len(records)} styles")
            raise AmbiguousStyleError(
                f"More than one style can be matched to {name}, "
                "please contact the service administrator about this"
            )
        return records[0]

    def get_native_handler(self, record: StyleRecord) -> FormatHandler:
        """
        Raises:
            StyleConfigurationError: If the stored format has no handler
        """
        format_name = record.format or self.config.default_format
        try:
            return self.registry.resolve_by_format_name(format_name)
        except FormatHandlerNotFoundError as e:
            raise StyleConfigurationError(
                f"Could not find style handler for style {record.prefixed_name}"
            ) from e

    def get_native_media_type(self, record: StyleRecord) -> MediaType:
        handler = self.get_native_handler(record)
        version = record.format_version or handler.default_version
        if version not in handler.versions:
            raise StyleConfigurationError(
                f"Style {record.prefixed_name} declares {handler.format} version "
                f"{version}, handler supports {list(handler.versions)}"
            )
        return MediaType.parse(handler.mime_type(version))

    # ========================================================================
    # READ PATH
    # ========================================================================

    def get_style(
        self,
        name: str,
        accept: Union[None, str, List[MediaType]] = None,
        workspace: Optional[str] = None
    ) -> StyleResponse:
        """
        Get a style in the first acceptable representation.

        Args:
            name: Style name
            accept: Accept header value or already parsed media types
            workspace: Optional workspace scope

        Raises:
            BadRequestError: Malformed Accept header
            StyleNotFoundError / AmbiguousStyleError: Name resolution
            UnsupportedFormatError: No acceptable representation
        """
        record = self.get_style_info(name, workspace)
        native = self.get_native_media_type(record)

        if isinstance(accept, str) or accept is None:
            try:
                requested = parse_accept_header(accept)
            except InvalidMediaTypeError as e:
                raise BadRequestError(f"Invalid Accept header: {e}") from e
        else:
            requested = list(accept)

        result = self.negotiator.negotiate(native, requested)
        content = self.repository.read_style(record)

        if result.is_native:
            logger.info(f"Serving style '{record.prefixed_name}' natively as {native}")
            return StyleResponse(
                body=content,
                content_type=str(native),
                charset=record.charset or DEFAULT_CHARSET
            )

        style = self._read_canonical(record, content)
        body = result.handler.encode(style, result.version)
        logger.info(
            f"Serving style '{record.prefixed_name}' transcoded from {native} "
            f"to {result.media_type}"
        )
        return StyleResponse(body=body, content_type=str(result.media_type), transcoded=True)

    def _read_canonical(self, record: StyleRecord, content: bytes) -> Dict[str, Any]:
        """Stored bytes -> CartoSym-JSON via the native handler."""
        handler = self.get_native_handler(record)
        version = record.format_version or handler.default_version
        if not handler.is_readable:
            raise StyleConfigurationError(
                f"Style {record.prefixed_name} is stored in output-only format {handler.format}"
            )
        try:
            return handler.parse(content.decode(record.charset or DEFAULT_CHARSET), version)
        except Exception as e:
            raise StyleConfigurationError(
                f"Stored style {record.prefixed_name} could not be read as "
                f"{handler.format} {version}: {e}"
            ) from e

    # ========================================================================
    # WRITE PATH
    # ========================================================================

    def put_style(
        self,
        name: str,
        body: bytes,
        content_type: Optional[str],
        validate: Union[str, ValidationMode, None] = ValidationMode.NO,
        workspace: Optional[str] = None
    ) -> Optional[StyleRecord]:
        """
        Create or update a style.

        Args:
            name: Style name
            body: Raw style document
            content_type: Content-Type header (MIME type plus optional charset)
            validate: yes (validate + store), no (store), only (validate)
            workspace: Optional workspace for new styles

        Returns:
            Stored record, or None for validate=only

        Raises:
            BadRequestError: Missing/malformed content type, undecodable body
            UnsupportedMediaTypeError: No handler for the MIME type
            InvalidStyleError: Validation failed
            AmbiguousStyleError: Name matches several styles
        """
        mode = ValidationMode.parse(validate)
        media_type = self._parse_content_type(content_type)

        if len(body) > self.config.max_body_bytes:
            raise BadRequestError(
                f"Style document is {len(body)} bytes, limit is {self.config.max_body_bytes}"
            )

        content = self._decode_body(body, media_type.charset or DEFAULT_CHARSET)

        resolved = self.registry.resolve_by_mime_type(media_type)
        if resolved is None:
            raise UnsupportedMediaTypeError(
                f"Failed to lookup style support for media type {media_type.mime_type}"
            )
        handler, version = resolved
        if not handler.is_readable:
            raise UnsupportedMediaTypeError(
                f"Media type {media_type.mime_type} is output-only and cannot be stored"
            )

        if mode in (ValidationMode.YES, ValidationMode.ONLY):
            self._validate(handler, content, version)

        if mode == ValidationMode.ONLY:
            logger.info(f"Style '{name}' validated as {handler.format} {version}, not stored")
            return None

        record = self.get_style_info(name, workspace, fail_if_not_found=False)
        if record is None:
            record = StyleRecord(
                name=name,
                workspace=workspace,
                format=handler.format,
                format_version=version,
                charset=media_type.charset,
                filename=f"{name}.{handler.extension}"
            )
            stored = self.repository.add_style(record, body)
            logger.info(f"Created style '{stored.prefixed_name}' as {handler.format} {version}")
            return stored

        # The style may be in a different format now
        previous = (record.format, record.format_version)
        record = record.model_copy(update={
            "format": handler.format,
            "format_version": version,
            "charset": media_type.charset
        })
        stored = self.repository.update_style(record, body)
        logger.info(
            f"Updated style '{stored.prefixed_name}' from {previous[0]} {previous[1]} "
            f"to {handler.format} {version}"
        )
        return stored

    @staticmethod
    def _parse_content_type(content_type: Optional[str]) -> MediaType:
        if not content_type or not content_type.strip():
            raise BadRequestError("Content-Type header is required")
        try:
            media_type = MediaType.parse(content_type)
        except InvalidMediaTypeError as e:
            raise BadRequestError(f"Invalid Content-Type '{content_type}': {e}") from e
        if media_type.is_wildcard_type or media_type.is_wildcard_subtype:
            raise BadRequestError(f"Content-Type must be concrete, got '{content_type}'")
        return media_type

    @staticmethod
    def _decode_body(body: bytes, charset: str) -> str:
        try:
            codecs.lookup(charset)
        except LookupError as e:
            raise BadRequestError(f"Unsupported charset '{charset}'") from e
        try:
            return body.decode(charset)
        except UnicodeDecodeError as e:
            raise BadRequestError(f"Style document is not valid {charset}: {e}") from e

    @staticmethod
    def _validate(handler: FormatHandler, content: str, version: str) -> None:
        try:
            errors = handler.validate(content, version)
        except Exception as e:
            logger.warning(f"{handler.format} validator raised {type(e).__name__}: {e}")
            raise InvalidStyleError(f"Invalid style: {e}", errors=[str(e)]) from e

        if errors:
            logger.warning(f"Style rejected by {handler.format} {version} validation: {errors}")
            raise InvalidStyleError(f"Invalid style: {errors}", errors=errors)

    # ========================================================================
    # DOCUMENTS
    # ========================================================================

    def _style_url(self, base_url: str, name: str) -> str:
        return f"{base_url}/api/styles/{name}"

    def _encoding_links(self, record: StyleRecord, base_url: str) -> List[OGCLink]:
        """One stylesheet link per media type the style can be served in."""
        native = self.get_native_media_type(record)
        native_handler = self.get_native_handler(record)
        url = self._style_url(base_url, record.name)

        links = [OGCLink(
            rel="stylesheet",
            href=url,
            type=str(native),
            title=f"{native_handler.title or native_handler.format} (native)"
        )]
        if not native_handler.is_readable:
            return links

        for media_type in self.registry.media_types:
            if media_type == native.without_params():
                continue
            handler, version = self.registry.resolve_by_mime_type(media_type)
            links.append(OGCLink(
                rel="stylesheet",
                href=f"{url}?f={handler.format}-{version}",
                type=str(media_type),
                title=f"{handler.title or handler.format} {version}"
            ))
        return links

    def list_styles(self, base_url: str, workspace: Optional[str] = None) -> Dict[str, Any]:
        """
        Styles list document.

        Returns:
            OGC API Styles list response
        """
        styles = []
        for record in self.repository.list_styles(workspace):
            try:
                links = self._encoding_links(record, base_url)
            except StyleConfigurationError as e:
                logger.warning(f"Listing style '{record.prefixed_name}' without encodings: {e}")
                links = []
            links.append(OGCLink(
                rel="describedby",
                href=f"{self._style_url(base_url, record.name)}/metadata",
                type="application/json",
                title="Style metadata"
            ))
            styles.append(StyleSummary(id=record.name, title=record.title, links=links))

        document = StylesDocument(
            styles=styles,
            links=[OGCLink(
                rel="self",
                href=f"{base_url}/api/styles",
                type="application/json",
                title="This document"
            )]
        )
        logger.info(f"Listed {len(styles)} styles")
        return document.model_dump(mode="json", exclude_none=True)

    def get_style_metadata(
        self,
        name: str,
        base_url: str,
        workspace: Optional[str] = None
    ) -> Dict[str, Any]:
        """Metadata document describing a style and its encodings."""
        record = self.get_style_info(name, workspace)
        handler = self.get_native_handler(record)
        native = self.get_native_media_type(record)

        stylesheets = []
        for link in self._encoding_links(record, base_url):
            resolved = self.registry.resolve_by_mime_type(link.type)
            sheet_handler, version = resolved
            stylesheets.append(StyleSheet(
                title=link.title or sheet_handler.format,
                version=version,
                specification=sheet_handler.specification,
                native=MediaType.parse(link.type) == native,
                link=link
            ))

        document = StyleMetadataDocument(
            id=record.name,
            title=record.title,
            format=handler.format,
            formatVersion=record.format_version or handler.default_version,
            nativeMediaType=str(native),
            stylesheets=stylesheets,
            links=[OGCLink(
                rel="self",
                href=f"{self._style_url(base_url, record.name)}/metadata",
                type="application/json",
                title="This document"
            )]
        )
        return document.model_dump(mode="json", exclude_none=True)

    def conformance(self) -> Dict[str, Any]:
        classes = [CORE, JSON, MANAGE, VALIDATION]
        for handler in self.registry.handlers:
            for version in handler.versions:
                conf = FORMAT_CONFORMANCE.get((handler.format, version))
                if conf and conf not in classes:
                    classes.append(conf)
        return ConformanceDocument(conformsTo=classes).model_dump()

    # ========================================================================
    # FORMAT ALIASES
    # ========================================================================

    def media_type_for_alias(self, alias: str) -> Optional[MediaType]:
        """
        Resolve a ?f= value.

        Accepts a format name ("sld", default version) or "format-version"
        ("sld-1.1.0"). Unknown aliases return None.
        """
        alias = alias.strip().lower()
        format_name, _, version = alias.partition("-")
        try:
            handler = self.registry.resolve_by_format_name(format_name)
        except FormatHandlerNotFoundError:
            return None
        if version and version not in handler.versions:
            return None
        return MediaType.parse(handler.mime_type(version or None))
