# ============================================================================
# CLAUDE CONTEXT - STYLES HTTP TRIGGERS
# ============================================================================
# EPOCH: 4 - ACTIVE
# STATUS: HTTP handlers - Azure Functions triggers for OGC API Styles
# PURPOSE: Map HTTP requests onto StylesService and its errors onto responses
# EXPORTS: get_styles_triggers
# DEPENDENCIES: azure.functions, styles_api.service
# ============================================================================
"""
Styles HTTP Triggers.

Azure Functions HTTP endpoint handlers for OGC API - Styles.

Endpoints:
    GET /styles/conformance            - Conformance classes
    GET /styles                        - List styles
    GET /styles/{style_id}             - Get style (content negotiated)
    PUT /styles/{style_id}             - Create or update style
    GET /styles/{style_id}/metadata    - Style metadata

Every endpoint accepts ?workspace= to scope the style lookup.
"""

import json
import uuid
from typing import Any, Dict, List, Optional

import azure.functions as func

from .exceptions import BadRequestError, StylesAPIError
from .media_types import InvalidMediaTypeError, parse_accept_header
from .service import StylesService
from .util_logger import ComponentType, LoggerFactory

logger = LoggerFactory.create_logger(ComponentType.TRIGGER, "StylesTriggers")


# ============================================================================
# TRIGGER REGISTRY FUNCTION
# ============================================================================

def get_styles_triggers(service: Optional[StylesService] = None) -> List[Dict[str, Any]]:
    """
    Get list of Styles API trigger configurations for function_app.py.

    All triggers share one StylesService, so the format registry is built
    once per process.

    Returns:
        List of dicts with keys:
        - route: URL route pattern
        - methods: List of HTTP methods
        - handler: Callable trigger handler

    Usage:
        _styles_triggers = get_styles_triggers()
        _styles_item = _styles_triggers[2]['handler']
    """
    service = service or StylesService()
    return [
        {
            'route': 'styles/conformance',
            'methods': ['GET'],
            'handler': StylesConformanceTrigger(service).handle
        },
        {
            'route': 'styles',
            'methods': ['GET'],
            'handler': StylesListTrigger(service).handle
        },
        {
            'route': 'styles/{style_id}',
            'methods': ['GET', 'PUT'],
            'handler': StyleTrigger(service).handle
        },
        {
            'route': 'styles/{style_id}/metadata',
            'methods': ['GET'],
            'handler': StyleMetadataTrigger(service).handle
        }
    ]


# ============================================================================
# BASE TRIGGER CLASS
# ============================================================================

class BaseStylesTrigger:
    """
    Base class for Styles API triggers.

    Subclasses implement process(); handle() wraps it with error mapping:
    StylesAPIError -> its status and JSON body, anything else -> 500.
    """

    def __init__(self, service: StylesService):
        self.service = service
        self.config = service.config

    def handle(self, req: func.HttpRequest) -> func.HttpResponse:
        request_id = req.headers.get("x-request-id") or str(uuid.uuid4())
        try:
            return self.process(req)
        except StylesAPIError as e:
            log = logger.error if e.status_code >= 500 else logger.warning
            log(
                f"{req.method} {req.url} failed: {e.code} {e.message}",
                extra={'custom_dimensions': {'request_id': request_id, 'status_code': e.status_code}}
            )
            return self._error_response(e.to_dict(), e.status_code)
        except Exception as e:
            logger.error(
                f"Unexpected error handling {req.method} {req.url}: {e}",
                exc_info=True,
                extra={'custom_dimensions': {'request_id': request_id}}
            )
            return self._error_response(
                {"code": "InternalServerError", "description": f"Internal server error: {e}"},
                500
            )

    def process(self, req: func.HttpRequest) -> func.HttpResponse:
        raise NotImplementedError

    def _get_base_url(self, req: func.HttpRequest) -> str:
        return self.config.get_base_url(req.url)

    @staticmethod
    def _workspace(req: func.HttpRequest) -> Optional[str]:
        return req.params.get("workspace") or None

    @staticmethod
    def _style_id(req: func.HttpRequest) -> str:
        style_id = req.route_params.get("style_id")
        if not style_id:
            raise BadRequestError("Style ID is required")
        return style_id

    @staticmethod
    def _json_response(
        data: Any,
        status_code: int = 200,
        content_type: str = "application/json"
    ) -> func.HttpResponse:
        if hasattr(data, 'model_dump'):
            data = data.model_dump(mode='json', exclude_none=True)

        return func.HttpResponse(
            body=json.dumps(data, indent=2),
            status_code=status_code,
            mimetype=content_type
        )

    def _error_response(self, body: Dict[str, Any], status_code: int) -> func.HttpResponse:
        return self._json_response(body, status_code=status_code)


# ============================================================================
# CONFORMANCE / LIST / METADATA TRIGGERS
# ============================================================================

class StylesConformanceTrigger(BaseStylesTrigger):
    """Endpoint: GET /api/styles/conformance"""

    def process(self, req: func.HttpRequest) -> func.HttpResponse:
        return self._json_response(self.service.conformance())


class StylesListTrigger(BaseStylesTrigger):
    """Endpoint: GET /api/styles"""

    def process(self, req: func.HttpRequest) -> func.HttpResponse:
        styles = self.service.list_styles(self._get_base_url(req), self._workspace(req))
        return self._json_response(styles)


class StyleMetadataTrigger(BaseStylesTrigger):
    """Endpoint: GET /api/styles/{style_id}/metadata"""

    def process(self, req: func.HttpRequest) -> func.HttpResponse:
        metadata = self.service.get_style_metadata(
            self._style_id(req),
            self._get_base_url(req),
            self._workspace(req)
        )
        return self._json_response(metadata)


# ============================================================================
# SINGLE STYLE TRIGGER
# ============================================================================

class StyleTrigger(BaseStylesTrigger):
    """
    Single style trigger.

    GET: content negotiation via Accept header, with ?f=<format> or
         ?f=<format>-<version> taking precedence over the header.
    PUT: body stored under the style name; ?validate=yes|no|only.
    """

    def process(self, req: func.HttpRequest) -> func.HttpResponse:
        if req.method.upper() == "PUT":
            return self._put(req)
        return self._get(req)

    def _requested_media_types(self, req: func.HttpRequest):
        try:
            requested = parse_accept_header(req.headers.get("Accept"))
        except InvalidMediaTypeError as e:
            raise BadRequestError(f"Invalid Accept header: {e}") from e

        format_param = req.params.get("f")
        if format_param:
            alias = self.service.media_type_for_alias(format_param)
            if alias is None:
                raise BadRequestError(f"Unknown style format '{format_param}'")
            requested.insert(0, alias)
        return requested

    def _get(self, req: func.HttpRequest) -> func.HttpResponse:
        style_id = self._style_id(req)
        response = self.service.get_style(
            style_id,
            accept=self._requested_media_types(req),
            workspace=self._workspace(req)
        )
        logger.info(f"Style '{style_id}' served as {response.content_type}")
        return func.HttpResponse(
            body=response.body,
            status_code=200,
            mimetype=response.content_type,
            charset=response.charset
        )

    def _put(self, req: func.HttpRequest) -> func.HttpResponse:
        style_id = self._style_id(req)
        self.service.put_style(
            style_id,
            req.get_body() or b"",
            req.headers.get("Content-Type"),
            validate=req.params.get("validate"),
            workspace=self._workspace(req)
        )
        return func.HttpResponse(status_code=204)
