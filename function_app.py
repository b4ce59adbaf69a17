"""
Azure Functions entry point for the OGC API Styles service.

Routes (all under /api):
    GET  livez                         - Liveness probe
    GET  styles/conformance            - Conformance classes
    GET  styles                        - List styles
    GET  styles/{style_id}             - Get style (content negotiated)
    PUT  styles/{style_id}             - Create or update style
    GET  styles/{style_id}/metadata    - Style metadata

The format registry and style store are created once at import time and
shared by every invocation in this worker process.

Exports:
    app: Azure Function App instance
"""

import json
from datetime import datetime, timezone

import azure.functions as func

from styles_api import get_styles_triggers
from styles_api.util_logger import ComponentType, LoggerFactory

logger = LoggerFactory.create_logger(ComponentType.TRIGGER, "function_app")

app = func.FunctionApp(http_auth_level=func.AuthLevel.ANONYMOUS)


@app.route(route="livez", methods=["GET"])
def livez(req: func.HttpRequest) -> func.HttpResponse:
    """Liveness probe - is the app alive? No dependencies checked."""
    return func.HttpResponse(
        body=json.dumps({
            "status": "alive",
            "timestamp": datetime.now(timezone.utc).isoformat()
        }),
        status_code=200,
        mimetype="application/json"
    )


# ============================================================================
# OGC API - STYLES
# ============================================================================
# Endpoints:
#   GET /api/styles/conformance          - Conformance classes
#   GET /api/styles                      - Styles list
#   GET /api/styles/{style_id}           - Style document
#   PUT /api/styles/{style_id}           - Create/update style
#   GET /api/styles/{style_id}/metadata  - Style metadata
#
# Query Parameters:
#   ?f=<format>[-<version>]  - Output format override (GET style)
#   ?validate=yes|no|only    - Validation mode (PUT style, default: no)
#   ?workspace=<name>        - Workspace scope
# ============================================================================

# Get trigger configurations (contains handler references)
_styles_triggers = get_styles_triggers()
_styles_conformance = _styles_triggers[0]['handler']
_styles_list = _styles_triggers[1]['handler']
_styles_item = _styles_triggers[2]['handler']
_styles_metadata = _styles_triggers[3]['handler']

logger.info(f"Registered {len(_styles_triggers)} Styles API routes")


@app.route(route="styles/conformance", methods=["GET"])
def styles_conformance(req: func.HttpRequest) -> func.HttpResponse:
    """Styles API conformance: GET /api/styles/conformance"""
    return _styles_conformance(req)


@app.route(route="styles", methods=["GET"])
def styles_list(req: func.HttpRequest) -> func.HttpResponse:
    """Styles list: GET /api/styles"""
    return _styles_list(req)


@app.route(route="styles/{style_id}", methods=["GET", "PUT"])
def styles_item(req: func.HttpRequest) -> func.HttpResponse:
    """Style document: GET/PUT /api/styles/{style_id}"""
    return _styles_item(req)


@app.route(route="styles/{style_id}/metadata", methods=["GET"])
def styles_metadata(req: func.HttpRequest) -> func.HttpResponse:
    """Style metadata: GET /api/styles/{style_id}/metadata"""
    return _styles_metadata(req)
