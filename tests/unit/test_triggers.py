"""
HTTP trigger tests: routing table, status codes, error bodies.
"""

import json

import azure.functions as func
import pytest

from styles_api.triggers import get_styles_triggers
from tests.factories.style_factories import make_cartosym_bytes, make_mapbox_bytes

BASE = "https://styles.example.com/api/styles"
CARTOSYM = "application/vnd.ogc.cartosym+json"
MAPBOX_TYPE = "application/vnd.mapbox.style+json"


def _request(method, path="", headers=None, params=None, route_params=None, body=b""):
    return func.HttpRequest(
        method=method,
        url=f"{BASE}{path}",
        headers=headers or {},
        params=params or {},
        route_params=route_params or {},
        body=body
    )


@pytest.fixture
def triggers(service):
    return {t['route']: t['handler'] for t in get_styles_triggers(service)}


@pytest.fixture
def style_handler(triggers):
    return triggers['styles/{style_id}']


def _put(style_handler, name, body, content_type, **params):
    return style_handler(_request(
        "PUT", f"/{name}",
        headers={"Content-Type": content_type},
        params=params,
        route_params={"style_id": name},
        body=body
    ))


def _get(style_handler, name, accept=None, **params):
    headers = {"Accept": accept} if accept else {}
    return style_handler(_request("GET", f"/{name}", headers=headers, params=params, route_params={"style_id": name}))


class TestTriggerRegistry:

    def test_routes(self, service):
        routes = [(t['route'], t['methods']) for t in get_styles_triggers(service)]
        assert routes == [
            ('styles/conformance', ['GET']),
            ('styles', ['GET']),
            ('styles/{style_id}', ['GET', 'PUT']),
            ('styles/{style_id}/metadata', ['GET']),
        ]


class TestStyleTrigger:

    def test_put_then_get(self, style_handler, style_name):
        body = make_cartosym_bytes(name=style_name)
        response = _put(style_handler, style_name, body, CARTOSYM, validate="yes")
        assert response.status_code == 204

        response = _get(style_handler, style_name)
        assert response.status_code == 200
        assert response.get_body() == body
        assert response.mimetype == CARTOSYM

    def test_accept_header_transcodes(self, style_handler, style_name):
        _put(style_handler, style_name, make_cartosym_bytes(name=style_name), CARTOSYM)
        response = _get(style_handler, style_name, accept=MAPBOX_TYPE)
        assert response.status_code == 200
        assert response.mimetype == MAPBOX_TYPE
        assert json.loads(response.get_body())["version"] == 8

    def test_declared_charset_served_back(self, style_handler, style_name):
        body = json.dumps({"name": style_name, "title": "Café", "stylingRules": []}, ensure_ascii=False)
        _put(style_handler, style_name, body.encode("latin-1"), f"{CARTOSYM}; charset=ISO-8859-1")

        native = _get(style_handler, style_name)
        assert native.get_body() == body.encode("latin-1")
        assert native.charset == "ISO-8859-1"

        transcoded = _get(style_handler, style_name, accept=MAPBOX_TYPE)
        assert transcoded.status_code == 200
        assert transcoded.charset == "utf-8"

    def test_format_param_wins_over_accept(self, style_handler, style_name):
        _put(style_handler, style_name, make_cartosym_bytes(name=style_name), CARTOSYM)
        response = _get(style_handler, style_name, accept=MAPBOX_TYPE, f="sld-1.1.0")
        assert response.mimetype == "application/vnd.ogc.se+xml"

    def test_unknown_format_param(self, style_handler, style_name):
        _put(style_handler, style_name, make_cartosym_bytes(name=style_name), CARTOSYM)
        response = _get(style_handler, style_name, f="pdf")
        assert response.status_code == 400
        assert json.loads(response.get_body())["code"] == "BadRequest"

    def test_not_acceptable(self, style_handler, style_name):
        _put(style_handler, style_name, make_cartosym_bytes(name=style_name), CARTOSYM)
        response = _get(style_handler, style_name, accept="text/html")
        assert response.status_code == 406
        error = json.loads(response.get_body())
        assert error["code"] == "NotAcceptable"
        assert error["requested"] == ["text/html"]

    def test_not_found(self, style_handler):
        response = _get(style_handler, "nowhere")
        assert response.status_code == 404
        assert json.loads(response.get_body())["description"] == "Could not locate style nowhere"

    def test_put_unsupported_type(self, style_handler, style_name):
        response = _put(style_handler, style_name, b"<html/>", "text/html")
        assert response.status_code == 400
        assert json.loads(response.get_body())["code"] == "IllegalInputMediaType"

    def test_put_invalid_style(self, style_handler, style_name):
        response = _put(style_handler, style_name, b'{"name": "x"}', CARTOSYM, validate="only")
        assert response.status_code == 400
        error = json.loads(response.get_body())
        assert error["code"] == "InvalidStyle"
        assert error["errors"]

    def test_put_validate_only(self, style_handler, style_name):
        response = _put(style_handler, style_name, make_mapbox_bytes(), MAPBOX_TYPE, validate="only")
        assert response.status_code == 204
        assert _get(style_handler, style_name).status_code == 404

    def test_put_without_content_type(self, style_handler, style_name):
        response = style_handler(_request(
            "PUT", f"/{style_name}", route_params={"style_id": style_name}, body=make_cartosym_bytes()
        ))
        assert response.status_code == 400

    def test_missing_style_id(self, style_handler):
        response = style_handler(_request("GET"))
        assert response.status_code == 400

    def test_workspace_param(self, style_handler, style_name):
        _put(style_handler, style_name, make_cartosym_bytes(), CARTOSYM, workspace="topo")
        assert _get(style_handler, style_name, workspace="topo").status_code == 200
        assert _get(style_handler, style_name, workspace="other").status_code == 404

    def test_unexpected_error_is_500(self, style_handler, service, style_name, monkeypatch):
        def boom(*args, **kwargs):
            raise RuntimeError("disk on fire")

        monkeypatch.setattr(service, "get_style", boom)
        response = _get(style_handler, style_name)
        assert response.status_code == 500
        assert json.loads(response.get_body())["code"] == "InternalServerError"


class TestDocumentTriggers:

    def test_conformance(self, triggers):
        response = triggers['styles/conformance'](_request("GET", "/conformance"))
        assert response.status_code == 200
        assert "conformsTo" in json.loads(response.get_body())

    def test_list(self, triggers, style_handler, style_name):
        _put(style_handler, style_name, make_cartosym_bytes(), CARTOSYM)
        response = triggers['styles'](_request("GET"))
        document = json.loads(response.get_body())
        assert [s["id"] for s in document["styles"]] == [style_name]
        assert document["links"][0]["href"] == BASE

    def test_metadata(self, triggers, style_handler, style_name):
        _put(style_handler, style_name, make_cartosym_bytes(), CARTOSYM)
        response = triggers['styles/{style_id}/metadata'](_request(
            "GET", f"/{style_name}/metadata", route_params={"style_id": style_name}
        ))
        assert response.status_code == 200
        assert json.loads(response.get_body())["nativeMediaType"] == CARTOSYM

    def test_metadata_not_found(self, triggers):
        response = triggers['styles/{style_id}/metadata'](_request(
            "GET", "/nowhere/metadata", route_params={"style_id": "nowhere"}
        ))
        assert response.status_code == 404
