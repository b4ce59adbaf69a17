"""
NegotiationEngine tests: passthrough, first-acceptable-wins, failures.
"""

import pytest

from styles_api.exceptions import UnsupportedFormatError, UnsupportedMediaTypeError
from styles_api.handlers import LEAFLET_HANDLER, MAPBOX_HANDLER, SLD_HANDLER
from styles_api.media_types import MediaType, parse_accept_header
from styles_api.negotiation import NegotiationEngine
from styles_api.registry import FormatRegistry

SLD_10 = MediaType.parse("application/vnd.ogc.sld+xml")


@pytest.fixture
def engine(registry):
    return NegotiationEngine(registry)


class TestPassthrough:

    @pytest.mark.parametrize("accept", [None, "", "*/*", "*/*;q=0.1"])
    def test_no_preference_returns_native(self, engine, accept):
        result = engine.negotiate(SLD_10, parse_accept_header(accept))
        assert result.is_native
        assert result.media_type == SLD_10

    def test_exact_native_match(self, engine):
        result = engine.negotiate(SLD_10, parse_accept_header("application/vnd.ogc.sld+xml"))
        assert result.is_native

    def test_wildcard_compatible_with_native(self, engine):
        result = engine.negotiate(SLD_10, parse_accept_header("application/*"))
        assert result.is_native

    def test_structured_wildcard_compatible_with_native(self, engine):
        result = engine.negotiate(SLD_10, parse_accept_header("application/*+xml"))
        assert result.is_native

    def test_native_match_with_parameters(self, engine):
        result = engine.negotiate(SLD_10, parse_accept_header("application/vnd.ogc.sld+xml;charset=utf-8"))
        assert result.is_native
        assert result.media_type == SLD_10

    def test_native_not_in_registry_still_passes_through(self):
        empty = NegotiationEngine(FormatRegistry())
        result = empty.negotiate(SLD_10, parse_accept_header("application/vnd.ogc.sld+xml"))
        assert result.is_native


class TestTranscode:

    def test_registered_type_transcodes(self, engine):
        result = engine.negotiate(SLD_10, parse_accept_header("application/vnd.mapbox.style+json"))
        assert not result.is_native
        assert result.handler is MAPBOX_HANDLER
        assert result.version == "8"
        assert result.media_type.mime_type == "application/vnd.mapbox.style+json"

    def test_other_version_of_same_format(self, engine):
        result = engine.negotiate(SLD_10, parse_accept_header("application/vnd.ogc.se+xml"))
        assert result.handler is SLD_HANDLER
        assert result.version == "1.1.0"

    def test_output_only_format_can_be_requested(self, engine):
        result = engine.negotiate(SLD_10, parse_accept_header("application/vnd.leaflet.style+json"))
        assert result.handler is LEAFLET_HANDLER

    def test_first_acceptable_wins_over_later_native(self, engine):
        accept = "application/vnd.mapbox.style+json, application/vnd.ogc.sld+xml"
        result = engine.negotiate(SLD_10, parse_accept_header(accept))
        assert result.handler is MAPBOX_HANDLER

    def test_earlier_native_wins_over_transcode(self, engine):
        accept = "application/vnd.ogc.sld+xml, application/vnd.mapbox.style+json"
        result = engine.negotiate(SLD_10, parse_accept_header(accept))
        assert result.is_native

    def test_quality_values_ignored(self, engine):
        accept = "application/vnd.mapbox.style+json;q=0.1, application/vnd.ogc.sld+xml;q=1.0"
        result = engine.negotiate(SLD_10, parse_accept_header(accept))
        assert result.handler is MAPBOX_HANDLER

    def test_unknown_types_skipped(self, engine):
        accept = "text/html, image/png, application/vnd.ogc.cartosym+json"
        result = engine.negotiate(SLD_10, parse_accept_header(accept))
        assert result.handler.format == "cartosym"


class TestNoMatch:

    def test_raises_with_every_requested_type(self, engine):
        accept = "text/html, image/png;q=0.5"
        with pytest.raises(UnsupportedFormatError) as exc_info:
            engine.negotiate(SLD_10, parse_accept_header(accept))
        assert exc_info.value.requested == ["text/html", "image/png;q=0.5"]
        assert "text/html" in exc_info.value.message
        assert "image/png;q=0.5" in exc_info.value.message

    def test_is_unsupported_media_type_with_406(self, engine):
        with pytest.raises(UnsupportedMediaTypeError) as exc_info:
            engine.negotiate(SLD_10, parse_accept_header("text/html"))
        assert exc_info.value.status_code == 406
        assert exc_info.value.to_dict()["requested"] == ["text/html"]
