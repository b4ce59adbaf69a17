"""
FormatRegistry tests: registration, lookup, last-writer-wins.
"""

import pytest

from styles_api.exceptions import FormatHandlerNotFoundError
from styles_api.handlers import (
    CARTOSYM_HANDLER,
    LEAFLET_HANDLER,
    MAPBOX_HANDLER,
    SLD_HANDLER,
    FormatHandler,
)
from styles_api.media_types import MediaType
from styles_api.registry import FormatRegistry, build_registry


def _fake_handler(format_name, mime_type, version="1"):
    return FormatHandler(
        format=format_name,
        versions=(version,),
        mime_types={version: mime_type},
        extension="txt",
        encoder=lambda style, v: b"",
        validator=lambda content, v: [],
        parser=lambda content, v: {}
    )


class TestRegistryLookup:

    def test_every_declared_version_registered(self, registry):
        assert registry.resolve_by_mime_type("application/vnd.ogc.sld+xml") == (SLD_HANDLER, "1.0.0")
        assert registry.resolve_by_mime_type("application/vnd.ogc.se+xml") == (SLD_HANDLER, "1.1.0")

    def test_lookup_ignores_parameters(self, registry):
        resolved = registry.resolve_by_mime_type("application/vnd.mapbox.style+json; charset=utf-8")
        assert resolved == (MAPBOX_HANDLER, "8")

    def test_lookup_accepts_media_type(self, registry):
        resolved = registry.resolve_by_mime_type(MediaType.parse("application/vnd.ogc.cartosym+json"))
        assert resolved == (CARTOSYM_HANDLER, "1.0")

    def test_unknown_mime_type(self, registry):
        assert registry.resolve_by_mime_type("application/pdf") is None
        assert "application/pdf" not in registry

    def test_wildcards_are_not_resolved(self, registry):
        assert registry.resolve_by_mime_type("application/*") is None

    def test_by_format_name(self, registry):
        assert registry.resolve_by_format_name("leaflet") is LEAFLET_HANDLER

    def test_by_unknown_format_name(self, registry):
        with pytest.raises(FormatHandlerNotFoundError, match="geocss"):
            registry.resolve_by_format_name("geocss")

    def test_media_types_in_registration_order(self, registry):
        assert [m.mime_type for m in registry.media_types] == [
            "application/vnd.ogc.cartosym+json",
            "application/vnd.mapbox.style+json",
            "application/vnd.leaflet.style+json",
            "application/vnd.ogc.sld+xml",
            "application/vnd.ogc.se+xml",
        ]
        assert len(registry) == 5


class TestRegistryReplacement:

    def test_last_writer_wins(self):
        first = _fake_handler("first", "text/x-style")
        second = _fake_handler("second", "text/x-style")
        registry = FormatRegistry([first, second])
        handler, _ = registry.resolve_by_mime_type("text/x-style")
        assert handler is second
        assert len(registry) == 1

    def test_replaced_handler_still_known_by_name(self):
        first = _fake_handler("first", "text/x-style")
        second = _fake_handler("second", "text/x-style")
        registry = FormatRegistry([first, second])
        assert registry.resolve_by_format_name("first") is first

    def test_register_same_handler_twice(self):
        registry = FormatRegistry()
        registry.register(MAPBOX_HANDLER)
        registry.register(MAPBOX_HANDLER)
        assert registry.handlers == (MAPBOX_HANDLER,)


class TestBuildRegistry:

    def test_all_handlers_by_default(self):
        registry = build_registry()
        assert {h.format for h in registry.handlers} == {"cartosym", "mapbox", "leaflet", "sld"}

    def test_selected_formats(self):
        registry = build_registry(["SLD", "cartosym"])
        assert [h.format for h in registry.handlers] == ["cartosym", "sld"]
        assert registry.resolve_by_mime_type("application/vnd.mapbox.style+json") is None

    def test_unknown_format_rejected(self):
        with pytest.raises(FormatHandlerNotFoundError, match="ysld"):
            build_registry(["sld", "ysld"])


class TestFormatHandler:

    def test_requires_versions(self):
        with pytest.raises(ValueError, match="no versions"):
            FormatHandler(
                format="broken", versions=(), mime_types={}, extension="x",
                encoder=lambda s, v: b"", validator=lambda c, v: []
            )

    def test_requires_mime_type_per_version(self):
        with pytest.raises(ValueError, match="2.0"):
            FormatHandler(
                format="broken", versions=("1.0", "2.0"), mime_types={"1.0": "text/x"},
                extension="x", encoder=lambda s, v: b"", validator=lambda c, v: []
            )

    def test_default_version_is_first(self):
        assert SLD_HANDLER.default_version == "1.0.0"
        assert SLD_HANDLER.mime_type() == "application/vnd.ogc.sld+xml"

    def test_version_for_mime_type(self):
        assert SLD_HANDLER.version_for_mime_type("application/vnd.ogc.se+xml") == "1.1.0"

    def test_leaflet_is_output_only(self):
        assert not LEAFLET_HANDLER.is_readable
        assert CARTOSYM_HANDLER.is_readable
