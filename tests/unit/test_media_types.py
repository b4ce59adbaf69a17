"""
MediaType tests: parsing, wildcard matching, Accept header order.
"""

import pytest

from styles_api.media_types import (
    ALL,
    InvalidMediaTypeError,
    MediaType,
    is_accept_all,
    parse_accept_header,
)


class TestMediaTypeParse:

    def test_type_and_subtype_lowercased(self):
        media_type = MediaType.parse("Application/VND.OGC.SLD+XML")
        assert media_type.type == "application"
        assert media_type.subtype == "vnd.ogc.sld+xml"

    def test_parameters_parsed(self):
        media_type = MediaType.parse('application/json; charset="UTF-8"; q=0.5')
        assert media_type.charset == "UTF-8"
        assert media_type.parameters["q"] == "0.5"

    def test_quoted_semicolon_kept_in_value(self):
        media_type = MediaType.parse('text/plain; note="a;b"')
        assert media_type.parameters["note"] == "a;b"

    def test_single_star_is_all(self):
        assert MediaType.parse("*") == ALL

    def test_parameter_order_does_not_matter(self):
        a = MediaType.parse("text/plain; a=1; b=2")
        b = MediaType.parse("text/plain; b=2; a=1")
        assert a == b
        assert hash(a) == hash(b)

    @pytest.mark.parametrize("text", ["", "   ", "json", "a/b/c", "/json", "*/json", "text/plain; broken"])
    def test_malformed_rejected(self, text):
        with pytest.raises(InvalidMediaTypeError):
            MediaType.parse(text)

    def test_invalid_media_type_is_value_error(self):
        with pytest.raises(ValueError):
            MediaType.parse(None)

    def test_str_drops_nothing(self):
        assert str(MediaType.parse("text/plain;charset=utf-8")) == "text/plain;charset=utf-8"

    def test_suffix(self):
        assert MediaType.parse("application/vnd.mapbox.style+json").suffix == "json"
        assert MediaType.parse("text/plain").suffix is None


class TestMediaTypeMatching:

    def test_all_includes_everything(self):
        assert ALL.includes(MediaType.parse("application/vnd.ogc.sld+xml"))

    def test_type_wildcard(self):
        assert MediaType.parse("application/*").includes(MediaType.parse("application/json"))
        assert not MediaType.parse("text/*").includes(MediaType.parse("application/json"))

    def test_structured_suffix_wildcard(self):
        wildcard = MediaType.parse("application/*+json")
        assert wildcard.is_wildcard_subtype
        assert wildcard.includes(MediaType.parse("application/vnd.mapbox.style+json"))
        assert not wildcard.includes(MediaType.parse("application/vnd.ogc.sld+xml"))

    def test_parameters_ignored(self):
        a = MediaType.parse("application/json; charset=utf-8")
        assert a.includes(MediaType.parse("application/json"))

    def test_compatibility_is_symmetric(self):
        concrete = MediaType.parse("application/vnd.ogc.sld+xml")
        wildcard = MediaType.parse("application/*")
        assert concrete.is_compatible_with(wildcard)
        assert wildcard.is_compatible_with(concrete)

    def test_different_concrete_types_incompatible(self):
        a = MediaType.parse("application/vnd.ogc.sld+xml")
        b = MediaType.parse("application/vnd.ogc.se+xml")
        assert not a.is_compatible_with(b)


class TestAcceptHeader:

    def test_empty_header(self):
        assert parse_accept_header(None) == []
        assert parse_accept_header("  ") == []

    def test_listing_order_kept_despite_q(self):
        parsed = parse_accept_header("text/html;q=0.1, application/json;q=0.9")
        assert [m.mime_type for m in parsed] == ["text/html", "application/json"]

    def test_empty_entries_skipped(self):
        parsed = parse_accept_header("text/html,,application/json,")
        assert len(parsed) == 2

    def test_malformed_entry_raises(self):
        with pytest.raises(InvalidMediaTypeError):
            parse_accept_header("text/html, nonsense")

    def test_accept_all(self):
        assert is_accept_all([])
        assert is_accept_all(parse_accept_header("*/*"))
        assert is_accept_all(parse_accept_header("*/*;q=0.8"))
        assert not is_accept_all(parse_accept_header("*/*, application/json"))
        assert not is_accept_all(parse_accept_header("application/*"))
