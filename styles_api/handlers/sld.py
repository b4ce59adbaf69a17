"""
Styled Layer Descriptor handler (SLD 1.0.0 and SLD/SE 1.1.0).

Covers the subset of SLD that maps onto CartoSym-JSON: one NamedLayer with
one UserStyle, rules with an optional single binary comparison filter, and
Polygon/Line/Point symbolizers with solid fills and strokes. Point markers
are written as a circle WellKnownName.

Version differences:
    1.0.0 - everything in the sld namespace, CssParameter
    1.1.0 - rules and symbolizers in the se namespace, SvgParameter
"""

import re
import xml.etree.ElementTree as ET
from typing import Any, Dict, List, Optional

from .base import FormatHandler

SLD_10_MIME_TYPE = "application/vnd.ogc.sld+xml"
SLD_11_MIME_TYPE = "application/vnd.ogc.se+xml"

SLD_NS = "http://www.opengis.net/sld"
SE_NS = "http://www.opengis.net/se"
OGC_NS = "http://www.opengis.net/ogc"

ET.register_namespace("sld", SLD_NS)
ET.register_namespace("se", SE_NS)
ET.register_namespace("ogc", OGC_NS)

# CQL2 operator <-> OGC filter element
FILTER_OPS = {
    "=": "PropertyIsEqualTo",
    "<>": "PropertyIsNotEqualTo",
    "<": "PropertyIsLessThan",
    ">": "PropertyIsGreaterThan",
    "<=": "PropertyIsLessThanOrEqualTo",
    ">=": "PropertyIsGreaterThanOrEqualTo"
}
FILTER_OPS_REVERSE = {v: k for k, v in FILTER_OPS.items()}

SYMBOLIZER_TYPES = {
    "PolygonSymbolizer": "Polygon",
    "LineSymbolizer": "Line",
    "PointSymbolizer": "Point"
}

HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


class _Dialect:
    """Namespace layout of one SLD version."""

    def __init__(self, version: str):
        self.version = version
        self.se = SE_NS if version == "1.1.0" else SLD_NS
        self.param = "SvgParameter" if version == "1.1.0" else "CssParameter"

    def sld(self, tag: str) -> str:
        return f"{{{SLD_NS}}}{tag}"

    def sym(self, tag: str) -> str:
        return f"{{{self.se}}}{tag}"

    @staticmethod
    def ogc(tag: str) -> str:
        return f"{{{OGC_NS}}}{tag}"


def _literal_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _literal_value(text: Optional[str]) -> Any:
    text = (text or "").strip()
    for cast in (int, float):
        try:
            return cast(text)
        except ValueError:
            continue
    return text


# ============================================================================
# ENCODING
# ============================================================================

def _add_params(parent: ET.Element, d: _Dialect, params: Dict[str, Any]) -> None:
    for name, value in params.items():
        if value is None:
            continue
        param = ET.SubElement(parent, d.sym(d.param), {"name": name})
        param.text = _literal_text(value)


def _add_fill(parent: ET.Element, d: _Dialect, fill: Optional[Dict[str, Any]]) -> None:
    if fill:
        element = ET.SubElement(parent, d.sym("Fill"))
        _add_params(element, d, {"fill": fill.get("color"), "fill-opacity": fill.get("opacity")})


def _add_stroke(parent: ET.Element, d: _Dialect, stroke: Optional[Dict[str, Any]]) -> None:
    if stroke:
        element = ET.SubElement(parent, d.sym("Stroke"))
        _add_params(element, d, {
            "stroke": stroke.get("color"),
            "stroke-width": stroke.get("width"),
            "stroke-opacity": stroke.get("opacity"),
            "stroke-linecap": stroke.get("cap"),
            "stroke-linejoin": stroke.get("join")
        })


def _add_filter(parent: ET.Element, d: _Dialect, selector: Dict[str, Any]) -> None:
    op_tag = FILTER_OPS.get(selector.get("op"))
    args = selector.get("args", [])
    if not op_tag or len(args) != 2 or not isinstance(args[0], dict):
        return
    filter_el = ET.SubElement(parent, d.ogc("Filter"))
    comparison = ET.SubElement(filter_el, d.ogc(op_tag))
    ET.SubElement(comparison, d.ogc("PropertyName")).text = str(args[0].get("property"))
    ET.SubElement(comparison, d.ogc("Literal")).text = _literal_text(args[1])


def _add_symbolizer(parent: ET.Element, d: _Dialect, symbolizer: Dict[str, Any]) -> None:
    sym_type = symbolizer.get("type")
    if sym_type == "Polygon":
        element = ET.SubElement(parent, d.sym("PolygonSymbolizer"))
        _add_fill(element, d, symbolizer.get("fill"))
        _add_stroke(element, d, symbolizer.get("stroke"))
    elif sym_type == "Line":
        element = ET.SubElement(parent, d.sym("LineSymbolizer"))
        _add_stroke(element, d, symbolizer.get("stroke"))
    elif sym_type == "Point":
        marker = symbolizer.get("marker") or {}
        element = ET.SubElement(parent, d.sym("PointSymbolizer"))
        graphic = ET.SubElement(element, d.sym("Graphic"))
        mark = ET.SubElement(graphic, d.sym("Mark"))
        ET.SubElement(mark, d.sym("WellKnownName")).text = "circle"
        _add_fill(mark, d, marker.get("fill"))
        _add_stroke(mark, d, marker.get("stroke"))
        ET.SubElement(graphic, d.sym("Size")).text = _literal_text(marker.get("size", 6))


def encode_sld(style: Dict[str, Any], version: str) -> bytes:
    d = _Dialect(version)
    root = ET.Element(d.sld("StyledLayerDescriptor"), {"version": version})
    named_layer = ET.SubElement(root, d.sld("NamedLayer"))
    ET.SubElement(named_layer, d.sym("Name")).text = style.get("name", "style")
    user_style = ET.SubElement(named_layer, d.sld("UserStyle"))
    ET.SubElement(user_style, d.sym("Name")).text = style.get("name", "style")
    if style.get("title"):
        ET.SubElement(user_style, d.sym("Description" if version == "1.1.0" else "Title")).text = style["title"]
    feature_type_style = ET.SubElement(user_style, d.sym("FeatureTypeStyle"))

    for rule in style.get("stylingRules", []):
        rule_el = ET.SubElement(feature_type_style, d.sym("Rule"))
        ET.SubElement(rule_el, d.sym("Name")).text = rule.get("name", "rule")
        if rule.get("selector"):
            _add_filter(rule_el, d, rule["selector"])
        _add_symbolizer(rule_el, d, rule.get("symbolizer") or {})

    return ET.tostring(root, encoding="utf-8", xml_declaration=True)


# ============================================================================
# PARSING
# ============================================================================

def _read_params(element: Optional[ET.Element], d: _Dialect) -> Dict[str, str]:
    if element is None:
        return {}
    return {
        p.get("name"): (p.text or "").strip()
        for p in element.findall(d.sym(d.param))
    }


def _read_fill(element: Optional[ET.Element], d: _Dialect) -> Optional[Dict[str, Any]]:
    params = _read_params(element, d)
    if element is None or "fill" not in params:
        return None
    fill = {"color": params["fill"]}
    if "fill-opacity" in params:
        fill["opacity"] = float(params["fill-opacity"])
    return fill


def _read_stroke(element: Optional[ET.Element], d: _Dialect) -> Optional[Dict[str, Any]]:
    params = _read_params(element, d)
    if element is None or "stroke" not in params:
        return None
    stroke = {"color": params["stroke"]}
    if "stroke-width" in params:
        stroke["width"] = float(params["stroke-width"])
    if "stroke-opacity" in params:
        stroke["opacity"] = float(params["stroke-opacity"])
    if "stroke-linecap" in params:
        stroke["cap"] = params["stroke-linecap"]
    if "stroke-linejoin" in params:
        stroke["join"] = params["stroke-linejoin"]
    return stroke


def _read_symbolizer(element: ET.Element, d: _Dialect) -> Dict[str, Any]:
    local = element.tag.split("}", 1)[-1]
    sym_type = SYMBOLIZER_TYPES[local]
    symbolizer: Dict[str, Any] = {"type": sym_type}

    if sym_type == "Point":
        graphic = element.find(d.sym("Graphic"))
        mark = graphic.find(d.sym("Mark")) if graphic is not None else None
        marker: Dict[str, Any] = {}
        size = graphic.find(d.sym("Size")) if graphic is not None else None
        if size is not None and size.text:
            marker["size"] = float(size.text)
        if mark is not None:
            fill = _read_fill(mark.find(d.sym("Fill")), d)
            stroke = _read_stroke(mark.find(d.sym("Stroke")), d)
            if fill:
                marker["fill"] = fill
            if stroke:
                marker["stroke"] = stroke
        symbolizer["marker"] = marker
        return symbolizer

    fill = _read_fill(element.find(d.sym("Fill")), d)
    stroke = _read_stroke(element.find(d.sym("Stroke")), d)
    if fill:
        symbolizer["fill"] = fill
    if stroke:
        symbolizer["stroke"] = stroke
    return symbolizer


def _read_selector(rule_el: ET.Element, d: _Dialect) -> Optional[Dict[str, Any]]:
    filter_el = rule_el.find(d.ogc("Filter"))
    if filter_el is None or len(filter_el) != 1:
        return None
    comparison = filter_el[0]
    op = FILTER_OPS_REVERSE.get(comparison.tag.split("}", 1)[-1])
    prop = comparison.find(d.ogc("PropertyName"))
    literal = comparison.find(d.ogc("Literal"))
    if op is None or prop is None or literal is None:
        return None
    return {"op": op, "args": [{"property": (prop.text or "").strip()}, _literal_value(literal.text)]}


def _iter_symbolizers(rule_el: ET.Element, d: _Dialect):
    for child in rule_el:
        if child.tag in (d.sym(tag) for tag in SYMBOLIZER_TYPES):
            yield child


def parse_sld(content: str, version: str) -> Dict[str, Any]:
    """
    Read an SLD document into CartoSym-JSON.

    Rules with several symbolizers become one CartoSym rule per symbolizer.
    """
    d = _Dialect(version)
    root = ET.fromstring(content)
    named_layer = root.find(d.sld("NamedLayer"))
    user_style = named_layer.find(d.sld("UserStyle")) if named_layer is not None else None

    name_el = user_style.find(d.sym("Name")) if user_style is not None else None
    if name_el is None and named_layer is not None:
        name_el = named_layer.find(d.sym("Name"))
    style: Dict[str, Any] = {"name": (name_el.text or "style").strip() if name_el is not None else "style"}

    title_el = None
    if user_style is not None:
        title_el = user_style.find(d.sym("Description" if version == "1.1.0" else "Title"))
    if title_el is not None and title_el.text:
        style["title"] = title_el.text.strip()

    rules = []
    for rule_el in root.iter(d.sym("Rule")):
        rule_name_el = rule_el.find(d.sym("Name"))
        rule_name = (rule_name_el.text or "rule").strip() if rule_name_el is not None else "rule"
        selector = _read_selector(rule_el, d)
        symbolizers = list(_iter_symbolizers(rule_el, d))
        for index, sym_el in enumerate(symbolizers):
            rule = {
                "name": rule_name if len(symbolizers) == 1 else f"{rule_name}-{index + 1}",
                "symbolizer": _read_symbolizer(sym_el, d)
            }
            if selector:
                rule["selector"] = selector
            rules.append(rule)

    style["stylingRules"] = rules
    return style


# ============================================================================
# VALIDATION
# ============================================================================

def validate_sld(content: str, version: str) -> List[str]:
    """Collect every structural error in an SLD document."""
    try:
        root = ET.fromstring(content)
    except ET.ParseError as e:
        return [f"XML is not well-formed: {e}"]

    d = _Dialect(version)
    errors = []

    if root.tag != d.sld("StyledLayerDescriptor"):
        errors.append(f"Root element must be sld:StyledLayerDescriptor, found {root.tag}")
        return errors

    declared = root.get("version")
    if declared != version:
        errors.append(f"version attribute must be '{version}', found '{declared}'")

    if root.find(d.sld("NamedLayer")) is None:
        errors.append("StyledLayerDescriptor has no NamedLayer")

    rules = list(root.iter(d.sym("Rule")))
    if not rules:
        errors.append("Style declares no Rule elements")

    for index, rule_el in enumerate(rules, start=1):
        if not list(_iter_symbolizers(rule_el, d)):
            errors.append(f"Rule {index} has no Polygon, Line or Point symbolizer")
        for param in rule_el.iter(d.sym(d.param)):
            name = param.get("name")
            value = (param.text or "").strip()
            if name in ("fill", "stroke") and not HEX_COLOR.match(value):
                errors.append(f"Rule {index}: {name} '{value}' is not a hex color")
            elif name in ("fill-opacity", "stroke-opacity", "stroke-width"):
                try:
                    float(value)
                except ValueError:
                    errors.append(f"Rule {index}: {name} '{value}' is not a number")
        for size in rule_el.iter(d.sym("Size")):
            if not size.text:
                continue
            value = size.text.strip()
            try:
                float(value)
            except ValueError:
                errors.append(f"Rule {index}: Size '{value}' is not a number")

    if not errors:
        # Whatever passes must also be readable for transcoding
        try:
            parse_sld(content, version)
        except (ValueError, KeyError, AttributeError, TypeError) as e:
            errors.append(f"Style cannot be read as SLD {version}: {e}")
    return errors


SLD_HANDLER = FormatHandler(
    format="sld",
    versions=("1.0.0", "1.1.0"),
    mime_types={"1.0.0": SLD_10_MIME_TYPE, "1.1.0": SLD_11_MIME_TYPE},
    extension="sld",
    encoder=encode_sld,
    validator=validate_sld,
    parser=parse_sld,
    title="OGC SLD",
    specification="http://www.opengis.net/def/standard/opengis/sld"
)
