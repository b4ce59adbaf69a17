# ============================================================================
# CLAUDE CONTEXT - STYLE TRANSLATOR
# ============================================================================
# EPOCH: 4 - ACTIVE
# STATUS: Service - Canonical model conversions
# PURPOSE: Render CartoSym-JSON rules as Leaflet options or Mapbox GL layers, read Mapbox GL back
# EXPORTS: StyleTranslator, mapbox_to_cartosym
# DEPENDENCIES: Standard library only
# ============================================================================
"""
Conversions between CartoSym-JSON and the JSON client formats.

CartoSym-JSON is the hub every handler converts through; this module holds
the spokes that are plain JSON reshaping:

    StyleTranslator(cartosym).to_leaflet()   path options or a rule table
    StyleTranslator(cartosym).to_mapbox()    version 8 style, no sources
    mapbox_to_cartosym(mapbox)               fill, line and circle layers only

Selectors are CQL2-JSON comparisons of one property against a literal.
Anything richer is dropped from Leaflet output and becomes a match-all
filter in Mapbox output.
"""

import json
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

BLACK = "#000000"
STROKE_SUFFIX = "-stroke"
FILL_SUFFIX = "-fill"

# CQL2 comparison -> Mapbox expression
COMPARISON_OPS = {
    "=": "==",
    "<>": "!=",
    ">": ">",
    "<": "<",
    ">=": ">=",
    "<=": "<=",
}
_CQL2_FOR_MAPBOX = {mapbox_op: cql2_op for cql2_op, mapbox_op in COMPARISON_OPS.items()}


def _compact(options: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in options.items() if value is not None}


def _comparison(selector: Dict[str, Any]) -> Optional[Tuple[str, str, Any]]:
    """(op, property, literal) for a single-property comparison, else None."""
    args = selector.get("args") or []
    if selector.get("op") not in COMPARISON_OPS or len(args) != 2:
        return None
    subject, literal = args
    if not isinstance(subject, dict) or "property" not in subject:
        return None
    return selector["op"], subject["property"], literal


# ============================================================================
# LEAFLET
# ============================================================================

def _leaflet_line(stroke: Dict[str, Any]) -> Dict[str, Any]:
    options = {"color": stroke.get("color")}
    options["weight"] = stroke.get("width", 1)
    options["opacity"] = stroke.get("opacity", 1)
    options["lineCap"] = stroke.get("cap", "round")
    options["lineJoin"] = stroke.get("join", "round")
    return options


def _leaflet_polygon(symbolizer: Dict[str, Any]) -> Dict[str, Any]:
    fill = symbolizer.get("fill") or {}
    options = _leaflet_line(symbolizer.get("stroke") or {})
    options.update(fillColor=fill.get("color"), fillOpacity=fill.get("opacity", 1))
    return options


def _leaflet_marker(symbolizer: Dict[str, Any]) -> Dict[str, Any]:
    marker = symbolizer.get("marker") or {}
    outline = marker.get("stroke") or {}
    body = marker.get("fill") or {}
    return {
        "radius": marker.get("size", 6),
        "color": outline.get("color"),
        "weight": outline.get("width", 1),
        "fillColor": body.get("color"),
        "fillOpacity": body.get("opacity", 1),
    }


_LEAFLET_BUILDERS: Dict[str, Callable[[Dict[str, Any]], Dict[str, Any]]] = {
    "Polygon": _leaflet_polygon,
    "Line": lambda symbolizer: _leaflet_line(symbolizer.get("stroke") or {}),
    "Point": _leaflet_marker,
}


def _leaflet_options(symbolizer: Dict[str, Any]) -> Dict[str, Any]:
    build = _LEAFLET_BUILDERS.get(symbolizer.get("type"))
    return _compact(build(symbolizer)) if build else {}


def _style_function(prop: Optional[str], cases: List[Dict[str, Any]], fallback: Dict[str, Any]) -> str:
    """JavaScript source equivalent to the rule table, for clients that eval it."""
    fallback_js = json.dumps(fallback)
    if not prop or not cases:
        return f"function(feature) {{ return {fallback_js}; }}"

    lines = ["function(feature) {", "  const props = feature.properties || {};"]
    for case in cases:
        lines.append(
            f"  if (props.{prop} === {json.dumps(case['value'])}) return {json.dumps(case['style'])};"
        )
    lines.append(f"  return {fallback_js};")
    lines.append("}")
    return "\n".join(lines)


# ============================================================================
# MAPBOX GL
# ============================================================================

def _mapbox_line(layer_id: str, stroke: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": layer_id,
        "type": "line",
        "layout": {
            "line-join": stroke.get("join", "round"),
            "line-cap": stroke.get("cap", "round"),
        },
        "paint": {
            "line-opacity": stroke.get("opacity", 1),
            "line-width": stroke.get("width", 1),
            "line-color": stroke.get("color", BLACK),
        },
    }


def _mapbox_polygon(name: str, symbolizer: Dict[str, Any]) -> List[Dict[str, Any]]:
    fill = symbolizer.get("fill") or {}
    layers = [{
        "id": name + FILL_SUFFIX,
        "type": "fill",
        "paint": {"fill-opacity": fill.get("opacity", 1), "fill-color": fill.get("color", BLACK)},
    }]
    if symbolizer.get("stroke"):
        layers.append(_mapbox_line(name + STROKE_SUFFIX, symbolizer["stroke"]))
    return layers


def _mapbox_circle(name: str, symbolizer: Dict[str, Any]) -> List[Dict[str, Any]]:
    marker = symbolizer.get("marker") or {}
    outline = marker.get("stroke") or {}
    body = marker.get("fill") or {}
    paint = {
        "circle-radius": marker.get("size", 6),
        "circle-color": body.get("color", BLACK),
        "circle-opacity": body.get("opacity", 1),
        "circle-stroke-width": outline.get("width", 1),
        "circle-stroke-color": outline.get("color", BLACK),
    }
    return [{"id": name, "type": "circle", "paint": paint}]


_MAPBOX_BUILDERS: Dict[str, Callable[[str, Dict[str, Any]], List[Dict[str, Any]]]] = {
    "Polygon": _mapbox_polygon,
    "Line": lambda name, symbolizer: [_mapbox_line(name, symbolizer.get("stroke") or {})],
    "Point": _mapbox_circle,
}


def _mapbox_filter(selector: Dict[str, Any]) -> List[Any]:
    comparison = _comparison(selector)
    if comparison is None:
        return ["all"]
    op, prop, literal = comparison
    return [COMPARISON_OPS[op], ["get", prop], literal]


class StyleTranslator:
    """
    Renders one CartoSym-JSON document in a client format.

    Args:
        cartosym: CartoSym-JSON style as a plain dict
    """

    def __init__(self, cartosym: Dict[str, Any]):
        self.cartosym = cartosym
        self.rules = cartosym.get("stylingRules", [])

    def to_leaflet(self) -> Dict[str, Any]:
        """
        Leaflet path options.

        Without selectors the first rule of each geometry type is merged into
        one options object. With selectors the result is a rule table:

            {"type": "data-driven", "property": ..., "rules": [{"value", "style"}],
             "default": {...}, "styleFunction": "function(feature) {...}"}
        """
        if not any(rule.get("selector") for rule in self.rules):
            merged: Dict[str, Any] = {}
            for geometry in ("Polygon", "Line", "Point"):
                symbolizer = self._first_symbolizer(geometry)
                if symbolizer is not None:
                    merged.update(_leaflet_options(symbolizer))
            return merged

        prop = None
        cases = []
        fallback: Dict[str, Any] = {}
        for rule in self.rules:
            options = _leaflet_options(rule["symbolizer"])
            if not rule.get("selector"):
                fallback = options
                continue
            comparison = _comparison(rule["selector"])
            if comparison is None or comparison[0] != "=":
                logger.debug(f"Leaflet rule table has no slot for selector of rule '{rule.get('name')}'")
                continue
            _, prop, literal = comparison
            cases.append({"value": literal, "style": options})

        return {
            "type": "data-driven",
            "property": prop,
            "rules": cases,
            "default": fallback,
            "styleFunction": _style_function(prop, cases, fallback),
        }

    def to_mapbox(self) -> Dict[str, Any]:
        """Mapbox GL style; sources are left to the client."""
        layers: List[Dict[str, Any]] = []
        for rule in self.rules:
            symbolizer = rule["symbolizer"]
            build = _MAPBOX_BUILDERS.get(symbolizer.get("type"))
            if build is None:
                continue
            rule_layers = build(rule.get("name", "layer"), symbolizer)
            if rule.get("selector"):
                for layer in rule_layers:
                    layer["filter"] = _mapbox_filter(rule["selector"])
            layers += rule_layers

        return {
            "version": 8,
            "name": self.cartosym.get("name", "style"),
            "sources": {},
            "layers": layers,
        }

    def _first_symbolizer(self, geometry: str) -> Optional[Dict[str, Any]]:
        return next(
            (rule["symbolizer"] for rule in self.rules if rule.get("symbolizer", {}).get("type") == geometry),
            None
        )


# ============================================================================
# MAPBOX GL -> CARTOSYM
# ============================================================================

def _selector_from_filter(expression: Any) -> Optional[Dict[str, Any]]:
    if not isinstance(expression, list) or len(expression) != 3:
        return None
    op, getter, literal = expression
    if op not in _CQL2_FOR_MAPBOX:
        return None
    if not (isinstance(getter, list) and len(getter) == 2 and getter[0] == "get"):
        return None
    return {"op": _CQL2_FOR_MAPBOX[op], "args": [{"property": getter[1]}, literal]}


def _stroke_from_line(paint: Dict[str, Any], layout: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "color": paint.get("line-color", BLACK),
        "width": paint.get("line-width", 1),
        "opacity": paint.get("line-opacity", 1),
        "cap": layout.get("line-cap", "round"),
        "join": layout.get("line-join", "round"),
    }


def _marker_from_circle(paint: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "size": paint.get("circle-radius", 6),
        "fill": {"color": paint.get("circle-color", BLACK), "opacity": paint.get("circle-opacity", 1)},
        "stroke": {"color": paint.get("circle-stroke-color", BLACK), "width": paint.get("circle-stroke-width", 1)},
    }


def mapbox_to_cartosym(mapbox: Dict[str, Any]) -> Dict[str, Any]:
    """
    Read a Mapbox GL style into CartoSym-JSON.

    Each fill, line or circle layer becomes a rule. A "<name>-stroke" line
    layer after a "<name>-fill" layer becomes the stroke of that Polygon
    rule, which undoes what to_mapbox() splits apart. Layer types with no
    symbolizer (background, symbol, raster, ...) are skipped.
    """
    rules: List[Dict[str, Any]] = []
    fills: Dict[str, Dict[str, Any]] = {}

    for layer in mapbox.get("layers", []):
        layer_id = layer.get("id", "layer")
        kind = layer.get("type")
        paint = layer.get("paint") or {}

        if kind == "fill":
            name = layer_id[:-len(FILL_SUFFIX)] if layer_id.endswith(FILL_SUFFIX) else layer_id
            symbolizer = {
                "type": "Polygon",
                "fill": {"color": paint.get("fill-color", BLACK), "opacity": paint.get("fill-opacity", 1)},
            }
            fills[name] = symbolizer
        elif kind == "line":
            name = layer_id
            stroke = _stroke_from_line(paint, layout=layer.get("layout") or {})
            owner = layer_id[:-len(STROKE_SUFFIX)] if layer_id.endswith(STROKE_SUFFIX) else None
            if owner in fills:
                fills[owner]["stroke"] = stroke
                continue
            symbolizer = {"type": "Line", "stroke": stroke}
        elif kind == "circle":
            name = layer_id
            symbolizer = {"type": "Point", "marker": _marker_from_circle(paint)}
        else:
            logger.debug(f"Skipping Mapbox layer '{layer_id}': type '{kind}' has no symbolizer")
            continue

        rule: Dict[str, Any] = {"name": name, "symbolizer": symbolizer}
        selector = _selector_from_filter(layer.get("filter"))
        if selector:
            rule["selector"] = selector
        rules.append(rule)

    return {"name": mapbox.get("name") or "style", "stylingRules": rules}
