"""SVG document parser: facade over ElementTree + svgpathtools + shapely.

Converts raw SVG string → SvgDocument: an immutable, paint-ordered Element
snapshot plus the mutable WorkingTree it was read from.
"""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass

from shapely.geometry import MultiPoint
from svgpathtools import parse_path

from svgunmask.engine.elements import Element
from svgunmask.errors import SvgParseError
from svgunmask.svg.serializer import serialize_tree
from svgunmask.svg.tree import WorkingTree, local_name
from svgunmask.utils.geometry import BBox, union_bbox

logger = logging.getLogger(__name__)

DRAWABLE_TAGS = frozenset(
    {"path", "rect", "circle", "ellipse", "polygon", "polyline", "line", "text", "image", "use", "g"}
)

# Containers whose content is never painted directly
_NON_RENDERED_TAGS = frozenset(
    {
        "defs", "clipPath", "mask", "symbol", "pattern", "marker",
        "linearGradient", "radialGradient", "filter",
        "style", "script", "title", "desc", "metadata", "foreignObject",
    }
)

_INHERITED_PROPS = ("fill", "stroke", "stroke-width", "font-size")
_RELEVANT_ATTRS = ("class", "style", "clip-path", "mask", "filter")

# W3C default replaced-element size when width/height are absent
_DEFAULT_CANVAS = (300.0, 150.0)
# Box used for elements whose geometry cannot be derived (e.g. <use> without size)
_FALLBACK_SIZE = 100.0
_DEFAULT_FONT_SIZE = 16.0
# Average glyph advance and ascent as fractions of font-size
_GLYPH_WIDTH = 0.6
_ASCENT = 0.8

_LEADING_JUNK_RE = re.compile(r"^[^<]*")
_LEADING_JUNK_BYTES_RE = re.compile(rb"^[^<]*")
_UTF8_BOM = b"\xef\xbb\xbf"
_NUMBER_RE = re.compile(r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")


@dataclass
class SvgDocument:
    """Parsed SVG: element snapshot (ascending z_index) and its working tree."""

    elements: tuple[Element, ...]
    tree: WorkingTree
    canvas_x: float = 0.0
    canvas_y: float = 0.0
    canvas_width: float = _DEFAULT_CANVAS[0]
    canvas_height: float = _DEFAULT_CANVAS[1]

    def get_element(self, element_id: str) -> Element | None:
        for element in self.elements:
            if element.id == element_id:
                return element
        return None

    @property
    def dimensions(self) -> dict[str, float]:
        return {
            "x": self.canvas_x,
            "y": self.canvas_y,
            "width": self.canvas_width,
            "height": self.canvas_height,
        }

    def to_svg(self) -> str:
        return serialize_tree(self.tree)


def parse_svg(svg_text: str | bytes) -> SvgDocument:
    """Parse raw SVG markup. Raises SvgParseError for malformed XML or a non-<svg> root.

    Bytes are decoded by the XML parser, honouring the encoding declaration.
    """
    if isinstance(svg_text, bytes):
        text: str | bytes = svg_text.strip().removeprefix(_UTF8_BOM)
        text = _LEADING_JUNK_BYTES_RE.sub(b"", text, count=1).replace(b"\x00", b"")
    else:
        text = svg_text.strip().lstrip("\ufeff")
        text = _LEADING_JUNK_RE.sub("", text, count=1).replace("\x00", "")

    try:
        root = ET.fromstring(text)
    except ET.ParseError as e:
        raise SvgParseError(f"Malformed SVG markup: {e}") from e

    if local_name(root.tag) != "svg":
        raise SvgParseError("No valid <svg> root element found in the provided content")

    walker = _DocumentWalker(root)
    elements = walker.walk()

    doc = SvgDocument(elements=elements, tree=WorkingTree(root, walker.nodes))
    doc.canvas_x, doc.canvas_y, doc.canvas_width, doc.canvas_height = _canvas_box(root)

    logger.info(
        "Parsed SVG: %d elements, canvas %.0f×%.0f",
        len(elements),
        doc.canvas_width,
        doc.canvas_height,
    )
    return doc


class _DocumentWalker:
    """Pre-order traversal assigning ids, paint order and resolved style."""

    def __init__(self, root: ET.Element) -> None:
        self.root = root
        self.nodes: dict[str, ET.Element] = {}
        self._explicit_ids = {n.get("id") for n in root.iter() if n.get("id")}
        self._used_ids: set[str] = set()
        self._z_counter = 0
        self._elements: list[Element] = []

    def walk(self) -> tuple[Element, ...]:
        self._visit_children(self.root, None, _resolve_style(self.root, {}))
        self._elements.sort(key=lambda e: e.z_index)
        return tuple(self._elements)

    def _visit_children(
        self, node: ET.Element, parent_id: str | None, inherited: dict[str, str]
    ) -> list[str]:
        """Visit drawable descendants; returns ids of the kept direct drawable children."""
        kept: list[str] = []
        for child in node:
            tag = local_name(child.tag)
            if not tag or tag in _NON_RENDERED_TAGS:
                continue
            style = _resolve_style(child, inherited)
            if tag not in DRAWABLE_TAGS:
                # <a>, <switch>, nested <svg>: transparent for layering
                kept.extend(self._visit_children(child, parent_id, style))
                continue
            element_id = self._visit_drawable(child, tag, parent_id, style)
            if element_id is not None:
                kept.append(element_id)
        return kept

    def _visit_drawable(
        self, node: ET.Element, tag: str, parent_id: str | None, style: dict[str, str]
    ) -> str | None:
        z_index = self._z_counter
        self._z_counter += 1
        element_id = self._assign_id(node, z_index)
        self.nodes[element_id] = node

        children: list[str] = []
        if tag == "g":
            children = self._visit_children(node, element_id, style)

        bbox = compute_bbox(node, style)
        if bbox.is_empty:
            logger.debug("Skipping %s %s: zero-area bbox", tag, element_id)
            return None

        self._elements.append(
            Element(
                id=element_id,
                tag_name=tag,
                bbox=bbox,
                z_index=z_index,
                opacity=min(1.0, max(0.0, _number(style.get("opacity"), 1.0))),
                fill=style.get("fill", "none"),
                stroke=style.get("stroke", "none"),
                stroke_width=_number(style.get("stroke-width"), 0.0),
                parent_id=parent_id,
                children=tuple(children),
                path_data=node.get("d") if tag == "path" else None,
                transform=node.get("transform", ""),
                attributes={a: node.get(a) for a in _RELEVANT_ATTRS if node.get(a)},
            )
        )
        return element_id

    def _assign_id(self, node: ET.Element, z_index: int) -> str:
        explicit = node.get("id")
        if explicit and explicit not in self._used_ids:
            self._used_ids.add(explicit)
            return explicit
        if explicit:
            logger.warning("Duplicate element id %r, assigning a generated id", explicit)

        n = z_index
        candidate = f"unmask-{n}"
        while candidate in self._explicit_ids or candidate in self._used_ids:
            n += 1
            candidate = f"unmask-{n}"
        self._used_ids.add(candidate)
        return candidate


# ── Style ────────────────────────────────────────────────────────────────


def _parse_style_attr(style: str | None) -> dict[str, str]:
    declarations: dict[str, str] = {}
    for part in (style or "").split(";"):
        if ":" in part:
            key, value = part.split(":", 1)
            declarations[key.strip()] = value.strip()
    return declarations


def _resolve_style(node: ET.Element, inherited: dict[str, str]) -> dict[str, str]:
    """Own style declaration > own presentation attribute > inherited value."""
    own = _parse_style_attr(node.get("style"))
    resolved = {k: v for k, v in inherited.items() if k in _INHERITED_PROPS}
    for prop in _INHERITED_PROPS:
        value = own.get(prop) or node.get(prop)
        if value and value.strip() != "inherit":
            resolved[prop] = value.strip()
    # opacity applies to the node itself and is not inherited
    resolved["opacity"] = own.get("opacity") or node.get("opacity") or "1"
    return resolved


def _number(value: str | None, default: float = 0.0) -> float:
    if value is None:
        return default
    m = _NUMBER_RE.search(value)
    if not m:
        return default
    try:
        return float(m.group(0))
    except ValueError:
        return default


def _numbers(value: str | None) -> list[float]:
    return [float(m) for m in _NUMBER_RE.findall(value or "")]


# ── Bounding boxes ───────────────────────────────────────────────────────


def compute_bbox(node: ET.Element, style: dict[str, str] | None = None) -> BBox:
    """Untransformed bounding box of a drawable node in user units."""
    tag = local_name(node.tag)
    style = style if style is not None else _resolve_style(node, {})

    def num(attr: str) -> float:
        return _number(node.get(attr))

    if tag == "rect":
        return BBox(num("x"), num("y"), num("width"), num("height"))

    if tag == "circle":
        cx, cy, r = num("cx"), num("cy"), num("r")
        return BBox(cx - r, cy - r, 2 * r, 2 * r)

    if tag == "ellipse":
        cx, cy, rx, ry = num("cx"), num("cy"), num("rx"), num("ry")
        return BBox(cx - rx, cy - ry, 2 * rx, 2 * ry)

    if tag == "line":
        x1, y1, x2, y2 = num("x1"), num("y1"), num("x2"), num("y2")
        return BBox.from_bounds(min(x1, x2), min(y1, y2), max(x1, x2), max(y1, y2))

    if tag == "path":
        return _path_bbox(node.get("d"))

    if tag in ("polygon", "polyline"):
        values = _numbers(node.get("points"))
        coords = list(zip(values[0::2], values[1::2]))
        if not coords:
            return BBox(0.0, 0.0, 0.0, 0.0)
        return BBox.from_bounds(*MultiPoint(coords).bounds)

    if tag == "text":
        return _text_bbox(node, style)

    if tag in ("g", "a", "switch", "svg"):
        boxes: list[BBox] = []
        for child in node:
            child_tag = local_name(child.tag)
            if not child_tag or child_tag in _NON_RENDERED_TAGS:
                continue
            child_box = compute_bbox(child, _resolve_style(child, style))
            if not child_box.is_empty:
                boxes.append(child_box)
        return union_bbox(boxes)

    if tag in ("image", "use") and node.get("width") and node.get("height"):
        return BBox(num("x"), num("y"), num("width"), num("height"))

    return BBox(num("x"), num("y"), _FALLBACK_SIZE, _FALLBACK_SIZE)


def _path_bbox(d: str | None) -> BBox:
    if not d:
        return BBox(0.0, 0.0, 0.0, 0.0)
    try:
        path = parse_path(d)
        if len(path) == 0:
            return BBox(0.0, 0.0, 0.0, 0.0)
        xmin, xmax, ymin, ymax = path.bbox()
    except Exception as e:
        logger.warning("Failed to parse path: %s", e)
        return BBox(0.0, 0.0, 0.0, 0.0)
    return BBox.from_bounds(float(xmin), float(ymin), float(xmax), float(ymax))


def _text_bbox(node: ET.Element, style: dict[str, str]) -> BBox:
    """Approximate text extent from position, font-size and character count."""
    font_size = _number(style.get("font-size"), _DEFAULT_FONT_SIZE)
    if font_size <= 0:
        font_size = _DEFAULT_FONT_SIZE
    xs, ys = _numbers(node.get("x")), _numbers(node.get("y"))
    x = xs[0] if xs else 0.0
    y = ys[0] if ys else 0.0
    content = "".join(node.itertext()).strip()
    width = max(len(content), 1) * font_size * _GLYPH_WIDTH
    return BBox(x, y - font_size * _ASCENT, width, font_size)


def _canvas_box(root: ET.Element) -> tuple[float, float, float, float]:
    viewbox = _numbers(root.get("viewBox"))
    if len(viewbox) >= 4:
        return viewbox[0], viewbox[1], viewbox[2], viewbox[3]
    width = _number(root.get("width"), _DEFAULT_CANVAS[0])
    height = _number(root.get("height"), _DEFAULT_CANVAS[1])
    return 0.0, 0.0, width, height
