"""Element: the read-only analytic snapshot of one drawable SVG node.

Elements are produced by the document parser and only referenced by the
layer graph and the peeling engine. Parent/child structure is expressed by
id, resolved through the owning SvgDocument.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from svgunmask.utils.geometry import BBox

BASIC_SHAPE_TAGS = frozenset({"rect", "circle", "ellipse", "line", "polygon"})


@dataclass(frozen=True)
class Element:
    id: str
    tag_name: str
    bbox: BBox
    # Paint order; higher renders later (on top)
    z_index: int
    opacity: float = 1.0
    fill: str = "none"
    stroke: str = "none"
    stroke_width: float = 0.0
    # Id of the enclosing <g>, if the direct parent is one
    parent_id: str | None = None
    children: tuple[str, ...] = ()
    path_data: str | None = None
    transform: str = ""
    attributes: dict[str, str] = field(default_factory=dict, compare=False)

    @property
    def area(self) -> float:
        return self.bbox.area

    @property
    def is_group(self) -> bool:
        return self.tag_name == "g"

    @property
    def paint(self) -> str:
        """Fill when present, else stroke; "none" when neither paints."""
        return self.fill if self.fill != "none" else self.stroke
