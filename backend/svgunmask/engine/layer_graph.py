"""Layer graph: occlusion relationships, semantic groups and removal order.

Construction:
1. Pairwise bbox intersection over the element snapshot. Every overlapping
   pair gets exactly one direction: the element painted later occludes the
   one painted earlier.
2. Breadth-first clustering over the "related" relation (proximity, fill
   color, <g> nesting) into semantic groups that partition the snapshot.
3. Depth-first post-order over "occludes", reversed, so topmost elements lead.

The graph is built once per snapshot. Removal only updates visibility and the
occluded_by lists; groups and the topological order are never recomputed.
"""

from __future__ import annotations

import logging
from collections import Counter, deque
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field

import numpy as np
from numpy.typing import NDArray

from svgunmask.engine.config import GraphConfig
from svgunmask.engine.elements import Element
from svgunmask.errors import CircularOcclusionError
from svgunmask.models.report import LayerAnalysisReport
from svgunmask.utils.color import color_similarity
from svgunmask.utils.geometry import (
    BBox,
    Intersection,
    calculate_intersection,
    center_distance,
    center_distance_matrix,
    intersection_area_matrix,
    union_bbox,
)

logger = logging.getLogger(__name__)

_GEOMETRIC_TAGS = frozenset({"rect", "circle", "ellipse"})


@dataclass
class OcclusionRelationship:
    """Mutable per-element occlusion state. Id lists keep snapshot order."""

    element: Element
    # Elements painted above this one that overlap it
    occluded_by: list[str] = field(default_factory=list)
    # Elements painted below this one that it overlaps
    occludes: list[str] = field(default_factory=list)
    # Every overlapping element, regardless of order
    intersections: list[str] = field(default_factory=list)
    is_visible: bool = True
    layer_depth: int = 0


@dataclass(frozen=True)
class SemanticGroup:
    id: str
    elements: tuple[Element, ...]
    bbox: BBox
    dominant_color: str
    group_type: str

    @property
    def member_ids(self) -> list[str]:
        return [e.id for e in self.elements]


def classify_group_type(elements: Sequence[Element]) -> str:
    if len(elements) == 1:
        return "single"

    tags = [e.tag_name for e in elements]
    unique = set(tags)
    if len(unique) == 1:
        return f"{tags[0]}-cluster"
    if "text" in unique:
        return "text-with-graphics"
    if unique <= _GEOMETRIC_TAGS:
        return "geometric-pattern"
    return "mixed-group"


def find_dominant_color(elements: Sequence[Element]) -> str:
    """Most frequent painted color; the first seen wins ties."""
    counts = Counter(e.paint for e in elements if e.paint and e.paint != "none")
    if not counts:
        return "none"
    return counts.most_common(1)[0][0]


class LayerGraph:
    """Occlusion and grouping analysis over one immutable element snapshot."""

    def __init__(self, elements: Sequence[Element], config: GraphConfig | None = None) -> None:
        self.elements: tuple[Element, ...] = tuple(elements)
        self.config = config or GraphConfig()
        self.occlusion_map: dict[str, OcclusionRelationship] = {}
        self.semantic_groups: dict[str, SemanticGroup] = {}
        self.topological_order: list[str] = []

        self.build_occlusion_relationships()
        self.perform_semantic_grouping()
        self.calculate_topological_order()

    # ── Occlusion ─────────────────────────────────────────────────────────

    def build_occlusion_relationships(self) -> None:
        """Resolve every overlapping pair into an occludes/occluded_by edge.

        The element with the higher z_index is on top. On equal z_index the
        element later in the snapshot is on top, matching paint order.
        """
        self.occlusion_map = {e.id: OcclusionRelationship(element=e) for e in self.elements}

        areas = intersection_area_matrix([e.bbox for e in self.elements])
        rows, cols = np.nonzero(np.triu(areas, k=1) > 0)

        for i, j in zip(rows.tolist(), cols.tolist()):
            lower, upper = self.elements[i], self.elements[j]
            rel_lower = self.occlusion_map[lower.id]
            rel_upper = self.occlusion_map[upper.id]

            rel_lower.intersections.append(upper.id)
            rel_upper.intersections.append(lower.id)

            if lower.z_index > upper.z_index:
                lower, upper = upper, lower
                rel_lower, rel_upper = rel_upper, rel_lower

            rel_lower.occluded_by.append(upper.id)
            rel_upper.occludes.append(lower.id)

        self.calculate_layer_depths()
        logger.debug(
            "Occlusion: %d elements, %d overlapping pairs", len(self.elements), len(rows)
        )

    def calculate_layer_depths(self) -> None:
        for rel in self.occlusion_map.values():
            rel.layer_depth = sum(
                1 for oid in rel.occluded_by if self.occlusion_map[oid].is_visible
            )

    def get_intersection(self, id_a: str, id_b: str) -> Intersection | None:
        rel_a = self.occlusion_map.get(id_a)
        rel_b = self.occlusion_map.get(id_b)
        if rel_a is None or rel_b is None:
            return None
        return calculate_intersection(rel_a.element.bbox, rel_b.element.bbox)

    # ── Semantic grouping ─────────────────────────────────────────────────

    def is_related(self, a: Element, b: Element) -> bool:
        """Undirected grouping edge: near centers, similar fill, or shared <g> nesting."""
        if a.id == b.id:
            return False
        if center_distance(a.bbox, b.bbox) < self.config.proximity_threshold:
            return True
        return self._related_by_style_or_structure(a, b)

    def _related_by_style_or_structure(self, a: Element, b: Element) -> bool:
        if color_similarity(a.fill, b.fill) > self.config.color_similarity_threshold:
            return True
        if a.parent_id == b.id or b.parent_id == a.id:
            return True
        return a.parent_id is not None and a.parent_id == b.parent_id

    def _related_matrix(self) -> NDArray[np.bool_]:
        related = center_distance_matrix([e.bbox for e in self.elements]) < (
            self.config.proximity_threshold
        )
        n = len(self.elements)
        for i in range(n):
            for j in range(i + 1, n):
                if not related[i, j] and self._related_by_style_or_structure(
                    self.elements[i], self.elements[j]
                ):
                    related[i, j] = related[j, i] = True
        np.fill_diagonal(related, False)
        return related

    def perform_semantic_grouping(self) -> None:
        """Partition the snapshot into connected components of the related graph."""
        self.semantic_groups = {}
        related = self._related_matrix()
        processed: set[str] = set()

        for seed_idx, seed in enumerate(self.elements):
            if seed.id in processed:
                continue
            members = self._collect_component(seed_idx, related, processed)
            group_id = f"group-{len(self.semantic_groups)}"
            self.semantic_groups[group_id] = SemanticGroup(
                id=group_id,
                elements=tuple(members),
                bbox=union_bbox([m.bbox for m in members]),
                dominant_color=find_dominant_color(members),
                group_type=classify_group_type(members),
            )

        logger.debug("Semantic grouping: %d groups", len(self.semantic_groups))

    def _collect_component(
        self, seed_idx: int, related: NDArray[np.bool_], processed: set[str]
    ) -> list[Element]:
        members: list[Element] = []
        queue = deque([seed_idx])
        processed.add(self.elements[seed_idx].id)

        while queue:
            idx = queue.popleft()
            members.append(self.elements[idx])
            for other_idx in np.flatnonzero(related[idx]).tolist():
                other_id = self.elements[other_idx].id
                if other_id not in processed:
                    processed.add(other_id)
                    queue.append(other_idx)

        return members

    # ── Removal order ─────────────────────────────────────────────────────

    def calculate_topological_order(self) -> None:
        """Post-order DFS over "occludes", reversed so occluders precede what they cover.

        Raises CircularOcclusionError if the relation has a cycle.
        """
        visited: set[str] = set()
        visiting: set[str] = set()
        order: list[str] = []

        for element in self.elements:
            if element.id in visited:
                continue

            visiting.add(element.id)
            stack: list[tuple[str, Iterator[str]]] = [(element.id, self._occluded_ids(element.id))]
            while stack:
                node_id, pending = stack[-1]
                for child_id in pending:
                    if child_id in visiting:
                        raise CircularOcclusionError(child_id)
                    if child_id not in visited and child_id in self.occlusion_map:
                        visiting.add(child_id)
                        stack.append((child_id, self._occluded_ids(child_id)))
                        break
                else:
                    stack.pop()
                    visiting.discard(node_id)
                    visited.add(node_id)
                    order.append(node_id)

        order.reverse()
        self.topological_order = order

    def _occluded_ids(self, element_id: str) -> Iterator[str]:
        return iter(list(self.occlusion_map[element_id].occludes))

    # ── Queries ───────────────────────────────────────────────────────────

    def get_topological_order(self) -> list[str]:
        return list(self.topological_order)

    def get_topmost_elements(self) -> list[Element]:
        """Visible elements with no remaining occluder, highest z_index first."""
        topmost = [
            rel.element
            for rel in self.occlusion_map.values()
            if rel.is_visible and not rel.occluded_by
        ]
        return sorted(topmost, key=lambda e: -e.z_index)

    def is_topmost(self, element_id: str) -> bool:
        rel = self.occlusion_map.get(element_id)
        return rel is not None and rel.is_visible and not rel.occluded_by

    def get_semantic_groups(self) -> dict[str, SemanticGroup]:
        return dict(self.semantic_groups)

    def get_occlusion_info(self, element_id: str) -> OcclusionRelationship | None:
        return self.occlusion_map.get(element_id)

    def get_layer_depth_distribution(self) -> dict[int, int]:
        counts = Counter(rel.layer_depth for rel in self.occlusion_map.values())
        return dict(sorted(counts.items()))

    def get_analysis_report(self) -> LayerAnalysisReport:
        total = len(self.elements)
        visible = sum(1 for rel in self.occlusion_map.values() if rel.is_visible)
        return LayerAnalysisReport(
            total_elements=total,
            visible_elements=visible,
            occluded_elements=total - visible,
            semantic_groups=len(self.semantic_groups),
            layer_depths=self.get_layer_depth_distribution(),
            topological_order=len(self.topological_order),
        )

    # ── Mutation ──────────────────────────────────────────────────────────

    def remove_element(self, element_id: str) -> None:
        """Hide an element and release everything it occluded. Unknown or repeated ids are ignored."""
        rel = self.occlusion_map.get(element_id)
        if rel is None or not rel.is_visible:
            return

        rel.is_visible = False
        for occluded_id in rel.occludes:
            occluded = self.occlusion_map.get(occluded_id)
            if occluded is not None and element_id in occluded.occluded_by:
                occluded.occluded_by.remove(element_id)

        self.calculate_layer_depths()
