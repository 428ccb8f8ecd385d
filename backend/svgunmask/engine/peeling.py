"""Peeling engine: autoregressive removal of the topmost layer.

Each step:
1. Collect candidates from the topmost elements, whole semantic groups first
   when grouping is enabled, and rank them by priority.
2. Take the best candidate and re-check that every member is still uncovered.
3. Optionally run content recovery on what the removal reveals.
4. Detach the members from the working tree and mirror that in the layer graph.
5. Append an immutable PeelingStep to the history.
"""

from __future__ import annotations

import enum
import logging
import math
from collections import Counter
from dataclasses import dataclass, field

from svgunmask.engine.config import GraphConfig, PeelingOptions
from svgunmask.engine.elements import Element
from svgunmask.engine.layer_graph import LayerGraph, SemanticGroup
from svgunmask.engine.observer import PeelingObserver
from svgunmask.engine.recovery import ContentRecoveryEngine, RecoveryData
from svgunmask.errors import DetachError
from svgunmask.models.report import LayerAnalysisReport, PeelingStatistics, StepSummary
from svgunmask.svg.parser import SvgDocument

logger = logging.getLogger(__name__)

# Text and small decorations usually sit above structural shapes
GROUP_TYPE_BONUS: dict[str, float] = {
    "text-with-graphics": 50,
    "geometric-pattern": 40,
    "path-cluster": 30,
    "rect-cluster": 25,
    "circle-cluster": 25,
    "mixed-group": 20,
    "single": 10,
}
DEFAULT_GROUP_BONUS = 15.0

ELEMENT_TYPE_BONUS: dict[str, float] = {
    "text": 60,
    "image": 50,
    "rect": 30,
    "circle": 30,
    "ellipse": 30,
    "polygon": 25,
    "path": 20,
    "line": 15,
    "g": 10,
}
DEFAULT_ELEMENT_BONUS = 20.0

_MAX_DENSITY_BONUS = 30.0
_MAX_SIZE_BONUS = 50.0
_MAX_Z_BONUS = 20.0
_OPACITY_WEIGHT = 20.0


class CandidateKind(str, enum.Enum):
    SEMANTIC_GROUP = "semantic-group"
    INDIVIDUAL = "individual"


@dataclass(frozen=True)
class RemovalCandidate:
    kind: CandidateKind
    elements: tuple[Element, ...]
    priority: float
    description: str
    group_id: str | None = None


@dataclass(frozen=True)
class PeelingStep:
    """One completed removal. Never mutated after it is recorded."""

    step: int
    removed_elements: tuple[Element, ...]
    remaining_elements: tuple[Element, ...]
    description: str
    svg_snapshot: str
    recovery_data: RecoveryData | None = None


@dataclass(frozen=True)
class IntermediateState:
    step: int
    description: str
    svg: str
    removed_count: int
    remaining_count: int


@dataclass
class PeelingResult:
    steps: list[PeelingStep] = field(default_factory=list)
    final_svg: str = ""
    statistics: PeelingStatistics = field(default_factory=PeelingStatistics)
    layer_analysis: LayerAnalysisReport = field(default_factory=LayerAnalysisReport)


def calculate_group_priority(group: SemanticGroup) -> float:
    """Bigger, denser groups of overlay-like types rank higher."""
    count = len(group.elements)
    priority = count * 10.0
    priority += GROUP_TYPE_BONUS.get(group.group_type, DEFAULT_GROUP_BONUS)
    density = count / max(group.bbox.area, 1.0)
    priority += min(density * 1000, _MAX_DENSITY_BONUS)
    return priority


def calculate_element_priority(element: Element) -> float:
    """Small, transparent, late-painted overlay types rank higher."""
    priority = ELEMENT_TYPE_BONUS.get(element.tag_name, DEFAULT_ELEMENT_BONUS)
    priority += max(0.0, _MAX_SIZE_BONUS - math.log10(element.area + 1) * 10)
    priority += (1 - element.opacity) * _OPACITY_WEIGHT
    priority += min(element.z_index / 1000, _MAX_Z_BONUS)
    return priority


def describe_removal(removed: list[Element] | tuple[Element, ...]) -> str:
    if not removed:
        return "No elements removed"
    if len(removed) == 1:
        element = removed[0]
        paint = element.fill if element.fill != "none" else "stroked"
        return f"Removed {element.tag_name} element ({paint})"

    counts = Counter(e.tag_name for e in removed)
    parts = [f"1 {tag}" if n == 1 else f"{n} {tag}s" for tag, n in counts.items()]
    return f"Removed {', '.join(parts)}"


class PeelingEngine:
    """Drives iterative removal over one parsed document."""

    def __init__(
        self,
        document: SvgDocument,
        graph_config: GraphConfig | None = None,
        observer: PeelingObserver | None = None,
        recovery: ContentRecoveryEngine | None = None,
    ) -> None:
        self.document = document
        self.graph_config = graph_config or GraphConfig()
        self.observer = observer or PeelingObserver()
        self.content_recovery = recovery or ContentRecoveryEngine()

        self.peeling_history: list[PeelingStep] = []
        self.removed_elements: set[str] = set()
        self.current_step = 0
        self.layer_graph = self._build_graph()

    def _build_graph(self) -> LayerGraph:
        graph = LayerGraph(self.document.elements, self.graph_config)
        self.observer.on_graph_built(graph.get_analysis_report())
        return graph

    # ── Loop ──────────────────────────────────────────────────────────────

    def perform_autoregressive_peeling(self, options: PeelingOptions | None = None) -> PeelingResult:
        options = options or PeelingOptions()
        steps: list[PeelingStep] = []

        while len(steps) < options.max_steps:
            step = self.perform_single_peeling_step(options)
            if step is None:
                logger.debug("No more elements to remove - peeling complete")
                break
            steps.append(step)

            if options.stop_at_basic_shapes and self.has_reached_basic_shapes(options):
                logger.debug("Reached basic geometric shapes - stopping peeling")
                break

        result = PeelingResult(
            steps=steps,
            final_svg=self.document.to_svg(),
            statistics=self.generate_peeling_statistics(),
            layer_analysis=self.layer_graph.get_analysis_report(),
        )
        self.observer.on_peeling_finished(result)
        return result

    def perform_single_peeling_step(self, options: PeelingOptions | None = None) -> PeelingStep | None:
        """Remove the best candidate. Returns None when nothing is left to remove."""
        options = options or PeelingOptions()

        candidates = self.identify_removal_candidates(options.preserve_semantic_groups)
        if not candidates:
            return None

        to_remove = self.select_optimal_removal_set(candidates)
        recovery_data = None
        if options.content_recovery and to_remove:
            recovery_data = self.content_recovery.analyze_and_recover(to_remove, self.layer_graph)

        removed = self.remove_elements(to_remove)
        if not removed:
            return None

        for element in removed:
            self.layer_graph.remove_element(element.id)
            self.removed_elements.add(element.id)

        step = PeelingStep(
            step=self.current_step,
            removed_elements=tuple(removed),
            remaining_elements=tuple(self.get_remaining_elements()),
            description=describe_removal(removed),
            svg_snapshot=self.document.to_svg(),
            recovery_data=recovery_data,
        )
        self.current_step += 1
        self.peeling_history.append(step)
        self.observer.on_step_completed(step)
        return step

    # ── Candidates ────────────────────────────────────────────────────────

    def identify_removal_candidates(self, preserve_semantic_groups: bool = True) -> list[RemovalCandidate]:
        topmost = self.layer_graph.get_topmost_elements()
        topmost_ids = {e.id for e in topmost}
        covered: set[str] = set()
        candidates: list[RemovalCandidate] = []

        if preserve_semantic_groups:
            for group in self.layer_graph.get_semantic_groups().values():
                members = [e for e in group.elements if e.id not in self.removed_elements]
                if not members or not all(e.id in topmost_ids for e in members):
                    continue
                candidates.append(
                    RemovalCandidate(
                        kind=CandidateKind.SEMANTIC_GROUP,
                        elements=tuple(members),
                        priority=calculate_group_priority(group),
                        description=f"{group.group_type} ({len(members)} elements)",
                        group_id=group.id,
                    )
                )
                covered.update(e.id for e in members)

        for element in topmost:
            if element.id in covered or element.id in self.removed_elements:
                continue
            candidates.append(
                RemovalCandidate(
                    kind=CandidateKind.INDIVIDUAL,
                    elements=(element,),
                    priority=calculate_element_priority(element),
                    description=f"{element.tag_name} element",
                )
            )

        candidates.sort(key=lambda c: -c.priority)
        return candidates

    def select_optimal_removal_set(self, candidates: list[RemovalCandidate]) -> list[Element]:
        """Members of the best candidate that are still visible and uncovered."""
        if not candidates:
            return []

        selected = candidates[0]
        valid = [e for e in selected.elements if self._is_removable(e.id)]
        if len(valid) < len(selected.elements):
            logger.debug(
                "Dropped %d stale members from %s",
                len(selected.elements) - len(valid),
                selected.description,
            )
        return valid

    def _is_removable(self, element_id: str) -> bool:
        info = self.layer_graph.get_occlusion_info(element_id)
        if info is None or not info.is_visible:
            return False
        return all(oid in self.removed_elements for oid in info.occluded_by)

    def remove_elements(self, elements: list[Element]) -> list[Element]:
        """Detach from the working tree; failures are logged and left out of the result."""
        removed: list[Element] = []
        for element in elements:
            try:
                self.document.tree.detach(element.id)
            except DetachError as e:
                logger.warning("Failed to remove element %s: %s", element.id, e)
                continue
            removed.append(element)
        return removed

    # ── State ─────────────────────────────────────────────────────────────

    def get_remaining_elements(self) -> list[Element]:
        return [e for e in self.document.elements if e.id not in self.removed_elements]

    def has_reached_basic_shapes(self, options: PeelingOptions | None = None) -> bool:
        options = options or PeelingOptions()
        remaining = self.get_remaining_elements()
        if not remaining:
            return True
        return len(remaining) <= options.basic_shape_limit and all(
            e.tag_name in options.basic_shape_types for e in remaining
        )

    def generate_peeling_statistics(self) -> PeelingStatistics:
        total_steps = len(self.peeling_history)
        total_removed = len(self.removed_elements)
        remaining = len(self.get_remaining_elements())

        removal_by_type: Counter[str] = Counter()
        for step in self.peeling_history:
            removal_by_type.update(e.tag_name for e in step.removed_elements)

        total = total_removed + remaining
        return PeelingStatistics(
            total_steps=total_steps,
            total_removed=total_removed,
            remaining_elements=remaining,
            removal_efficiency=total_removed / total if total else 0.0,
            removal_by_type=dict(removal_by_type),
            removal_by_step=[
                StepSummary(step=s.step, removed=len(s.removed_elements), description=s.description)
                for s in self.peeling_history
            ],
            average_elements_per_step=total_removed / max(total_steps, 1),
        )

    def get_peeling_history(self) -> list[PeelingStep]:
        return list(self.peeling_history)

    def export_intermediate_states(self) -> list[IntermediateState]:
        return [
            IntermediateState(
                step=s.step,
                description=s.description,
                svg=s.svg_snapshot,
                removed_count=len(s.removed_elements),
                remaining_count=len(s.remaining_elements),
            )
            for s in self.peeling_history
        ]

    def reset(self) -> None:
        """Rewind to the parsed document: history, removed ids, working tree and graph."""
        self.current_step = 0
        self.removed_elements.clear()
        self.peeling_history = []
        self.document.tree.restore()
        self.layer_graph = self._build_graph()
