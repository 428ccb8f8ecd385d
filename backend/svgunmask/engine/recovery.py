"""Content recovery: reconstruct occluded content revealed by a removal.

Extension point only. The engine offers every element that a removal will
fully uncover to an ordered list of strategies; the first one reporting
success wins for that element. The shipped strategies are inert.
"""

from __future__ import annotations

import abc
import enum
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from svgunmask.engine.elements import Element
from svgunmask.engine.layer_graph import LayerGraph

logger = logging.getLogger(__name__)


class RecoveryStrategyKind(str, enum.Enum):
    PATH_EXTENSION = "path-extension"
    SHAPE_COMPLETION = "shape-completion"
    INTERPOLATION = "interpolation"


@dataclass
class RecoveryResult:
    success: bool = False
    modifications: list[dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class StrategyOutcome:
    kind: RecoveryStrategyKind
    element_id: str
    modifications: tuple[dict[str, Any], ...] = ()


@dataclass
class RecoveryData:
    # Ids of elements that become fully unoccluded by the removal
    revealed: list[str] = field(default_factory=list)
    outcomes: list[StrategyOutcome] = field(default_factory=list)


class RecoveryStrategy(abc.ABC):
    kind: RecoveryStrategyKind

    @abc.abstractmethod
    def can_apply(self, element: Element, occluders: Sequence[Element]) -> bool: ...

    @abc.abstractmethod
    def apply(
        self, element: Element, occluders: Sequence[Element], graph: LayerGraph
    ) -> RecoveryResult: ...


class PathExtensionStrategy(RecoveryStrategy):
    """Extend path outlines cut off by the removed occluders."""

    kind = RecoveryStrategyKind.PATH_EXTENSION

    def can_apply(self, element: Element, occluders: Sequence[Element]) -> bool:
        return element.tag_name == "path" and bool(element.path_data)

    def apply(
        self, element: Element, occluders: Sequence[Element], graph: LayerGraph
    ) -> RecoveryResult:
        return RecoveryResult(success=False)


class ShapeCompletionStrategy(RecoveryStrategy):
    """Complete primitive shapes that were partially hidden."""

    kind = RecoveryStrategyKind.SHAPE_COMPLETION
    completable = frozenset({"rect", "circle", "ellipse", "polygon"})

    def can_apply(self, element: Element, occluders: Sequence[Element]) -> bool:
        return element.tag_name in self.completable

    def apply(
        self, element: Element, occluders: Sequence[Element], graph: LayerGraph
    ) -> RecoveryResult:
        return RecoveryResult(success=False)


class InterpolationStrategy(RecoveryStrategy):
    """Interpolate hidden regions from the surrounding content."""

    kind = RecoveryStrategyKind.INTERPOLATION

    def can_apply(self, element: Element, occluders: Sequence[Element]) -> bool:
        return True

    def apply(
        self, element: Element, occluders: Sequence[Element], graph: LayerGraph
    ) -> RecoveryResult:
        return RecoveryResult(success=False)


def default_strategies() -> list[RecoveryStrategy]:
    return [PathExtensionStrategy(), ShapeCompletionStrategy(), InterpolationStrategy()]


class ContentRecoveryEngine:
    def __init__(self, strategies: Sequence[RecoveryStrategy] | None = None) -> None:
        self.strategies = list(strategies) if strategies is not None else default_strategies()

    def analyze_and_recover(
        self, elements_to_remove: Sequence[Element], graph: LayerGraph
    ) -> RecoveryData:
        """Offer each element revealed by the removal to the strategies, in order."""
        data = RecoveryData()
        for element in self.find_revealed_elements(elements_to_remove, graph):
            data.revealed.append(element.id)
            for strategy in self.strategies:
                if not strategy.can_apply(element, elements_to_remove):
                    continue
                result = strategy.apply(element, elements_to_remove, graph)
                if result.success:
                    data.outcomes.append(
                        StrategyOutcome(
                            kind=strategy.kind,
                            element_id=element.id,
                            modifications=tuple(result.modifications),
                        )
                    )
                    break

        if data.outcomes:
            logger.debug("Recovered %d of %d revealed elements", len(data.outcomes), len(data.revealed))
        return data

    @staticmethod
    def find_revealed_elements(
        elements_to_remove: Sequence[Element], graph: LayerGraph
    ) -> list[Element]:
        """Elements whose every remaining occluder is in the removal set."""
        remove_ids = {e.id for e in elements_to_remove}
        revealed: list[Element] = []
        seen: set[str] = set()

        for removed in elements_to_remove:
            info = graph.get_occlusion_info(removed.id)
            if info is None:
                continue
            for occluded_id in info.occludes:
                if occluded_id in seen or occluded_id in remove_ids:
                    continue
                occluded = graph.get_occlusion_info(occluded_id)
                if occluded is None or not occluded.is_visible:
                    continue
                if all(oid in remove_ids for oid in occluded.occluded_by):
                    seen.add(occluded_id)
                    revealed.append(occluded.element)

        return revealed
