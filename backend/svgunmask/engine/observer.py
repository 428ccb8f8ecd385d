"""Lifecycle observer for the layer graph and the peeling loop.

The engine never logs lifecycle progress itself; callers inject an observer.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from svgunmask.engine.peeling import PeelingResult, PeelingStep
    from svgunmask.models.report import LayerAnalysisReport

logger = logging.getLogger(__name__)


class PeelingObserver:
    """No-op base observer. Override the hooks you need."""

    def on_graph_built(self, report: LayerAnalysisReport) -> None:
        pass

    def on_step_completed(self, step: PeelingStep) -> None:
        pass

    def on_peeling_finished(self, result: PeelingResult) -> None:
        pass


class LoggingObserver(PeelingObserver):
    """Forwards lifecycle events to the module logger."""

    def __init__(self, log: logging.Logger | None = None) -> None:
        self.log = log or logger

    def on_graph_built(self, report: LayerAnalysisReport) -> None:
        self.log.info(
            "Layer graph built: %d elements, %d semantic groups, depths %s",
            report.total_elements,
            report.semantic_groups,
            report.layer_depths,
        )

    def on_step_completed(self, step: PeelingStep) -> None:
        self.log.info(
            "Step %d: %s (%d removed, %d remaining)",
            step.step,
            step.description,
            len(step.removed_elements),
            len(step.remaining_elements),
        )

    def on_peeling_finished(self, result: PeelingResult) -> None:
        stats = result.statistics
        self.log.info(
            "Peeling finished in %d steps: %d removed, %d remaining",
            stats.total_steps,
            stats.total_removed,
            stats.remaining_elements,
        )
