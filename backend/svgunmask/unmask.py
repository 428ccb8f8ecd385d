"""SvgUnmask: load → peel → report, the entry used by the CLI and the API."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from svgunmask.config import settings
from svgunmask.engine.config import GraphConfig, PeelingOptions
from svgunmask.engine.observer import LoggingObserver, PeelingObserver
from svgunmask.engine.peeling import PeelingEngine, PeelingResult, PeelingStep
from svgunmask.engine.recovery import ContentRecoveryEngine
from svgunmask.errors import NotLoadedError
from svgunmask.models.report import LayerAnalysisReport
from svgunmask.report.writer import write_report
from svgunmask.svg.parser import SvgDocument, parse_svg

logger = logging.getLogger(__name__)


def default_options() -> PeelingOptions:
    """Run defaults for the command surface: settings-driven step cap, no recovery."""
    return PeelingOptions(max_steps=settings.default_max_steps, content_recovery=False)


@dataclass
class LoadResult:
    element_count: int
    dimensions: dict[str, float]
    layer_analysis: LayerAnalysisReport


@dataclass
class CurrentState:
    current_step: int
    removed_elements: list[str] = field(default_factory=list)
    remaining_elements: int = 0
    topmost_elements: int = 0
    svg: str = ""
    history_length: int = 0
    last_step: PeelingStep | None = None


class SvgUnmask:
    def __init__(
        self,
        graph_config: GraphConfig | None = None,
        observer: PeelingObserver | None = None,
        recovery: ContentRecoveryEngine | None = None,
    ) -> None:
        self.graph_config = graph_config
        self.observer = observer or LoggingObserver()
        self.recovery = recovery
        self.document: SvgDocument | None = None
        self.engine: PeelingEngine | None = None
        self.original_svg = ""
        self.last_result: PeelingResult | None = None

    def load_svg(self, svg_text: str | bytes) -> LoadResult:
        """Parse and analyze a document, replacing whatever was loaded before."""
        self.document = parse_svg(svg_text)
        self.original_svg = self.document.to_svg()
        self.engine = PeelingEngine(
            self.document,
            graph_config=self.graph_config,
            observer=self.observer,
            recovery=self.recovery,
        )
        self.last_result = None
        return LoadResult(
            element_count=len(self.document.elements),
            dimensions=self.document.dimensions,
            layer_analysis=self.engine.layer_graph.get_analysis_report(),
        )

    def _require_engine(self) -> PeelingEngine:
        if self.engine is None:
            raise NotLoadedError("No SVG loaded. Call load_svg() first.")
        return self.engine

    def perform_peeling(
        self,
        options: PeelingOptions | None = None,
        output_directory: str | Path | None = None,
    ) -> PeelingResult:
        engine = self._require_engine()
        result = engine.perform_autoregressive_peeling(options or default_options())
        self.last_result = result
        if output_directory is not None:
            self.save_results(output_directory)
        return result

    def perform_single_step(self, options: PeelingOptions | None = None) -> PeelingStep | None:
        return self._require_engine().perform_single_peeling_step(options or default_options())

    def get_current_state(self) -> CurrentState:
        engine = self._require_engine()
        return CurrentState(
            current_step=engine.current_step,
            removed_elements=sorted(engine.removed_elements),
            remaining_elements=len(engine.get_remaining_elements()),
            topmost_elements=len(engine.layer_graph.get_topmost_elements()),
            svg=engine.document.to_svg(),
            history_length=len(engine.peeling_history),
            last_step=engine.peeling_history[-1] if engine.peeling_history else None,
        )

    def reset(self) -> None:
        self._require_engine().reset()
        self.last_result = None

    def save_results(self, directory: str | Path) -> Path:
        """Write the report for the last full run, or for the steps taken so far."""
        engine = self._require_engine()
        result = self.last_result or PeelingResult(
            steps=engine.get_peeling_history(),
            final_svg=engine.document.to_svg(),
            statistics=engine.generate_peeling_statistics(),
            layer_analysis=engine.layer_graph.get_analysis_report(),
        )
        return write_report(directory, result, self.original_svg, len(engine.document.elements))
