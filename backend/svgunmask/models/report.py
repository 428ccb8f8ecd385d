"""Report data model: statistics, layer analysis and the on-disk peeling report."""

from __future__ import annotations

from pydantic import BaseModel, Field


class LayerAnalysisReport(BaseModel):
    total_elements: int = 0
    visible_elements: int = 0
    # Elements no longer visible (removed by peeling)
    occluded_elements: int = 0
    semantic_groups: int = 0
    # layer depth -> number of elements at that depth
    layer_depths: dict[int, int] = Field(default_factory=dict)
    topological_order: int = 0


class StepSummary(BaseModel):
    step: int
    removed: int
    description: str = ""


class PeelingStatistics(BaseModel):
    total_steps: int = 0
    total_removed: int = 0
    remaining_elements: int = 0
    removal_efficiency: float = 0.0
    removal_by_type: dict[str, int] = Field(default_factory=dict)
    removal_by_step: list[StepSummary] = Field(default_factory=list)
    average_elements_per_step: float = 0.0


class StepReport(BaseModel):
    step: int
    description: str = ""
    removed_count: int = 0
    remaining_count: int = 0
    removed_ids: list[str] = Field(default_factory=list)


class ReportMetadata(BaseModel):
    timestamp: str
    original_elements: int = 0
    final_elements: int = 0


class PeelingReport(BaseModel):
    """Contents of analysis-report.json."""

    statistics: PeelingStatistics
    layer_analysis: LayerAnalysisReport
    steps: list[StepReport] = Field(default_factory=list)
    metadata: ReportMetadata
