"""API response models."""

from __future__ import annotations

from pydantic import BaseModel, Field

from svgunmask.models.report import LayerAnalysisReport, PeelingStatistics


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = "0.1.0"


class AnalyzeResponse(BaseModel):
    element_count: int = 0
    dimensions: dict[str, float] = Field(default_factory=dict)
    layer_analysis: LayerAnalysisReport
    processing_time_ms: float = 0.0


class PeelStep(BaseModel):
    step: int
    description: str
    removed_ids: list[str] = Field(default_factory=list)
    remaining_count: int = 0
    svg: str = ""


class PeelResponse(BaseModel):
    steps: list[PeelStep] = Field(default_factory=list)
    final_svg: str = ""
    statistics: PeelingStatistics
    layer_analysis: LayerAnalysisReport
    processing_time_ms: float = 0.0
