"""API request models."""

from __future__ import annotations

from pydantic import BaseModel, Field


class AnalyzeRequest(BaseModel):
    svg: str = Field(..., description="Raw SVG code")


class PeelRequest(BaseModel):
    svg: str = Field(..., description="Raw SVG code")
    max_steps: int | None = Field(
        default=None,
        ge=0,
        description="Step cap; falls back to the configured default",
    )
    preserve_semantic_groups: bool = True
    stop_at_basic_shapes: bool = True
    content_recovery: bool = False
    single_step: bool = Field(default=False, description="Perform exactly one peeling step")
