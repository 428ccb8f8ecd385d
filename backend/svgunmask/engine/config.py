"""Engine configuration: grouping thresholds and per-run peeling options."""

from __future__ import annotations

from dataclasses import dataclass, field

from svgunmask.engine.elements import BASIC_SHAPE_TAGS


@dataclass
class GraphConfig:
    """Thresholds for the "related" relation used by semantic grouping."""

    # Center-to-center distance in user units below which two elements are related
    proximity_threshold: float = 50.0
    # Fill color similarity above which two elements are related
    color_similarity_threshold: float = 0.8


@dataclass
class PeelingOptions:
    """Controls one autoregressive peeling run."""

    max_steps: int = 50
    stop_at_basic_shapes: bool = True
    preserve_semantic_groups: bool = True
    content_recovery: bool = True

    # Stop condition for stop_at_basic_shapes
    basic_shape_limit: int = 5
    basic_shape_types: frozenset[str] = field(default=BASIC_SHAPE_TAGS)
