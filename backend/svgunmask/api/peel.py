"""POST /api/peel: run layer peeling and return every step snapshot."""

from __future__ import annotations

import time

from fastapi import APIRouter, HTTPException

from svgunmask.config import settings
from svgunmask.engine.config import PeelingOptions
from svgunmask.engine.peeling import PeelingStep
from svgunmask.errors import UnmaskError
from svgunmask.models.requests import PeelRequest
from svgunmask.models.responses import PeelResponse, PeelStep
from svgunmask.unmask import SvgUnmask

router = APIRouter()


def _to_peel_step(step: PeelingStep) -> PeelStep:
    return PeelStep(
        step=step.step,
        description=step.description,
        removed_ids=[e.id for e in step.removed_elements],
        remaining_count=len(step.remaining_elements),
        svg=step.svg_snapshot,
    )


@router.post("/peel", response_model=PeelResponse)
def peel(req: PeelRequest) -> PeelResponse:
    start = time.perf_counter()
    options = PeelingOptions(
        max_steps=req.max_steps if req.max_steps is not None else settings.default_max_steps,
        stop_at_basic_shapes=req.stop_at_basic_shapes,
        preserve_semantic_groups=req.preserve_semantic_groups,
        content_recovery=req.content_recovery,
    )

    unmask = SvgUnmask()
    try:
        unmask.load_svg(req.svg)
        if req.single_step:
            step = unmask.perform_single_step(options)
            engine = unmask.engine
            steps = [step] if step is not None else []
            final_svg = engine.document.to_svg()
            statistics = engine.generate_peeling_statistics()
            layer_analysis = engine.layer_graph.get_analysis_report()
        else:
            result = unmask.perform_peeling(options)
            steps = result.steps
            final_svg = result.final_svg
            statistics = result.statistics
            layer_analysis = result.layer_analysis
    except UnmaskError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e

    elapsed = (time.perf_counter() - start) * 1000
    return PeelResponse(
        steps=[_to_peel_step(s) for s in steps],
        final_svg=final_svg,
        statistics=statistics,
        layer_analysis=layer_analysis,
        processing_time_ms=round(elapsed, 1),
    )
