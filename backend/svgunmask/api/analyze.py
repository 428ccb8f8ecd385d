"""POST /api/analyze: parse and build the layer graph, no peeling."""

from __future__ import annotations

import time

from fastapi import APIRouter, HTTPException

from svgunmask.errors import UnmaskError
from svgunmask.models.requests import AnalyzeRequest
from svgunmask.models.responses import AnalyzeResponse
from svgunmask.unmask import SvgUnmask

router = APIRouter()


@router.post("/analyze", response_model=AnalyzeResponse)
def analyze(req: AnalyzeRequest) -> AnalyzeResponse:
    start = time.perf_counter()
    try:
        loaded = SvgUnmask().load_svg(req.svg)
    except UnmaskError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e

    elapsed = (time.perf_counter() - start) * 1000
    return AnalyzeResponse(
        element_count=loaded.element_count,
        dimensions=loaded.dimensions,
        layer_analysis=loaded.layer_analysis,
        processing_time_ms=round(elapsed, 1),
    )
