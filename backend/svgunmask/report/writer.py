"""Report writer: persist a peeling run as SVG snapshots, JSON and an HTML viewer.

Output directory layout:
    final.svg              working tree after the last step
    step-01.svg ...        snapshot after each step, 1-based and zero-padded
    analysis-report.json   PeelingReport
    visualization.html     self-contained stepper over original + step snapshots
"""

from __future__ import annotations

import html
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

from svgunmask.models.report import PeelingReport, ReportMetadata, StepReport

if TYPE_CHECKING:
    from svgunmask.engine.peeling import PeelingResult

logger = logging.getLogger(__name__)

FINAL_SVG = "final.svg"
REPORT_JSON = "analysis-report.json"
VISUALIZATION_HTML = "visualization.html"


def step_filename(index: int) -> str:
    return f"step-{index + 1:02d}.svg"


def build_report(result: PeelingResult, original_elements: int) -> PeelingReport:
    final_elements = result.steps[-1].remaining_elements if result.steps else None
    return PeelingReport(
        statistics=result.statistics,
        layer_analysis=result.layer_analysis,
        steps=[
            StepReport(
                step=s.step,
                description=s.description,
                removed_count=len(s.removed_elements),
                remaining_count=len(s.remaining_elements),
                removed_ids=[e.id for e in s.removed_elements],
            )
            for s in result.steps
        ],
        metadata=ReportMetadata(
            timestamp=datetime.now(timezone.utc).isoformat(),
            original_elements=original_elements,
            final_elements=len(final_elements) if final_elements is not None else original_elements,
        ),
    )


def write_report(
    directory: str | Path,
    result: PeelingResult,
    original_svg: str,
    original_elements: int,
) -> Path:
    """Write every report artifact into ``directory`` (created if missing)."""
    out = Path(directory)
    out.mkdir(parents=True, exist_ok=True)

    (out / FINAL_SVG).write_text(result.final_svg, encoding="utf-8")
    for i, step in enumerate(result.steps):
        (out / step_filename(i)).write_text(step.svg_snapshot, encoding="utf-8")

    report = build_report(result, original_elements)
    (out / REPORT_JSON).write_text(report.model_dump_json(indent=2), encoding="utf-8")
    (out / VISUALIZATION_HTML).write_text(
        render_visualization(original_svg, result), encoding="utf-8"
    )

    logger.info("Wrote peeling report with %d steps to %s", len(result.steps), out)
    return out


# ── HTML viewer ──────────────────────────────────────────────────────────

_HTML_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>{title}</title>
<style>
  body {{ font-family: sans-serif; margin: 20px; background: #f5f5f5; }}
  .frame {{ background: #fff; border: 1px solid #ddd; padding: 20px; margin: 10px 0; }}
  .frame svg {{ max-width: 100%; height: auto; }}
  .controls button {{ margin-right: 6px; padding: 6px 14px; }}
  #description {{ color: #555; margin: 8px 0; }}
</style>
</head>
<body>
<h1>{title}</h1>
<div class="controls">
  <button id="prev">Previous</button>
  <button id="next">Next</button>
  <span id="counter"></span>
</div>
<div id="description"></div>
<div class="frame" id="canvas"></div>
<script>
const frames = {frames};
let current = 0;
function show(i) {{
  current = Math.max(0, Math.min(frames.length - 1, i));
  document.getElementById("canvas").innerHTML = frames[current].svg;
  document.getElementById("description").textContent = frames[current].description;
  document.getElementById("counter").textContent = (current + 1) + " / " + frames.length;
}}
document.getElementById("prev").onclick = () => show(current - 1);
document.getElementById("next").onclick = () => show(current + 1);
show(0);
</script>
</body>
</html>
"""


def render_visualization(original_svg: str, result: PeelingResult, title: str = "SVG Layer Peeling") -> str:
    frames = [{"description": "Original", "svg": original_svg}]
    frames += [
        {"description": f"Step {i + 1}: {s.description}", "svg": s.svg_snapshot}
        for i, s in enumerate(result.steps)
    ]
    # Keep embedded markup from closing the <script> block
    payload = json.dumps(frames).replace("</", "<\\/")
    return _HTML_TEMPLATE.format(title=html.escape(title), frames=payload)
