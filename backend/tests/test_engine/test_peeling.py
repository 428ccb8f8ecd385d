"""Tests for the peeling engine."""

from __future__ import annotations

import logging

import pytest

from svgunmask.engine.config import PeelingOptions
from svgunmask.engine.layer_graph import SemanticGroup
from svgunmask.engine.peeling import (
    CandidateKind,
    PeelingEngine,
    RemovalCandidate,
    calculate_element_priority,
    calculate_group_priority,
    describe_removal,
)
from svgunmask.svg.parser import parse_svg
from svgunmask.utils.geometry import BBox
from tests.conftest import (
    CLUSTER_SVG,
    EMPTY_SVG,
    OVERLAP_SVG,
    SIX_SHAPES_SVG,
    STACKED_SVG,
    make_element,
)


def _engine(svg: str) -> PeelingEngine:
    return PeelingEngine(parse_svg(svg))


def _removed_ids(step) -> list[str]:
    return [e.id for e in step.removed_elements]


class TestSingleStep:
    def test_removes_topmost_first(self):
        engine = _engine(STACKED_SVG)
        step = engine.perform_single_peeling_step()

        assert step.step == 0
        assert _removed_ids(step) == ["label"]
        assert [e.id for e in step.remaining_elements] == ["background", "sun"]
        assert step.description == "Removed text element (#000000)"
        assert 'id="label"' not in step.svg_snapshot
        assert engine.removed_elements == {"label"}
        assert engine.current_step == 1

    def test_recovery_reports_revealed_elements(self):
        step = _engine(STACKED_SVG).perform_single_peeling_step()
        assert step.recovery_data is not None
        assert step.recovery_data.revealed == ["sun"]
        assert step.recovery_data.outcomes == []

    def test_recovery_can_be_disabled(self):
        step = _engine(STACKED_SVG).perform_single_peeling_step(PeelingOptions(content_recovery=False))
        assert step.recovery_data is None

    def test_semantic_group_is_removed_together(self):
        step = _engine(CLUSTER_SVG).perform_single_peeling_step()
        assert _removed_ids(step) == ["dot1", "dot2"]
        assert step.description == "Removed 2 circles"

    def test_without_grouping_removes_one_element(self):
        options = PeelingOptions(preserve_semantic_groups=False)
        step = _engine(CLUSTER_SVG).perform_single_peeling_step(options)
        assert _removed_ids(step) == ["dot2"]
        assert step.description == "Removed circle element (#ff0000)"

    def test_returns_none_when_nothing_left(self):
        engine = _engine(OVERLAP_SVG)
        options = PeelingOptions(content_recovery=False)
        assert engine.perform_single_peeling_step(options) is not None
        assert engine.perform_single_peeling_step(options) is not None
        assert engine.perform_single_peeling_step(options) is None
        assert len(engine.get_peeling_history()) == 2

    def test_detach_failure_is_logged_and_skipped(self, caplog):
        engine = _engine(OVERLAP_SVG)
        engine.document.tree.detach("b")

        with caplog.at_level(logging.WARNING):
            step = engine.perform_single_peeling_step()

        assert step is None
        assert engine.removed_elements == set()
        assert "Failed to remove element b" in caplog.text


class TestCandidates:
    def test_group_candidate_covers_members(self):
        candidates = _engine(CLUSTER_SVG).identify_removal_candidates(True)
        assert len(candidates) == 1
        assert candidates[0].kind is CandidateKind.SEMANTIC_GROUP
        assert [e.id for e in candidates[0].elements] == ["dot1", "dot2"]
        assert candidates[0].group_id == "group-1"

    def test_individual_candidates_sorted_by_priority(self):
        candidates = _engine(CLUSTER_SVG).identify_removal_candidates(False)
        assert [c.kind for c in candidates] == [CandidateKind.INDIVIDUAL] * 2
        assert [c.elements[0].id for c in candidates] == ["dot2", "dot1"]
        assert candidates[0].priority >= candidates[1].priority

    def test_occluded_group_yields_individual_candidates(self):
        # background, sun and label form one group, but only label is topmost
        candidates = _engine(STACKED_SVG).identify_removal_candidates(True)
        assert [(c.kind, c.elements[0].id) for c in candidates] == [
            (CandidateKind.INDIVIDUAL, "label")
        ]

    def test_stale_members_are_dropped(self):
        engine = _engine(OVERLAP_SVG)
        covered = engine.document.get_element("a")
        candidate = RemovalCandidate(
            kind=CandidateKind.INDIVIDUAL,
            elements=(covered,),
            priority=100.0,
            description="rect element",
        )
        assert engine.select_optimal_removal_set([candidate]) == []
        assert engine.select_optimal_removal_set([]) == []


class TestPriority:
    def test_element_priority(self):
        text = make_element("t", 0, 0, 10, 10, z_index=0, tag_name="text")
        rect = make_element("r", 0, 0, 100, 100, z_index=0)
        assert calculate_element_priority(text) == pytest.approx(60 + 50 - 10 * 2.0043213737826426)
        assert calculate_element_priority(rect) == pytest.approx(30 + 50 - 10 * 4.000043427276863)
        assert calculate_element_priority(text) > calculate_element_priority(rect)

    def test_transparency_and_paint_order_raise_priority(self):
        opaque = make_element("o", 0, 0, 10, 10, z_index=0)
        faded = make_element("f", 0, 0, 10, 10, z_index=0, opacity=0.5)
        later = make_element("l", 0, 0, 10, 10, z_index=500)
        base = calculate_element_priority(opaque)
        assert calculate_element_priority(faded) == pytest.approx(base + 10)
        assert calculate_element_priority(later) == pytest.approx(base + 0.5)

    def test_unknown_tag_uses_default_bonus(self):
        use = make_element("u", 0, 0, 10, 10, z_index=0, tag_name="use")
        rect = make_element("r", 0, 0, 10, 10, z_index=0)
        assert calculate_element_priority(rect) - calculate_element_priority(use) == pytest.approx(10)

    def test_group_priority(self):
        dots = (
            make_element("d1", 245, 245, 10, 10, z_index=1, tag_name="circle"),
            make_element("d2", 265, 245, 10, 10, z_index=2, tag_name="circle"),
        )
        group = SemanticGroup(
            id="group-1",
            elements=dots,
            bbox=BBox(245, 245, 30, 10),
            dominant_color="#ff0000",
            group_type="circle-cluster",
        )
        assert calculate_group_priority(group) == pytest.approx(20 + 25 + 2 / 300 * 1000)

    def test_group_density_bonus_is_capped(self):
        tiny = make_element("x", 0, 0, 0.5, 0.5, z_index=0)
        group = SemanticGroup("group-0", (tiny,), tiny.bbox, "#000000", "single")
        assert calculate_group_priority(group) == pytest.approx(10 + 10 + 30)


class TestDescription:
    def test_single_element(self):
        assert describe_removal([make_element("r", 0, 0, 1, 1, 0, fill="#abcdef")]) == (
            "Removed rect element (#abcdef)"
        )

    def test_stroked_element(self):
        path = make_element("p", 0, 0, 1, 1, 0, tag_name="path", fill="none", stroke="#000")
        assert describe_removal([path]) == "Removed path element (stroked)"

    def test_mixed_elements(self):
        removed = [
            make_element("r1", 0, 0, 1, 1, 0),
            make_element("r2", 0, 0, 1, 1, 1),
            make_element("c", 0, 0, 1, 1, 2, tag_name="circle"),
        ]
        assert describe_removal(removed) == "Removed 2 rects, 1 circle"


class TestAutoregressivePeeling:
    def test_zero_steps_leaves_snapshot_untouched(self):
        engine = _engine(STACKED_SVG)
        original = engine.document.to_svg()
        result = engine.perform_autoregressive_peeling(PeelingOptions(max_steps=0))
        assert result.steps == []
        assert result.final_svg == original
        assert result.statistics.total_steps == 0
        assert result.statistics.removal_efficiency == 0.0

    def test_stops_at_basic_shapes(self):
        engine = _engine(SIX_SHAPES_SVG)
        result = engine.perform_autoregressive_peeling(PeelingOptions(max_steps=50))
        assert len(result.steps) == 1
        assert len(engine.get_remaining_elements()) == 5
        assert engine.has_reached_basic_shapes()

    def test_runs_to_completion_without_basic_shape_stop(self):
        engine = _engine(SIX_SHAPES_SVG)
        result = engine.perform_autoregressive_peeling(PeelingOptions(stop_at_basic_shapes=False))
        assert len(result.steps) == 6
        assert engine.get_remaining_elements() == []
        assert [s.step for s in result.steps] == list(range(6))

    def test_max_steps_caps_the_run(self):
        options = PeelingOptions(max_steps=2, stop_at_basic_shapes=False)
        result = _engine(SIX_SHAPES_SVG).perform_autoregressive_peeling(options)
        assert len(result.steps) == 2

    def test_stacked_order(self):
        options = PeelingOptions(stop_at_basic_shapes=False)
        result = _engine(STACKED_SVG).perform_autoregressive_peeling(options)
        assert [s.description for s in result.steps] == [
            "Removed text element (#000000)",
            "Removed circle element (#ffcc00)",
            "Removed rect element (#ffffff)",
        ]

    def test_statistics(self):
        options = PeelingOptions(stop_at_basic_shapes=False)
        result = _engine(STACKED_SVG).perform_autoregressive_peeling(options)
        stats = result.statistics
        assert stats.total_steps == 3
        assert stats.total_removed == 3
        assert stats.remaining_elements == 0
        assert stats.removal_efficiency == pytest.approx(1.0)
        assert stats.removal_by_type == {"text": 1, "circle": 1, "rect": 1}
        assert stats.average_elements_per_step == pytest.approx(1.0)
        assert [s.removed for s in stats.removal_by_step] == [1, 1, 1]
        assert result.layer_analysis.visible_elements == 0

    def test_empty_document(self):
        engine = _engine(EMPTY_SVG)
        result = engine.perform_autoregressive_peeling()
        assert result.steps == []
        assert result.statistics.removal_efficiency == 0.0
        assert engine.has_reached_basic_shapes()

    def test_final_snapshot_reparses_to_remaining_elements(self):
        engine = _engine(STACKED_SVG)
        result = engine.perform_autoregressive_peeling()
        reparsed = parse_svg(result.final_svg)
        assert [(e.id, e.bbox) for e in reparsed.elements] == [
            (e.id, e.bbox) for e in engine.get_remaining_elements()
        ]


class TestHistory:
    def test_intermediate_states(self):
        engine = _engine(STACKED_SVG)
        engine.perform_autoregressive_peeling(PeelingOptions(stop_at_basic_shapes=False))
        states = engine.export_intermediate_states()
        assert [s.step for s in states] == [0, 1, 2]
        assert [s.removed_count for s in states] == [1, 1, 1]
        assert [s.remaining_count for s in states] == [2, 1, 0]
        assert states[0].svg == engine.get_peeling_history()[0].svg_snapshot

    def test_history_is_a_copy(self):
        engine = _engine(STACKED_SVG)
        engine.perform_single_peeling_step()
        engine.get_peeling_history().clear()
        assert len(engine.get_peeling_history()) == 1

    def test_reset_restores_everything(self):
        engine = _engine(STACKED_SVG)
        original = engine.document.to_svg()
        first = engine.perform_autoregressive_peeling(PeelingOptions(stop_at_basic_shapes=False))

        engine.reset()

        assert engine.get_peeling_history() == []
        assert engine.removed_elements == set()
        assert engine.current_step == 0
        assert engine.document.to_svg() == original
        assert [e.id for e in engine.layer_graph.get_topmost_elements()] == ["label"]

        again = engine.perform_autoregressive_peeling(PeelingOptions(stop_at_basic_shapes=False))
        assert [s.description for s in again.steps] == [s.description for s in first.steps]
