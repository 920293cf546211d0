"""Tests for the plan builder, its search and the legality audit."""

import pytest

from battleplan_ai.ai.base import DecisionContext
from battleplan_ai.ai.planner import (
    BLANK_PLAN,
    audit_plan,
    build_plan,
    eligible_pieces,
    generate_plans,
    infer_plan_status,
    shortest_finish_length,
)
from battleplan_ai.ai.world import CAP_ATTACK, CAP_DEFEND, CAP_MOVE
from battleplan_ai.config import EngineConfig
from battleplan_ai.models import ActionKind, Piece, PowerUpKind, ZoneStatus

TEST_TIMEOUT_SECONDS = 30

M, A, D, B = ActionKind.MOVE, ActionKind.ATTACK, ActionKind.DEFEND, ActionKind.BLANK


def _assert_legal(plan, pool):
    kinds = plan.ordered_kinds
    assert len(kinds) == 6
    assert plan.count == 0 or plan.count in pool
    assert all(k.is_real for k in kinds[:plan.count])
    assert all(k is B for k in kinds[plan.count:])
    assert kinds.count(M) <= CAP_MOVE
    assert kinds.count(A) <= CAP_ATTACK
    assert kinds.count(D) <= CAP_DEFEND


class TestEligibility:

    def test_pieces_with_pending_cards_excluded(self, world_factory) -> None:
        world = world_factory(stacks={"Blue": ["MOVE"], "Pink": ["BLANK"]})
        assert eligible_pieces(world) == [Piece.PINK, Piece.PURPLE]

    def test_shortest_finish_length(self, world_factory) -> None:
        world = world_factory(pieces={"Blue": "D6"}, flags=["Blue"])
        assert shortest_finish_length(world, Piece.BLUE) == 2

    def test_shortest_finish_length_detours(self, world_factory) -> None:
        """A blocked file forces a sideways or diagonal detour."""
        world = world_factory(pieces={"Blue": "D7", "Green": "D8"}, flags=["Blue"])
        assert shortest_finish_length(world, Piece.BLUE) == 1

    def test_non_carrier_has_no_sprint(self, world_factory) -> None:
        world = world_factory(pieces={"Blue": "D6"})
        assert shortest_finish_length(world, Piece.BLUE) is None


class TestBuildPlan:
    """Tests for choosing a piece, a die and a sequence."""

    def test_no_dice_gives_blank_plan(self, world_factory, ctx, profile) -> None:
        plan = build_plan(world_factory(pieces={"Blue": "D6"}), profile, ctx)
        assert plan.count == 0
        assert tuple(plan.ordered_kinds) == BLANK_PLAN

    def test_no_eligible_piece_gives_blank_plan(self, world_factory, ctx, profile) -> None:
        world = world_factory(
            pieces={"Blue": "D6"},
            dice=[1, 1, 1],
            stacks={"Blue": ["MOVE"], "Pink": ["MOVE"], "Purple": ["MOVE"]},
        )
        assert build_plan(world, profile, ctx).count == 0

    @pytest.mark.timeout(TEST_TIMEOUT_SECONDS)
    def test_carrier_sprint(self, world_factory, ctx, profile) -> None:
        """A carrier two steps from home should sprint with the matching die."""
        world = world_factory(pieces={"Blue": "D6", "Green": "A1"}, flags=["Blue"], dice=[2, 5])
        plan = build_plan(world, profile, ctx)
        assert plan.piece is Piece.BLUE
        assert plan.count == 2
        assert plan.ordered_kinds == [M, M, B, B, B, B]
        assert plan.requested_power_up is PowerUpKind.NONE

    @pytest.mark.timeout(TEST_TIMEOUT_SECONDS)
    @pytest.mark.parametrize("level", [1, 3, 5])
    def test_search_plan_is_legal(self, world_factory, profile_factory, level) -> None:
        world = world_factory(
            pieces={"Blue": "D6", "Pink": "F7", "Green": "E4", "Yellow": "B2"},
            dice=[3, 2, 1],
            token="C3",
        )
        plan = build_plan(world, profile_factory(level), DecisionContext(seed=7))
        assert plan.piece in (Piece.BLUE, Piece.PINK)
        assert plan.count > 0
        _assert_legal(plan, world.dice_pool)

    @pytest.mark.timeout(TEST_TIMEOUT_SECONDS)
    def test_skips_piece_with_pending_queue(self, world_factory, ctx, profile) -> None:
        world = world_factory(
            pieces={"Blue": "D6", "Pink": "C6"},
            dice=[1, 2],
            stacks={"Blue": ["MOVE"]},
        )
        plan = build_plan(world, profile, ctx)
        assert plan.piece is Piece.PINK
        assert plan.count == 2

    @pytest.mark.timeout(TEST_TIMEOUT_SECONDS)
    def test_plan_search_is_cached(self, world_factory, profile) -> None:
        world = world_factory(pieces={"Blue": "D6"}, dice=[3])
        ctx = DecisionContext(seed=1)
        first = build_plan(world, profile, ctx)
        entries = len(ctx.cache)
        second = build_plan(world, profile, ctx)
        assert entries > 0
        assert len(ctx.cache) == entries
        assert ctx.cache.counters.hits >= 1
        assert first == second

    @pytest.mark.timeout(TEST_TIMEOUT_SECONDS)
    def test_forced_power_up_assignment(self, world_factory, profile) -> None:
        world = world_factory(pieces={"Blue": "D6"}, dice=[2], hand={"Extra Attack": 1})
        ctx = DecisionContext(EngineConfig(force_power_up_assignment=True), seed=1)
        plan = build_plan(world, profile, ctx)
        assert plan.requested_power_up is PowerUpKind.EXTRA_ATTACK


class TestGeneratePlans:

    @pytest.mark.timeout(TEST_TIMEOUT_SECONDS)
    def test_distinct_and_bounded(self, world_factory, profile) -> None:
        world = world_factory(pieces={"Blue": "D5", "Green": "D4"}, dice=[3])
        plans = generate_plans(world, profile, Piece.BLUE, 3)
        assert 0 < len(plans) <= profile.plan_keep
        assert len({p.actions for p in plans}) == len(plans)
        assert [p.score for p in plans] == sorted((p.score for p in plans), reverse=True)
        for plan in plans:
            assert len(plan.actions) == 3
            assert plan.actions.count(A) <= CAP_ATTACK
            assert plan.actions.count(D) <= CAP_DEFEND

    def test_off_board_piece(self, world_factory, profile) -> None:
        assert generate_plans(world_factory(), profile, Piece.BLUE, 2) == []


class TestAudit:
    """Tests for the plan legality repair."""

    def test_legal_plan_untouched(self, world_factory) -> None:
        world = world_factory(pieces={"Blue": "D6"}, dice=[2])
        plan, report = audit_plan(world, Piece.BLUE, 2, [M, A, B, B, B, B])
        assert report.ok and not report.fixed
        assert plan.ordered_kinds == [M, A, B, B, B, B]

    def test_unavailable_die_clamped(self, world_factory) -> None:
        world = world_factory(pieces={"Blue": "D6"}, dice=[2])
        plan, report = audit_plan(world, Piece.BLUE, 5, [M] * 5)
        assert "die_unavailable" in report.reasons
        assert not report.ok
        assert plan.count == 2
        assert plan.ordered_kinds == [M, M, B, B, B, B]

    def test_move_cap_trimmed_and_backfilled(self, world_factory) -> None:
        world = world_factory(pieces={"Blue": "D6"}, dice=[4])
        plan, report = audit_plan(world, Piece.BLUE, 4, [M, M, M, M])
        assert "cap" in report.reasons
        assert plan.count == 4
        assert plan.ordered_kinds == [M, M, M, A, B, B]

    def test_no_slot_for_any_die(self, world_factory) -> None:
        revealed = {"kind": "MOVE", "revealed": True}
        world = world_factory(pieces={"Blue": "D6"}, dice=[3], stacks={"Blue": [revealed] * 4})
        plan, report = audit_plan(world, Piece.BLUE, 3, [M, M, M])
        assert "slots" in report.reasons
        assert "no_die" in report.reasons
        assert plan.count == 0
        assert tuple(plan.ordered_kinds) == BLANK_PLAN

    def test_unheld_power_up_cleared(self, world_factory) -> None:
        world = world_factory(pieces={"Blue": "D6"}, dice=[1])
        plan, report = audit_plan(world, Piece.BLUE, 1, [M], PowerUpKind.EXTRA_MOVE)
        assert plan.requested_power_up is PowerUpKind.NONE
        assert "power_up_not_held" in report.reasons

    def test_held_power_up_kept(self, world_factory) -> None:
        world = world_factory(pieces={"Blue": "D6"}, dice=[1], hand={"Extra Move": 1})
        plan, _ = audit_plan(world, Piece.BLUE, 1, [M], PowerUpKind.EXTRA_MOVE)
        assert plan.requested_power_up is PowerUpKind.EXTRA_MOVE

    def test_opponent_piece_rejected(self, world_factory) -> None:
        world = world_factory(dice=[1])
        plan, report = audit_plan(world, Piece.GREEN, 1, [M])
        assert plan.piece is Piece.BLUE
        assert "piece" in report.reasons

    def test_unassigned_face_replaced(self, world_factory) -> None:
        world = world_factory(pieces={"Blue": "D6"}, dice=[2])
        plan, report = audit_plan(world, Piece.BLUE, 2, [M, ActionKind.UNASSIGNED])
        assert "face" in report.reasons
        assert plan.ordered_kinds[:2] == [M, M]


class TestPlanStatus:

    def test_status_summary(self, world_factory) -> None:
        world = world_factory(
            pieces={"Blue": "D6"},
            dice=[2, 5, 1],
            stacks={"Blue": ["MOVE", "ATTACK"]},
            zones={"Pink": "Extra Move"},
            zone_status={"Pink": "Revealed"},
        )
        status = infer_plan_status(world)
        assert status.prepared == [Piece.BLUE]
        assert status.without_assignment == [Piece.PINK, Piece.PURPLE]
        assert status.used_dice == [2]
        assert status.available_dice == [5, 1]
        assert status.per_piece[Piece.BLUE].action_queue == [M, A]
        assert status.per_piece[Piece.PINK].power_up_used
        assert status.per_piece[Piece.PINK].zone_status is ZoneStatus.REVEALED
