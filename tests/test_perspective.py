"""Tests for mirroring requests between the P1 seat and the canonical seat."""

import pytest

from battleplan_ai.ai.perspective import (
    denormalize_result,
    map_piece,
    map_square,
    normalize_snapshot,
)
from battleplan_ai.errors import DecisionError
from battleplan_ai.models import (
    ActionKind,
    ActionResult,
    ObjectiveResult,
    Piece,
    PlacementResult,
    PlanResult,
    PowerUpKind,
    Side,
    Snapshot,
)


class TestMapping:
    """Tests for piece and square mapping."""

    def test_p2_is_identity(self) -> None:
        assert map_piece(Piece.GREEN, Side.P2) is Piece.GREEN
        assert map_square("A1", Side.P2) == "A1"

    def test_p1_swaps_counterparts(self) -> None:
        assert map_piece(Piece.GREEN, Side.P1) is Piece.BLUE
        assert map_piece(Piece.PINK, Side.P1) is Piece.YELLOW
        assert map_piece(Piece.ORANGE, Side.P1) is Piece.PURPLE

    def test_p1_mirrors_squares(self) -> None:
        assert map_square("C2", Side.P1) == "C7"

    def test_none_passes_through(self) -> None:
        assert map_piece(None, Side.P1) is None
        assert map_square(None, Side.P1) is None


class TestSnapshotNormalization:
    """Tests for rewriting a P1 snapshot into the canonical view."""

    def test_p2_snapshot_untouched(self, snapshot_factory) -> None:
        snapshot = snapshot_factory(pieces={"Blue": "D6"})
        assert normalize_snapshot(snapshot, Side.P2) is snapshot

    def test_p1_pieces_and_markers_swapped(self, snapshot_factory) -> None:
        """P1 pieces should become engine pieces on mirrored squares."""
        snapshot = snapshot_factory(
            pieces={"Green": "B2", "Blue": "G7"},
            flags=["Green"],
            shields=["Blue"],
            token="E4",
        )
        canonical = normalize_snapshot(snapshot, Side.P1)

        assert canonical.pieces[Piece.BLUE].square == "B7"
        assert canonical.pieces[Piece.GREEN].square == "G2"
        assert canonical.flags[Piece.BLUE] is True
        assert canonical.shields[Piece.GREEN] is True
        assert canonical.token.square == "E5"

    def test_p1_stacks_and_power_ups_swapped(self, snapshot_factory) -> None:
        snapshot = snapshot_factory(
            pieces={"Green": "B2"},
            stacks={"Green": ["MOVE", "ATTACK"]},
            zones={"Green": "Extra Move"},
            hand={"Extra Attack": 2},
        )
        canonical = normalize_snapshot(snapshot, Side.P1)

        queue = canonical.stacks[Side.P2][Piece.BLUE]
        assert [slot.kind for slot in queue] == [ActionKind.MOVE, ActionKind.ATTACK]
        assert canonical.power_ups.zones[Piece.BLUE] is PowerUpKind.EXTRA_MOVE
        assert canonical.power_ups.hand_types[Side.P1] == {PowerUpKind.EXTRA_ATTACK: 2}

    def test_finish_lines_swapped_and_mirrored(self, snapshot_factory) -> None:
        snapshot = snapshot_factory(meta={"finish": {"P1": ["A1", "B1"]}})
        canonical = normalize_snapshot(snapshot, Side.P1)
        assert canonical.meta.finish == {Side.P2: ["A8", "B8"]}

    def test_normalization_is_involution(self, snapshot_factory) -> None:
        """Applying the P1 rewrite twice should give back the original."""
        snapshot = snapshot_factory(
            pieces={"Green": "B2", "Pink": "F5", "Orange": "H1"},
            dice=[3, 1],
            stacks={"Green": ["MOVE"], "Pink": ["DEFEND", "BLANK"]},
            flags=["Pink"],
            token="A3",
            zones={"Orange": "Diagonal Move"},
            zone_status={"Orange": "Unrevealed"},
            hand={"Extra Defend": 1},
            meta={"homes": {"P1": ["A1", "C1"]}},
        )
        twice = normalize_snapshot(normalize_snapshot(snapshot, Side.P1), Side.P1)
        assert twice.model_dump() == snapshot.model_dump()

    def test_empty_snapshot(self) -> None:
        canonical = normalize_snapshot(Snapshot(), Side.P1)
        assert canonical.pieces == {}
        assert canonical.token.square is None


class TestResultMapping:
    """Tests for mapping canonical results back to the caller's view."""

    def test_placement(self) -> None:
        result = denormalize_result(PlacementResult(piece=Piece.PINK, square="C8"), Side.P1)
        assert result.piece is Piece.YELLOW
        assert result.square == "C1"

    def test_plan(self) -> None:
        plan = PlanResult(piece=Piece.BLUE, count=1, ordered_kinds=[ActionKind.MOVE])
        assert denormalize_result(plan, Side.P1).piece is Piece.GREEN

    def test_action(self) -> None:
        action = ActionResult(
            piece=Piece.PURPLE,
            action_kind=ActionKind.ATTACK,
            from_square="D4",
            to_square="D3",
            attack_target=Piece.GREEN,
        )
        mapped = denormalize_result(action, Side.P1)
        assert mapped.piece is Piece.ORANGE
        assert mapped.from_square == "D5"
        assert mapped.to_square == "D6"
        assert mapped.attack_target is Piece.BLUE
        assert mapped.power_up_target is None

    def test_objective_decline(self) -> None:
        result = denormalize_result(ObjectiveResult(piece=None), Side.P1)
        assert result.piece is None

    def test_p2_is_identity(self) -> None:
        result = ObjectiveResult(piece=Piece.BLUE)
        assert denormalize_result(result, Side.P2) is result

    def test_unknown_result_type(self) -> None:
        with pytest.raises(DecisionError) as exc_info:
            denormalize_result({"piece": "Blue"}, Side.P1)
        assert exc_info.value.code == "DECISION_ERROR"
