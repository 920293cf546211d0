"""Tests for the shared scoring primitives."""

from battleplan_ai.ai.heuristics import (
    StepCandidate,
    adjacent_opponents,
    attack_pick,
    blocking_value,
    first_adjacent_opponent,
    move_candidates,
    opponent_carrier_near_finish,
    orthogonal_move_count,
    progress,
    threat_map,
)
from battleplan_ai.models import Piece


class TestProgressAndBlocking:

    def test_carrier_heads_for_rank_eight(self, world_factory) -> None:
        world = world_factory(pieces={"Blue": "D6"}, flags=["Blue"])
        assert progress(world, world.board, Piece.BLUE, "D6") == 1.0 / 3
        assert progress(world, world.board, Piece.BLUE, "D8") == 1.0

    def test_non_carrier_heads_for_rank_one(self, world_factory) -> None:
        world = world_factory(pieces={"Blue": "D6"})
        assert progress(world, world.board, Piece.BLUE, "D1") == 1.0
        assert progress(world, world.board, Piece.BLUE, None) == 0.0

    def test_blocking_value_peaks_in_centre(self) -> None:
        assert blocking_value("D4") == blocking_value("E4")
        assert blocking_value("D4") > blocking_value("A4")
        assert blocking_value(None) == 0.0


class TestThreatMap:
    """Tests for the squares opposing pieces can reach next turn."""

    def test_basic_threat(self, world_factory) -> None:
        world = world_factory(pieces={"Green": "D4"})
        danger = threat_map(world.board, 0)
        assert "C3" in danger and "E5" in danger
        assert "D6" not in danger
        assert "D4" not in danger

    def test_extended_threat(self, world_factory) -> None:
        """With an opponent model, two orthogonal steps are covered too."""
        world = world_factory(pieces={"Green": "D4"})
        danger = threat_map(world.board, 1)
        assert "D6" in danger
        assert "F4" in danger
        assert "D4" not in danger

    def test_no_opponents(self, world_factory) -> None:
        world = world_factory(pieces={"Blue": "D4"})
        assert threat_map(world.board, 2) == frozenset()


class TestMoveCandidates:
    """Tests for forward/sideways step generation."""

    def test_non_carrier_moves_down(self, world_factory) -> None:
        world = world_factory(pieces={"Blue": "D6"})
        assert move_candidates(world.board, "D6", False) == [
            StepCandidate("D5", False),
            StepCandidate("C5", True),
            StepCandidate("E5", True),
            StepCandidate("C6", False),
            StepCandidate("E6", False),
        ]

    def test_carrier_moves_up_and_skips_occupied(self, world_factory) -> None:
        world = world_factory(pieces={"Blue": "D6", "Green": "D7"})
        steps = [c.to for c in move_candidates(world.board, "D6", True)]
        assert steps == ["C7", "E7", "C6", "E6"]
        assert orthogonal_move_count(world.board, "D6", True) == 2

    def test_edge_of_board(self, world_factory) -> None:
        world = world_factory(pieces={"Blue": "A1"})
        steps = [c.to for c in move_candidates(world.board, "A1", False)]
        assert steps == ["B1"]


class TestAttackTargets:
    """Tests for adjacency and target selection."""

    def test_adjacent_opponents(self, world_factory) -> None:
        world = world_factory(pieces={"Blue": "D4", "Green": "C3", "Yellow": "F4"})
        assert adjacent_opponents(world.board, "D4") == [(Piece.GREEN, "C3")]

    def test_attack_prefers_carrier(self, world_factory) -> None:
        world = world_factory(
            pieces={"Blue": "D4", "Green": "C3", "Yellow": "E5"}, flags=["Yellow"]
        )
        assert attack_pick(world.board, "D4") == ("E5", Piece.YELLOW)

    def test_attack_prefers_unshielded(self, world_factory) -> None:
        world = world_factory(
            pieces={"Blue": "D4", "Green": "C3", "Yellow": "E5"}, shields=["Green"]
        )
        assert attack_pick(world.board, "D4") == ("E5", Piece.YELLOW)

    def test_attack_ties_resolve_in_scan_order(self, world_factory) -> None:
        world = world_factory(pieces={"Blue": "D4", "Green": "E5", "Yellow": "C3"})
        assert attack_pick(world.board, "D4") == ("C3", Piece.YELLOW)
        assert first_adjacent_opponent(world.board, "D4") is Piece.YELLOW

    def test_no_target(self, world_factory) -> None:
        world = world_factory(pieces={"Blue": "D4"})
        assert attack_pick(world.board, "D4") == (None, None)

    def test_carrier_near_finish(self, world_factory) -> None:
        near = world_factory(pieces={"Green": "B2"}, flags=["Green"])
        far = world_factory(pieces={"Green": "B5"}, flags=["Green"])
        assert opponent_carrier_near_finish(near, near.board)
        assert not opponent_carrier_near_finish(far, far.board)
