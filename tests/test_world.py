"""Tests for snapshot ingestion and the world model."""

from battleplan_ai.ai.world import (
    NO_SLOT,
    ActionCounts,
    BoardView,
    build_world,
    compute_dice_pool,
    first_unrevealed_index,
    next_real_slot,
    remaining_real_after,
    slots_left,
)
from battleplan_ai.models import (
    ActionKind,
    Piece,
    PowerUpKind,
    QueueSlot,
    Side,
    Snapshot,
    ZoneStatus,
)


def _queue(*faces, revealed=0):
    return tuple(
        QueueSlot(kind=ActionKind.parse(face), revealed=i < revealed)
        for i, face in enumerate(faces)
    )


class TestBoard:
    """Tests for board construction from a snapshot."""

    def test_pieces_and_markers(self, world_factory) -> None:
        world = world_factory(
            pieces={"Blue": "D6", "Green": "D5"},
            flags=["Blue"],
            shields=["Green"],
            token="E1",
        )
        board = world.board
        assert board.square_of(Piece.BLUE) == "D6"
        assert board.occupancy["D5"] is Piece.GREEN
        assert board.carrying(Piece.BLUE)
        assert board.shielded(Piece.GREEN)
        assert board.token == "E1"

    def test_collisions_resolved_in_piece_order(self, world_factory) -> None:
        """A later piece claiming an occupied square should be dropped."""
        world = world_factory(pieces={"Blue": "C3", "Green": "C3"})
        assert world.board.square_of(Piece.BLUE) == "C3"
        assert world.board.square_of(Piece.GREEN) is None

    def test_home_pieces_are_off_board(self) -> None:
        snapshot = Snapshot.model_validate(
            {"pieces": {"Pink": {"loc": "HOME", "square": "B8"}}}
        )
        assert build_world(snapshot).board.square_of(Piece.PINK) is None

    def test_malformed_snapshot_never_raises(self) -> None:
        """Garbage fields should coerce to empty values."""
        snapshot = Snapshot.model_validate({
            "diceValues": "nope",
            "pieces": {"Blue": {"square": "Z9"}, "Nobody": {"square": "A1"}},
            "stacks": {"P2": {"Blue": "MOVE"}},
            "token": 7,
            "meta": "bad",
        })
        world = build_world(snapshot)
        assert world.dice == ()
        assert world.board.squares == {}
        assert world.queue(Piece.BLUE) == ()
        assert world.board.token is None

    def test_hit_pops_shield_first(self) -> None:
        board = BoardView()
        board.occupancy["A1"] = Piece.GREEN
        board.squares[Piece.GREEN] = "A1"
        board.shields[Piece.GREEN] = True

        assert board.hit(Piece.GREEN) is False
        assert board.square_of(Piece.GREEN) == "A1"
        assert board.hit(Piece.GREEN) is True
        assert board.square_of(Piece.GREEN) is None
        assert "A1" not in board.occupancy

    def test_copy_is_independent(self, world_factory) -> None:
        world = world_factory(pieces={"Blue": "D6"})
        scratch = world.board.copy()
        scratch.move(Piece.BLUE, "D5")
        assert world.board.square_of(Piece.BLUE) == "D6"
        assert scratch.square_of(Piece.BLUE) == "D5"


class TestFinishLinesAndHomes:
    """Tests for finish line and home square defaults and overrides."""

    def test_default_finish_lines(self, world_factory) -> None:
        world = world_factory()
        assert world.is_finish(Side.P2, "C8")
        assert world.is_finish(Side.P1, "C1")
        assert not world.is_finish(Side.P2, "C1")

    def test_finish_override(self, world_factory) -> None:
        world = world_factory(meta={"finish": {"P2": ["D8"]}})
        assert world.finish_line(Side.P2) == ("D8",)
        assert world.distance_to_finish(Side.P2, "A8") == 3

    def test_engine_homes_keep_rank_eight_only(self, world_factory) -> None:
        world = world_factory(meta={"homes": {"P2": ["A8", "B7", "C8"]}})
        assert world.homes[Side.P2] == ("A8", "C8")

    def test_no_homes_override(self, world_factory) -> None:
        assert Side.P2 not in world_factory().homes


class TestQueues:
    """Tests for queue helpers."""

    def test_first_unrevealed_index(self) -> None:
        assert first_unrevealed_index(_queue("MOVE", "ATTACK", revealed=1)) == 2
        assert first_unrevealed_index(()) == 7

    def test_slots_left(self) -> None:
        assert slots_left(()) == 6
        assert slots_left(_queue("MOVE", "MOVE", "BLANK", revealed=2)) == 4

    def test_next_real_slot_skips_blanks(self) -> None:
        queue = _queue("BLANK", "DEFEND", "MOVE")
        assert next_real_slot(queue) == (2, ActionKind.DEFEND)
        assert remaining_real_after(queue) == 1

    def test_next_real_slot_when_empty(self) -> None:
        assert next_real_slot(_queue("BLANK", "BLANK")) == (NO_SLOT, None)
        assert remaining_real_after(()) == 0

    def test_remaining_capacity(self) -> None:
        assert ActionCounts(2, 2, 1).remaining_capacity() == ActionCounts(1, 0, 0)
        assert ActionCounts(4, 0, 0).remaining_capacity().move == 0


class TestDicePool:
    """Tests for the round's free dice."""

    def test_sorted_descending(self) -> None:
        assert compute_dice_pool([2, 5, 3], {}) == (5, 3, 2)

    def test_out_of_range_dropped(self) -> None:
        assert compute_dice_pool([0, 7, 4], {}) == (4,)

    def test_used_dice_removed_for_both_sides(self) -> None:
        """A piece holding k pending real cards consumes one die of value k."""
        queues = {
            Piece.BLUE: _queue("MOVE", "ATTACK"),
            Piece.GREEN: _queue("MOVE"),
        }
        assert compute_dice_pool([2, 2, 1], queues) == (2,)

    def test_world_pool(self, world_factory) -> None:
        world = world_factory(dice=[3, 1, 2], stacks={"Pink": ["MOVE", "MOVE", "DEFEND"]})
        assert world.dice == (3, 1, 2)
        assert world.dice_pool == (2, 1)


class TestPowerUpKnowledge:
    """Tests for visibility of power-up zones and hands."""

    def test_engine_zone_defaults_to_hidden(self, world_factory) -> None:
        world = world_factory(zones={"Blue": "Extra Move"})
        zone = world.zone(Piece.BLUE)
        assert zone.kind is PowerUpKind.EXTRA_MOVE
        assert zone.status is ZoneStatus.HIDDEN
        assert zone.occupied
        assert zone.holds(PowerUpKind.EXTRA_MOVE)

    def test_opponent_unrevealed_zone_masked(self, world_factory) -> None:
        world = world_factory(zones={"Green": "Extra Attack"})
        assert world.zone(Piece.GREEN).kind is PowerUpKind.HIDDEN

    def test_opponent_revealed_zone_visible(self, world_factory) -> None:
        world = world_factory(
            zones={"Green": "Extra Attack"}, zone_status={"Green": "Revealed"}
        )
        assert world.zone(Piece.GREEN).kind is PowerUpKind.EXTRA_ATTACK

    def test_revealed_zone_is_spent(self, world_factory) -> None:
        world = world_factory(zones={"Pink": "Extra Defend"}, zone_status={"Pink": "Revealed"})
        zone = world.zone(Piece.PINK)
        assert not zone.is_open
        assert not zone.occupied

    def test_hand_names_canonicalised(self, world_factory) -> None:
        world = world_factory(hand={"extra_defense": 1, "diag": 2, "bogus": 3})
        assert world.power_ups.held(PowerUpKind.EXTRA_DEFEND) == 1
        assert world.power_ups.held(PowerUpKind.DIAGONAL_MOVE) == 2
        assert world.power_ups.total_held == 3
        assert world.power_ups.first_held() is PowerUpKind.DIAGONAL_MOVE

    def test_hand_from_card_list(self) -> None:
        snapshot = Snapshot.model_validate(
            {"buffs": {"handCards": {"P2": ["Extra Move", "Extra Move"]}}}
        )
        assert build_world(snapshot).power_ups.held(PowerUpKind.EXTRA_MOVE) == 2
