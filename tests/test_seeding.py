"""Tests for deterministic per-request seeding."""

import pytest

from battleplan_ai.ai.base import DecisionContext
from battleplan_ai.ai.seeding import (
    SOURCE_DERIVED,
    SOURCE_EXPLICIT,
    SOURCE_SNAPSHOT,
    board_hash,
    parse_explicit_seed,
    sdbm,
    seed_for_request,
)
from battleplan_ai.ai.world import build_world
from battleplan_ai.models import DecisionRequest


def _request(snapshot_dict, **kwargs):
    request = DecisionRequest.model_validate({"kind": "action", "snapshot": snapshot_dict, **kwargs})
    return request, build_world(request.snapshot)


class TestSdbm:

    def test_empty_string(self) -> None:
        assert sdbm("") == 5381

    def test_known_value(self) -> None:
        assert sdbm("a") == (5381 * 33 + 97) % (2**31 - 1)

    def test_stays_in_range(self) -> None:
        assert 0 <= sdbm("x" * 1000) < 2**31 - 1


class TestExplicitSeeds:

    @pytest.mark.parametrize(
        "value,expected",
        [(42, 42), ("42", 42), (" 7 ", 7), ("3.9", 3), ("0x1F", 31)],
    )
    def test_numeric_forms(self, value, expected) -> None:
        assert parse_explicit_seed(value) == expected

    def test_other_strings_hash(self) -> None:
        assert parse_explicit_seed("match-12") == sdbm("match-12")

    def test_overflowing_number_hashes(self) -> None:
        assert parse_explicit_seed("1e999") == sdbm("1e999")


class TestSeedForRequest:
    """Tests for seed precedence and stability."""

    def test_request_seed_wins(self, snapshot_dict_factory) -> None:
        request, world = _request(snapshot_dict_factory(meta={"seed": 5}), seed=9)
        assert seed_for_request(request, world) == (9, SOURCE_EXPLICIT)

    def test_snapshot_seed_next(self, snapshot_dict_factory) -> None:
        request, world = _request(snapshot_dict_factory(meta={"turnSeed": "0x10"}))
        assert seed_for_request(request, world) == (16, SOURCE_SNAPSHOT)

    def test_derived_is_stable(self, snapshot_dict_factory) -> None:
        raw = snapshot_dict_factory(pieces={"Blue": "D6", "Green": "C3"}, dice=[4, 2])
        first = seed_for_request(*_request(raw))
        second = seed_for_request(*_request(raw))
        assert first == second
        assert first[1] == SOURCE_DERIVED

    def test_dice_order_irrelevant(self, snapshot_dict_factory) -> None:
        a = seed_for_request(*_request(snapshot_dict_factory(dice=[4, 2, 1])))
        b = seed_for_request(*_request(snapshot_dict_factory(dice=[1, 4, 2])))
        assert a == b

    def test_board_changes_seed(self, snapshot_dict_factory) -> None:
        a = seed_for_request(*_request(snapshot_dict_factory(pieces={"Blue": "D6"})))
        b = seed_for_request(*_request(snapshot_dict_factory(pieces={"Blue": "D5"})))
        assert a != b

    def test_salt_ignored_with_same_seed(self, snapshot_dict_factory) -> None:
        raw = snapshot_dict_factory(pieces={"Blue": "D6"})
        salted = dict(raw, rng={"ai_salt": "P2"})
        shared = dict(raw, rng={"ai_salt": "P2", "same_seed": True})
        assert seed_for_request(*_request(salted)) != seed_for_request(*_request(raw))
        assert seed_for_request(*_request(shared)) == seed_for_request(*_request(raw))

    def test_board_hash_ignores_piece_order(self, snapshot_dict_factory) -> None:
        _, a = _request(snapshot_dict_factory(pieces={"Blue": "D6", "Pink": "A8"}))
        _, b = _request(snapshot_dict_factory(pieces={"Pink": "A8", "Blue": "D6"}))
        assert board_hash(a) == board_hash(b)


class TestDecisionContext:

    def test_reseed_reproduces_noise(self) -> None:
        ctx = DecisionContext(seed=1)
        ctx.reseed(77)
        first = [ctx.noise(1.0) for _ in range(3)]
        ctx.reseed(77)
        assert [ctx.noise(1.0) for _ in range(3)] == first

    def test_zero_noise_draws_nothing(self) -> None:
        ctx = DecisionContext(seed=1)
        state = ctx.rng.getstate()
        assert ctx.noise(0.0) == 0.0
        assert ctx.rng.getstate() == state

    def test_cached_plans_searches_once(self) -> None:
        ctx = DecisionContext(seed=1)
        calls = []

        def compute():
            calls.append(1)
            return "value"

        assert ctx.cached_plans("k", compute) == "value"
        assert ctx.cached_plans("k", compute) == "value"
        assert len(calls) == 1
        assert ctx.clear_cache() == 1
        assert len(ctx.cache) == 0
