"""
Tests for the Ledger

The ledger is pure, so everything here runs without fixtures for
storage or transport.
"""

import pytest

from tabsbot.ledger import (
    EMPTY_TAB_MESSAGE,
    AmbiguousUserError,
    Ledger,
    UserNotFoundError,
)
from tabsbot.models.tab import LedgerSnapshot, RoomTab

from conftest import ALICE, BOB, CAROL, ROOM


OTHER_ROOM = "!other:example.org"


class TestPay:
    """Tests for Ledger.pay."""

    def test_pay_creates_room_and_user(self, ledger):
        ledger.pay(1250, ROOM, ALICE)

        assert ROOM in ledger
        assert ledger.get(ROOM).users == {ALICE: 1250}

    def test_pay_is_additive(self, ledger):
        ledger.pay(1250, ROOM, ALICE)
        ledger.pay(300, ROOM, ALICE)

        assert ledger.get(ROOM).users[ALICE] == 1550

    def test_pay_zero_registers_user(self, ledger):
        """Test that "!paid 0" makes a user known to the room."""
        ledger.pay(0, ROOM, BOB)

        assert ledger.get(ROOM).users == {BOB: 0}

    def test_pay_accepts_negative_amounts(self, ledger):
        ledger.pay(-200, ROOM, ALICE)

        assert ledger.get(ROOM).users[ALICE] == -200

    def test_rooms_are_independent(self, ledger):
        ledger.pay(100, ROOM, ALICE)
        ledger.pay(700, OTHER_ROOM, ALICE)

        assert ledger.get(ROOM).users[ALICE] == 100
        assert ledger.get(OTHER_ROOM).users[ALICE] == 700


class TestPayTo:
    """Tests for Ledger.pay_to."""

    def test_transfer_conserves_total(self, ledger):
        ledger.pay(1000, ROOM, ALICE)
        ledger.pay(0, ROOM, BOB)

        other = ledger.pay_to(500, ROOM, ALICE, "bob")

        tab = ledger.get(ROOM)
        assert other == BOB
        assert tab.users == {ALICE: 1500, BOB: -500}
        assert tab.total == 1000

    def test_transfer_materializes_sender(self, ledger):
        """Test that the payer need not be known yet."""
        ledger.pay(0, ROOM, BOB)

        ledger.pay_to(250, ROOM, CAROL, "bob")

        assert ledger.get(ROOM).users == {BOB: -250, CAROL: 250}

    def test_search_is_case_sensitive(self, ledger):
        ledger.pay(0, ROOM, BOB)

        with pytest.raises(UserNotFoundError):
            ledger.pay_to(100, ROOM, ALICE, "BOB")

    def test_search_matches_any_substring(self, ledger):
        ledger.pay(0, ROOM, BOB)

        assert ledger.pay_to(100, ROOM, ALICE, "b:example") == BOB

    def test_ambiguous_search_mutates_nothing(self, ledger):
        ledger.pay(100, ROOM, ALICE)
        ledger.pay(0, ROOM, "@bob:example.org")
        ledger.pay(0, ROOM, "@jimbob:example.org")
        before = ledger.snapshot()

        with pytest.raises(AmbiguousUserError) as exc_info:
            ledger.pay_to(500, ROOM, ALICE, "bob")

        assert exc_info.value.search == "bob"
        assert exc_info.value.candidates == ["@bob:example.org", "@jimbob:example.org"]
        assert ledger.snapshot() == before

    def test_unknown_search_mutates_nothing(self, ledger):
        ledger.pay(100, ROOM, ALICE)
        before = ledger.snapshot()

        with pytest.raises(UserNotFoundError) as exc_info:
            ledger.pay_to(500, ROOM, ALICE, "bob")

        assert exc_info.value.search == "bob"
        assert ledger.snapshot() == before

    def test_unknown_room_is_not_created(self, ledger):
        """Test that a failed transfer does not create the room's tab."""
        with pytest.raises(UserNotFoundError):
            ledger.pay_to(500, ROOM, ALICE, "bob")

        assert ROOM not in ledger
        assert ledger.balance(ROOM) == EMPTY_TAB_MESSAGE

    def test_payer_can_match_themself(self, ledger):
        """Test that a search matching only the payer nets to zero."""
        ledger.pay(300, ROOM, ALICE)

        assert ledger.pay_to(100, ROOM, ALICE, "alice") == ALICE
        assert ledger.get(ROOM).users == {ALICE: 300}

    def test_resolve_user_does_not_mutate(self, ledger):
        ledger.pay(0, ROOM, BOB)
        before = ledger.snapshot()

        assert ledger.resolve_user(ROOM, "bob") == BOB
        assert ledger.snapshot() == before

    def test_resolve_user_in_unknown_room(self, ledger):
        with pytest.raises(UserNotFoundError):
            ledger.resolve_user(ROOM, "bob")

        assert ROOM not in ledger


class TestBalance:
    """Tests for Ledger.balance."""

    def test_unknown_room_returns_sentinel(self, ledger):
        assert ledger.balance("!nowhere:example.org") == EMPTY_TAB_MESSAGE

    def test_balance_lists_every_user(self, ledger):
        ledger.pay(1250, ROOM, ALICE)
        ledger.pay(0, ROOM, BOB)
        ledger.pay_to(305, ROOM, ALICE, "bob")

        assert ledger.balance(ROOM) == (
            "Current room balance:\n"
            f" - {ALICE}: 15.55\n"
            f" - {BOB}: -3.05"
        )

    def test_restored_empty_tab_has_header_only(self, ledger):
        ledger.restore(ROOM, RoomTab())

        assert ledger.balance(ROOM) == "Current room balance:"


class TestRebalance:
    """Tests for Ledger.rebalance."""

    def test_rebalance_to_zero_mean(self, ledger):
        ledger.pay(900, ROOM, ALICE)
        ledger.pay(300, ROOM, BOB)
        ledger.pay(0, ROOM, CAROL)

        ledger.rebalance(ROOM)

        assert ledger.get(ROOM).users == {ALICE: 500, BOB: -100, CAROL: -400}

    def test_zero_sum_tab_is_unchanged(self, ledger):
        ledger.restore(ROOM, RoomTab(users={ALICE: 700, BOB: -300, CAROL: -400}))

        ledger.rebalance(ROOM)

        assert ledger.get(ROOM).users == {ALICE: 700, BOB: -300, CAROL: -400}

    @pytest.mark.parametrize(
        "balances",
        [
            {ALICE: 100, BOB: 0, CAROL: 0},
            {ALICE: -100, BOB: 0, CAROL: 0},
            {ALICE: 1, BOB: 1},
            {ALICE: -7, BOB: -1, CAROL: 3},
            {ALICE: 12345},
        ],
    )
    def test_residual_is_smaller_than_user_count(self, ledger, balances):
        ledger.restore(ROOM, RoomTab(users=balances))

        ledger.rebalance(ROOM)

        assert abs(ledger.get(ROOM).total) < len(balances)

    def test_negative_mean_truncates_toward_zero(self, ledger):
        """Test that -100 over 3 users shifts by -33, not -34."""
        ledger.restore(ROOM, RoomTab(users={ALICE: -100, BOB: 0, CAROL: 0}))

        ledger.rebalance(ROOM)

        assert ledger.get(ROOM).users == {ALICE: -67, BOB: 33, CAROL: 33}

    def test_unknown_room_is_noop(self, ledger):
        ledger.rebalance(ROOM)

        assert ROOM not in ledger

    def test_empty_tab_is_noop(self, ledger):
        """Test that a tab with no users does not divide by zero."""
        ledger.restore(ROOM, RoomTab())

        ledger.rebalance(ROOM)

        assert ledger.get(ROOM).users == {}


class TestOwnership:
    """Tests for restore/get/snapshot copying."""

    def test_get_returns_a_copy(self, ledger):
        ledger.pay(100, ROOM, ALICE)

        ledger.get(ROOM).users[ALICE] = 999_999

        assert ledger.get(ROOM).users[ALICE] == 100

    def test_restore_copies_the_tab(self, ledger):
        tab = RoomTab(users={ALICE: 100})
        ledger.restore(ROOM, tab)

        tab.users[ALICE] = 0

        assert ledger.get(ROOM).users[ALICE] == 100

    def test_restore_overwrites(self, ledger):
        ledger.pay(100, ROOM, ALICE)

        ledger.restore(ROOM, RoomTab(users={BOB: 42}))

        assert ledger.get(ROOM).users == {BOB: 42}

    def test_snapshot_round_trip(self, ledger):
        ledger.pay(1250, ROOM, ALICE)
        ledger.pay(-40, OTHER_ROOM, BOB)

        rebuilt = Ledger.from_snapshot(
            LedgerSnapshot.model_validate_json(ledger.snapshot().model_dump_json())
        )

        assert rebuilt.snapshot() == ledger.snapshot()
        assert sorted(rebuilt.rooms()) == sorted([ROOM, OTHER_ROOM])
        assert len(rebuilt) == 2
