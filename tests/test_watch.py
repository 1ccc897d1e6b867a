"""Watchpoint list tests."""

from __future__ import annotations

import pytest

from sdbexpr.errors import BadAddress, LexError, UnknownRegister
from sdbexpr.watch import WatchList, WatchpointError


@pytest.fixture
def watches(machine):
    return WatchList(machine, capacity=4)


class TestAdd:
    def test_records_initial_value(self, watches) -> None:
        wp = watches.add("$a0 + 1")
        assert wp.number == 0
        assert wp.value == 6
        assert len(watches) == 1

    def test_numbers_increase(self, watches) -> None:
        a = watches.add("$a0")
        b = watches.add("$a1")
        assert (a.number, b.number) == (0, 1)

    def test_bad_expression_not_added(self, watches) -> None:
        with pytest.raises(LexError):
            watches.add("$a0 @")
        with pytest.raises(UnknownRegister):
            watches.add("$nope")
        assert len(watches) == 0

    def test_capacity(self, watches) -> None:
        for _ in range(4):
            watches.add("1")
        with pytest.raises(WatchpointError, match="limit 4"):
            watches.add("1")


class TestRemove:
    def test_remove(self, watches) -> None:
        wp = watches.add("$a0")
        assert watches.remove(wp.number) is wp
        assert len(watches) == 0

    def test_remove_unknown(self, watches) -> None:
        with pytest.raises(WatchpointError):
            watches.remove(7)

    def test_numbers_not_reused(self, watches) -> None:
        watches.remove(watches.add("1").number)
        assert watches.add("2").number == 1


class TestCheck:
    def test_no_change(self, watches) -> None:
        watches.add("$a0")
        assert watches.check() == []

    def test_register_change(self, watches, machine) -> None:
        wp = watches.add("$a0 == 5")
        machine.set_register("a0", 6)
        hits = watches.check()
        assert len(hits) == 1
        assert hits[0].watchpoint is wp
        assert (hits[0].old, hits[0].new) == (1, 0)
        assert wp.value == 0
        assert watches.check() == []

    def test_memory_change(self, watches, machine) -> None:
        watches.add("*$sp")
        untouched = watches.add("$a1")
        machine.write_memory(0x80001000, 43)
        hits = watches.check()
        assert [h.watchpoint.expression for h in hits] == ["*$sp"]
        assert untouched.value == 7

    def test_failed_check_keeps_earlier_changes(self, watches, machine) -> None:
        machine.set_register("a1", 0x80001000)
        first = watches.add("$a0")
        watches.add("*$a1")
        machine.set_register("a0", 99)
        machine.set_register("a1", 0x10)
        with pytest.raises(BadAddress):
            watches.check()
        assert first.value == 5

        machine.set_register("a1", 0x80001000)
        hits = watches.check()
        assert [(h.watchpoint, h.old, h.new) for h in hits] == [(first, 5, 99)]

    def test_iteration_order(self, watches) -> None:
        watches.add("1")
        watches.add("2")
        assert [wp.expression for wp in watches] == ["1", "2"]
