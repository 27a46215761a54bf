"""Tests for Instant."""

import pytest

from loopthreadsim.core.temporal import Instant


class TestInstantConstruction:
    def test_epoch_is_zero(self):
        assert Instant.Epoch.nanoseconds == 0

    def test_from_seconds(self):
        assert Instant.from_seconds(1.5).nanoseconds == 1_500_000_000

    def test_from_millis(self):
        assert Instant.from_millis(250).nanoseconds == 250_000_000

    def test_round_trip_units(self):
        t = Instant.from_millis(1234)
        assert t.to_millis() == pytest.approx(1234.0)
        assert t.to_seconds() == pytest.approx(1.234)


class TestInstantArithmetic:
    def test_add_float_seconds(self):
        assert Instant.Epoch + 0.1 == Instant.from_millis(100)

    def test_repeated_small_additions_do_not_drift(self):
        t = Instant.Epoch
        for _ in range(1000):
            t = t + 0.1
        assert t == Instant.from_seconds(100)

    def test_add_instant(self):
        assert Instant.from_seconds(1) + Instant.from_seconds(2) == Instant.from_seconds(3)

    def test_subtract(self):
        assert (Instant.from_seconds(3) - Instant.from_seconds(1)).to_seconds() == 2.0
        assert Instant.from_seconds(3) - 1 == Instant.from_seconds(2)

    def test_unsupported_operand(self):
        with pytest.raises(TypeError):
            Instant.Epoch + "1"


class TestInstantOrdering:
    def test_comparisons(self):
        a = Instant.from_millis(100)
        b = Instant.from_millis(200)
        assert a < b
        assert a <= b
        assert b > a
        assert b >= a
        assert a != b
        assert a == Instant.from_seconds(0.1)

    def test_hashable(self):
        assert len({Instant.from_millis(5), Instant.from_millis(5)}) == 1
