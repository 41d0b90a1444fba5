import pytest

from exceptions import OperationTimedOut
from utils.deadline import Deadline


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


def test_check_passes_within_budget():
    clock = FakeClock()
    deadline = Deadline("create_intercompany_invoice", seconds=5, clock=clock)
    clock.now += 4
    deadline.check("post journal entries")
    assert deadline.remaining == pytest.approx(1)
    assert not deadline.expired


def test_check_raises_once_budget_is_spent():
    clock = FakeClock()
    deadline = Deadline("create_intercompany_invoice", seconds=5, clock=clock)
    clock.now += 5
    with pytest.raises(OperationTimedOut) as exc:
        deadline.check("post journal entries")
    assert exc.value.retryable
    assert exc.value.context["step"] == "post journal entries"
    assert deadline.remaining == 0


def test_deadlines_are_independent():
    clock = FakeClock()
    first = Deadline("a", seconds=1, clock=clock)
    clock.now += 2
    second = Deadline("b", seconds=1, clock=clock)
    assert first.expired
    assert not second.expired
