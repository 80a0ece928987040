"""Read-time task fields and numeric helpers."""

from datetime import timedelta

from taskmanager.models import Subtask, Task
from taskmanager.models.base import utcnow
from taskmanager.utils.numbers import round_half_up, safe_percentage


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(2.4) == 2
    assert round_half_up(66.666) == 67


def test_safe_percentage():
    assert safe_percentage(1, 3) == 33
    assert safe_percentage(2, 3) == 67
    assert safe_percentage(3, 2) == 150
    assert safe_percentage(5, 0) == 0


def test_days_until_deadline_rounds_up():
    task = Task(title="t", status="pending", deadline=utcnow() + timedelta(days=2, hours=1))
    assert task.days_until_deadline == 3
    assert task.is_overdue is False


def test_days_until_deadline_without_deadline():
    assert Task(title="t", status="pending", deadline=None).days_until_deadline is None


def test_past_deadline_is_overdue_unless_completed():
    past = utcnow() - timedelta(days=1)
    assert Task(title="t", status="pending", deadline=past).is_overdue is True
    assert Task(title="t", status="completed", deadline=past).is_overdue is False


def test_naive_deadline_is_read_as_utc():
    naive_past = (utcnow() - timedelta(hours=2)).replace(tzinfo=None)
    assert Task(title="t", status="in-progress", deadline=naive_past).is_overdue is True


def test_subtask_completion_rate():
    task = Task(
        title="t",
        subtasks=[
            Subtask(title="a", is_completed=True),
            Subtask(title="b", is_completed=False),
            Subtask(title="c", is_completed=False),
        ],
    )
    assert task.subtask_completion_rate == 33
    assert Task(title="t", subtasks=[]).subtask_completion_rate == 0
