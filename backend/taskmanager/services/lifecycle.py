"""Task lifecycle rules.

Status and archive bookkeeping runs here, before persistence, instead of in
ORM events, so the rules can be exercised without a database:

- entering ``completed`` stamps ``completed_at`` (once) and forces
  ``progression`` to 100;
- leaving ``completed`` clears ``completed_at`` and, when progression was
  100, drops it back to 50 for ``in-progress`` or 0 for anything else;
- archiving is independent of status and only tracks ``archived_at``.

Each function mutates the object it is given and returns the fields it
changed, which is handy for logging and tests.
"""

from datetime import datetime

from taskmanager.models.base import utcnow

COMPLETED = "completed"
IN_PROGRESS = "in-progress"


def apply_status_transition(task, new_status: str, now: datetime | None = None) -> dict:
    """Move ``task`` to ``new_status`` and apply completion bookkeeping."""
    now = now or utcnow()
    changes: dict = {}

    if task.status != new_status:
        task.status = new_status
        changes["status"] = new_status

    if new_status == COMPLETED:
        if task.completed_at is None:
            task.completed_at = now
            changes["completed_at"] = now
            if task.progression != 100:
                task.progression = 100
                changes["progression"] = 100
    elif task.completed_at is not None:
        task.completed_at = None
        changes["completed_at"] = None
        if task.progression == 100:
            task.progression = 50 if new_status == IN_PROGRESS else 0
            changes["progression"] = task.progression

    return changes


def apply_archive_flag(task, archived: bool, now: datetime | None = None) -> dict:
    """Archive or unarchive ``task``, keeping ``archived_at`` in step."""
    changes: dict = {}
    if bool(task.is_archived) != archived:
        task.is_archived = archived
        changes["is_archived"] = archived

    if archived and task.archived_at is None:
        task.archived_at = now or utcnow()
        changes["archived_at"] = task.archived_at
    elif not archived and task.archived_at is not None:
        task.archived_at = None
        changes["archived_at"] = None

    return changes


def set_subtask_completion(subtask, done: bool, now: datetime | None = None) -> None:
    subtask.is_completed = done
    if done:
        subtask.completed_at = subtask.completed_at or now or utcnow()
    else:
        subtask.completed_at = None
