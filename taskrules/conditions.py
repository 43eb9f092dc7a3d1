"""Phrase-based condition matching.

A rule condition is free text such as ``task contains 'Adil'``. It is tested
against ``PHRASE_FORMS`` in order; the first form whose trigger appears in the
condition decides the outcome, even when its predicate is false. Conditions
no form recognizes never match.

All comparisons are case-insensitive. Dates are compared as calendar dates
(``YYYY-MM-DD`` prefix of the stored value); "today" is the current date in
the configured timezone unless a ``today`` value is supplied.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, Optional
from zoneinfo import ZoneInfo

from taskrules.schema import Task, status_equals

Predicate = Callable[[re.Match, Task, date], bool]

_QUOTED = r"\s+['\"]([^'\"]+)['\"]"


def current_date(tz_name: str = "UTC") -> date:
    return datetime.now(ZoneInfo(tz_name)).date()


def parse_day(value: Optional[str]) -> Optional[date]:
    """Parse the date part of an ISO-like string, or return None."""

    if not value:
        return None
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None


def _lower(value: Optional[str]) -> str:
    return (value or "").lower()


def _text_fields(task: Task) -> tuple[str, str]:
    return _lower(task.title), _lower(task.description)


def _contains(match: re.Match, task: Task, today: date) -> bool:
    term = match.group(1).lower()
    fields = (task.title, task.description, task.assigned_to, task.category)
    if any(term in _lower(value) for value in fields):
        return True
    return any(term in tag.lower() for tag in task.tags)


def _time_is(match: re.Match, task: Task, today: date) -> bool:
    word = match.group(1).lower()
    return any(word in text for text in _text_fields(task))


def _weekend(match: re.Match, task: Task, today: date) -> bool:
    day = parse_day(task.due_date or task.scheduled_for)
    # Monday is 0, Saturday 5, Sunday 6
    return day is not None and day.weekday() >= 5


def _priority_is(match: re.Match, task: Task, today: date) -> bool:
    return _lower(task.priority) == match.group(1).strip().lower()


def _status_is(match: re.Match, task: Task, today: date) -> bool:
    return status_equals(task.status, match.group(1))


def _assigned_to(match: re.Match, task: Task, today: date) -> bool:
    return match.group(1).lower() in _lower(task.assigned_to)


def _due_today(match: re.Match, task: Task, today: date) -> bool:
    return parse_day(task.due_date) == today


def is_overdue(task: Task, today: date) -> bool:
    due = parse_day(task.due_date)
    return due is not None and due < today and not status_equals(task.status, "Completed")


def _overdue(match: re.Match, task: Task, today: date) -> bool:
    return is_overdue(task, today)


def _keywords(*keywords: str) -> Predicate:
    def predicate(match: re.Match, task: Task, today: date) -> bool:
        texts = _text_fields(task)
        return any(keyword in text for keyword in keywords for text in texts)

    return predicate


@dataclass(frozen=True)
class PhraseForm:
    """One recognized condition shape and the predicate it selects."""

    name: str
    trigger: re.Pattern
    predicate: Predicate


def _form(name: str, pattern: str, predicate: Predicate) -> PhraseForm:
    return PhraseForm(name, re.compile(pattern, re.IGNORECASE), predicate)


def _phrase(name: str, phrase: str, predicate: Predicate) -> PhraseForm:
    return _form(name, re.escape(phrase), predicate)


PHRASE_FORMS: tuple[PhraseForm, ...] = (
    _form("contains", r"contains" + _QUOTED, _contains),
    _form("time_is", r"time is" + _QUOTED, _time_is),
    _phrase("weekend", "scheduled for saturday or sunday", _weekend),
    _form("priority_is", r"priority is" + _QUOTED, _priority_is),
    _form("status_is", r"status is" + _QUOTED, _status_is),
    _form("assigned_to", r"assigned to" + _QUOTED, _assigned_to),
    _phrase("due_today", "due today", _due_today),
    _phrase("overdue", "overdue", _overdue),
    _phrase(
        "communication",
        "involves calls, communication, or errands",
        _keywords("call", "phone", "email", "message", "text", "communicate", "errand", "pickup", "drop off"),
    ),
    _phrase(
        "quick",
        "quick or under 15 minutes",
        _keywords("quick", "fast", "brief", "5 min", "10 min", "15 min", "short"),
    ),
    _phrase(
        "admin",
        "admin work, paperwork or coordination",
        _keywords("admin", "paperwork", "coordinate", "schedule", "organize", "plan", "document", "form"),
    ),
    _phrase(
        "health",
        "grooming, meals, health or reflection",
        _keywords(
            "shower", "brush", "eat", "meal", "breakfast", "lunch", "dinner",
            "exercise", "workout", "meditate", "reflect",
        ),
    ),
    _phrase(
        "academic",
        "learning, university, academia, research",
        _keywords("study", "learn", "research", "read", "university", "course", "assignment", "homework", "exam"),
    ),
    _phrase(
        "team",
        "team instructions or maintenance requests",
        _keywords("team", "instruct", "delegate", "assign", "maintain", "fix", "repair", "update"),
    ),
)


def resolve(condition: str) -> Optional[tuple[PhraseForm, re.Match]]:
    """Return the first phrase form whose trigger appears in ``condition``."""

    for form in PHRASE_FORMS:
        match = form.trigger.search(condition)
        if match:
            return form, match
    return None


def recognize(condition: str) -> Optional[str]:
    """Name of the phrase form that would handle ``condition``, if any."""

    resolved = resolve(condition)
    return resolved[0].name if resolved else None


def matches(condition: str, task: Task, today: Optional[date] = None, timezone: str = "UTC") -> bool:
    """Evaluate a rule condition against a task."""

    resolved = resolve(condition)
    if resolved is None:
        return False
    form, match = resolved
    return form.predicate(match, task, today or current_date(timezone))
