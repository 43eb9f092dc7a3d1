"""Canonical data model for rules, tasks and people."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Optional

PRIORITIES = ("Low", "Medium", "High", "Critical")
RULE_PRIORITIES = ("Low", "Medium", "High")
STATUSES = ("Pending", "InProgress", "Completed", "Cancelled")

DEFAULT_PRIORITY = "Medium"
DEFAULT_STATUS = "Pending"


def _status_key(value: str) -> str:
    return "".join(ch for ch in value.lower() if ch not in " _-")


def normalize_priority(value: str, allowed: tuple[str, ...] = PRIORITIES) -> str:
    """Return the canonical spelling of a priority, or raise ValueError."""

    wanted = value.strip().lower()
    for candidate in allowed:
        if candidate.lower() == wanted:
            return candidate
    raise ValueError(f"invalid priority '{value}'")


def normalize_status(value: str) -> str:
    """Return the canonical spelling of a status ("In Progress" -> "InProgress")."""

    wanted = _status_key(value)
    for candidate in STATUSES:
        if _status_key(candidate) == wanted:
            return candidate
    raise ValueError(f"invalid status '{value}'")


def status_equals(left: Optional[str], right: Optional[str]) -> bool:
    return _status_key(left or "") == _status_key(right or "")


def new_id(prefix: str, index: Optional[int] = None) -> str:
    suffix = uuid.uuid4().hex[:8]
    if index is None:
        return f"{prefix}-{suffix}"
    return f"{prefix}-{index}-{suffix}"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class Rule:
    """A conditional rule: when ``condition`` matches, apply ``effects``."""

    id: str
    condition: str
    effects: dict[str, str] = field(default_factory=dict)
    enabled: bool = True

    def to_dict(self) -> dict:
        return {"id": self.id, "if": self.condition, "then": dict(self.effects), "enabled": self.enabled}


@dataclass
class Task:
    """Task record with its ingested snapshot and rule-derived properties."""

    id: str
    title: str
    description: Optional[str] = None
    assigned_to: Optional[str] = None
    due_date: Optional[str] = None
    due_time: Optional[str] = None
    priority: str = DEFAULT_PRIORITY
    status: str = DEFAULT_STATUS
    estimated_duration: Optional[str] = None
    category: Optional[str] = None
    tags: list[str] = field(default_factory=list)
    scheduled_for: Optional[str] = None
    original_properties: dict[str, str] = field(default_factory=dict)
    applied_properties: dict[str, str] = field(default_factory=dict)
    applied_rules: list[str] = field(default_factory=list)
    created_at: str = field(default_factory=utc_now_iso)
    updated_at: str = field(default_factory=utc_now_iso)

    def touch(self) -> None:
        """Advance ``updated_at`` to now."""

        self.updated_at = _advance(self.updated_at)

    def to_dict(self) -> dict:
        payload = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "assignedTo": self.assigned_to,
            "dueDate": self.due_date,
            "dueTime": self.due_time,
            "priority": self.priority,
            "status": self.status,
            "estimatedDuration": self.estimated_duration,
            "category": self.category,
            "tags": list(self.tags),
            "scheduledFor": self.scheduled_for,
            "originalProperties": dict(self.original_properties),
            "appliedProperties": dict(self.applied_properties),
            "appliedRules": list(self.applied_rules),
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
        return {key: value for key, value in payload.items() if value is not None}


def _advance(stamp: str) -> str:
    now = datetime.now(timezone.utc)
    try:
        previous = datetime.fromisoformat(stamp.replace("Z", "+00:00"))
    except ValueError:
        return now.isoformat()
    if previous.tzinfo is None:
        previous = previous.replace(tzinfo=timezone.utc)
    # strictly later than the previous stamp, even within one clock tick
    return max(now, previous + timedelta(microseconds=1)).isoformat()


@dataclass
class Person:
    """A person tasks may be assigned to (matched by name only)."""

    id: str
    name: str
    email: Optional[str] = None
    role: Optional[str] = None
    department: Optional[str] = None
    availability: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        payload = {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "department": self.department,
            "availability": list(self.availability),
        }
        return {key: value for key, value in payload.items() if value is not None}


@dataclass
class IngestResult:
    """Output of one ingestion call."""

    rules: list[Rule] = field(default_factory=list)
    tasks: list[Task] = field(default_factory=list)
    people: list[Person] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @classmethod
    def failed(cls, message: str) -> "IngestResult":
        return cls(errors=[message])

    def counts(self) -> dict:
        return {
            "rules": len(self.rules),
            "tasks": len(self.tasks),
            "people": len(self.people),
            "errors": len(self.errors),
        }

    def to_dict(self) -> dict:
        return {
            "rules": [rule.to_dict() for rule in self.rules],
            "tasks": [task.to_dict() for task in self.tasks],
            "people": [person.to_dict() for person in self.people],
            "errors": list(self.errors),
        }
