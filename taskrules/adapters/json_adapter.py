"""JSON adapter for rules, tasks and people."""

from __future__ import annotations

import json
from typing import Any, Callable, Optional

import structlog

from taskrules.errors import ContainerMalformed, RecordInvalid
from taskrules.schema import (
    DEFAULT_PRIORITY,
    DEFAULT_STATUS,
    RULE_PRIORITIES,
    IngestResult,
    Person,
    Rule,
    Task,
    new_id,
    normalize_priority,
    normalize_status,
    utc_now_iso,
)

logger = structlog.get_logger(__name__)

_SCALARS = (str, int, float, bool)


def _first(item: dict, *keys: str) -> Any:
    for key in keys:
        value = item.get(key)
        if value is not None:
            return value
    return None


def _scalar_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value).strip()


def _optional_text(item: dict, *keys: str) -> Optional[str]:
    value = _first(item, *keys)
    if value is None or isinstance(value, (dict, list)):
        return None
    text = _scalar_text(value)
    return text or None


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [_scalar_text(entry) for entry in value if isinstance(entry, _SCALARS) and _scalar_text(entry)]


def _property_map(value: Any) -> dict[str, str]:
    if not isinstance(value, dict):
        return {}
    properties = {}
    for key, raw in value.items():
        if raw is None:
            continue
        properties[str(key)] = _scalar_text(raw) if isinstance(raw, _SCALARS) else json.dumps(raw, sort_keys=True)
    return properties


def _record_id(item: dict, prefix: str, index: int) -> str:
    raw = item.get("id")
    if isinstance(raw, (str, int)) and not isinstance(raw, bool) and str(raw).strip():
        return str(raw).strip()
    return new_id(prefix, index)


def parse_effects(raw: dict, where: str) -> dict[str, str]:
    """Validate a rule effect mapping into ``dict[str, str]``."""

    effects: dict[str, str] = {}
    for key, value in raw.items():
        if value is None:
            continue
        if not isinstance(value, _SCALARS):
            raise RecordInvalid(f"{where}: effect '{key}' must be a scalar value")
        effects[str(key)] = _scalar_text(value)
    if "priority" in effects:
        try:
            effects["priority"] = normalize_priority(effects["priority"], RULE_PRIORITIES)
        except ValueError as exc:
            raise RecordInvalid(f"{where}: {exc}") from exc
    return effects


def _parse_rule(item: Any, index: int) -> Rule:
    where = f"Invalid rule at index {index}"
    if not isinstance(item, dict):
        raise RecordInvalid(f"{where}: expected an object")

    condition = _first(item, "if", "condition")
    if not isinstance(condition, str) or not condition.strip():
        raise RecordInvalid(f"{where}: condition must be a non-empty string")

    raw_effects = _first(item, "then", "effects")
    if raw_effects is None:
        raw_effects = {}
    if not isinstance(raw_effects, dict):
        raise RecordInvalid(f"{where}: effects must be an object")

    return Rule(
        id=_record_id(item, "rule", index),
        condition=condition.strip(),
        effects=parse_effects(raw_effects, where),
        enabled=item.get("enabled") is not False,
    )


def _parse_task(item: Any, index: int) -> Task:
    where = f"Invalid task at index {index}"
    if not isinstance(item, dict):
        raise RecordInvalid(f"{where}: expected an object")

    title = item.get("title")
    if not isinstance(title, str) or not title.strip():
        raise RecordInvalid(f"{where}: missing required title")

    try:
        priority = normalize_priority(_optional_text(item, "priority") or DEFAULT_PRIORITY)
        status = normalize_status(_optional_text(item, "status") or DEFAULT_STATUS)
    except ValueError as exc:
        raise RecordInvalid(f"{where}: {exc}") from exc

    try:
        original = _property_map(_first(item, "originalProperties", "original_properties"))
    except RecursionError as exc:
        raise RecordInvalid(f"{where}: originalProperties nested too deeply") from exc
    created_at = _optional_text(item, "createdAt", "created_at") or utc_now_iso()

    return Task(
        id=_record_id(item, "task", index),
        title=title.strip(),
        description=_optional_text(item, "description"),
        assigned_to=_optional_text(item, "assignedTo", "assigned_to"),
        due_date=_optional_text(item, "dueDate", "due_date"),
        due_time=_optional_text(item, "dueTime", "due_time"),
        priority=priority,
        status=status,
        estimated_duration=_optional_text(item, "estimatedDuration", "estimated_duration"),
        category=_optional_text(item, "category"),
        tags=_string_list(item.get("tags")),
        scheduled_for=_optional_text(item, "scheduledFor", "scheduled_for"),
        original_properties=original,
        applied_properties=dict(original),
        created_at=created_at,
        updated_at=_optional_text(item, "updatedAt", "updated_at") or created_at,
    )


def _parse_person(item: Any, index: int) -> Person:
    where = f"Invalid person at index {index}"
    if not isinstance(item, dict):
        raise RecordInvalid(f"{where}: expected an object")

    name = item.get("name")
    if not isinstance(name, str) or not name.strip():
        raise RecordInvalid(f"{where}: missing required name")

    return Person(
        id=_record_id(item, "person", index),
        name=name.strip(),
        email=_optional_text(item, "email"),
        role=_optional_text(item, "role"),
        department=_optional_text(item, "department"),
        availability=_string_list(item.get("availability")),
    )


def _collect(payload: dict, key: str, build: Callable[[Any, int], Any], into: list, errors: list[str]) -> None:
    entries = payload.get(key)
    if entries is None:
        return
    if not isinstance(entries, list):
        errors.append(f"Expected '{key}' to be an array")
        return
    for index, entry in enumerate(entries):
        try:
            into.append(build(entry, index))
        except RecordInvalid as exc:
            logger.debug("json_adapter.record_skipped", section=key, index=index, reason=str(exc))
            errors.append(str(exc))


def parse(content: str) -> IngestResult:
    """Parse a JSON document with optional ``rules``, ``tasks`` and ``people`` arrays."""

    try:
        payload = json.loads(content)
    except (json.JSONDecodeError, RecursionError) as exc:
        raise ContainerMalformed(f"JSON parsing error: {exc}") from exc

    if not isinstance(payload, dict):
        raise ContainerMalformed("JSON parsing error: top-level value must be an object")

    result = IngestResult()
    _collect(payload, "rules", _parse_rule, result.rules, result.errors)
    _collect(payload, "tasks", _parse_task, result.tasks, result.errors)
    _collect(payload, "people", _parse_person, result.people, result.errors)
    return result
