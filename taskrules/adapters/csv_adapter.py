"""CSV adapter for rules, tasks and people."""

from __future__ import annotations

import csv
import io
import json
from typing import Iterator, Optional

import structlog

from taskrules.adapters.json_adapter import parse_effects
from taskrules.errors import ContainerMalformed, FormatUnsupported, RecordInvalid
from taskrules.schema import IngestResult, Person, Rule, Task, new_id, normalize_priority, normalize_status

logger = structlog.get_logger(__name__)

_TASK_COLUMNS = {
    "title": "title",
    "task": "title",
    "description": "description",
    "assigned_to": "assigned_to",
    "assignedto": "assigned_to",
    "assignee": "assigned_to",
    "due_date": "due_date",
    "duedate": "due_date",
    "due_time": "due_time",
    "duetime": "due_time",
    "priority": "priority",
    "status": "status",
    "category": "category",
    "tags": "tags",
    "estimated_duration": "estimated_duration",
    "estimatedduration": "estimated_duration",
    "scheduled_for": "scheduled_for",
    "scheduledfor": "scheduled_for",
}

_PERSON_COLUMNS = {
    "name": "name",
    "person": "name",
    "email": "email",
    "role": "role",
    "department": "department",
    "availability": "availability",
}


def _clean(cell: str) -> str:
    value = cell.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        value = value[1:-1].strip()
    return value


def _split_list(value: str) -> list[str]:
    return [part.strip() for part in value.split(";") if part.strip()]


def _rows(content: str) -> Iterator[tuple[int, list[str]]]:
    reader = csv.reader(io.StringIO(content), skipinitialspace=True)
    try:
        for cells in reader:
            if any(cell.strip() for cell in cells):
                yield reader.line_num, [_clean(cell) for cell in cells]
    except csv.Error as exc:
        raise ContainerMalformed(f"CSV parsing error on line {reader.line_num}: {exc}") from exc


def _merge_json_cell(effects: dict[str, str], header: str, value: str, where: str) -> None:
    try:
        nested = json.loads(value)
        if not isinstance(nested, dict):
            raise ValueError("not an object")
        effects.update(parse_effects(nested, where))
    except (ValueError, RecursionError):
        # RecordInvalid and JSONDecodeError are both ValueErrors
        effects[header] = value


def _parse_rule_row(headers: list[str], values: list[str], row_number: int) -> Rule:
    where = f"Row {row_number}"
    condition = values[0]
    if not condition:
        raise RecordInvalid(f"{where}: missing condition")

    effects: dict[str, str] = {}
    for header, value in zip(headers[1:], values[1:]):
        if not value or header == "if":
            continue
        if value.startswith("{"):
            _merge_json_cell(effects, header, value, where)
        else:
            effects[header] = value

    return Rule(
        id=new_id("csv-rule", row_number),
        condition=condition,
        effects=parse_effects(effects, where),
    )


def _parse_task_row(headers: list[str], values: list[str], row_number: int) -> Optional[Task]:
    fields: dict = {}
    original: dict[str, str] = {}
    for header, value in zip(headers, values):
        if not value:
            continue
        target = _TASK_COLUMNS.get(header)
        if target is None:
            original[header] = value
        elif target == "tags":
            fields["tags"] = _split_list(value)
        else:
            fields[target] = value

    if not fields.get("title"):
        return None

    try:
        if "priority" in fields:
            fields["priority"] = normalize_priority(fields["priority"])
        if "status" in fields:
            fields["status"] = normalize_status(fields["status"])
    except ValueError as exc:
        raise RecordInvalid(f"Row {row_number}: {exc}") from exc

    return Task(
        id=new_id("csv-task", row_number),
        original_properties=original,
        applied_properties=dict(original),
        **fields,
    )


def _parse_person_row(headers: list[str], values: list[str], row_number: int) -> Optional[Person]:
    fields: dict = {}
    for header, value in zip(headers, values):
        target = _PERSON_COLUMNS.get(header)
        if not value or target is None:
            continue
        fields[target] = _split_list(value) if target == "availability" else value

    if not fields.get("name"):
        return None
    return Person(id=new_id("csv-person", row_number), **fields)


def parse(content: str) -> IngestResult:
    """Parse CSV text; the header row decides whether rows are rules, tasks or people."""

    rows = list(_rows(content))
    if len(rows) < 2:
        raise ContainerMalformed("CSV file must have at least a header row and one data row")

    headers = [header.lower() for header in rows[0][1]]
    columns = set(headers)
    result = IngestResult()

    if "if" in columns and "then" in columns:
        kind, into = "rule", result.rules
    elif "title" in columns or "task" in columns:
        kind, into = "task", result.tasks
    elif "name" in columns or "person" in columns:
        kind, into = "person", result.people
    else:
        raise FormatUnsupported(
            "CSV format not recognized. Expected columns for rules (if, then), "
            "tasks (title, assigned_to, due_date), or people (name, email, role)"
        )

    for row_number, values in rows[1:]:
        try:
            if kind == "rule":
                if len(values) < 2:
                    logger.debug("csv_adapter.row_skipped", row=row_number, reason="too few columns")
                    continue
                record = _parse_rule_row(headers, values, row_number)
            elif kind == "task":
                record = _parse_task_row(headers, values, row_number)
            else:
                record = _parse_person_row(headers, values, row_number)
        except RecordInvalid as exc:
            logger.debug("csv_adapter.row_invalid", row=row_number, reason=str(exc))
            result.errors.append(str(exc))
            continue

        if record is None:
            logger.debug("csv_adapter.row_skipped", row=row_number, reason="missing title or name")
            continue
        into.append(record)

    return result
