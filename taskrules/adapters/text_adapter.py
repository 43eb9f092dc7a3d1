"""Line-oriented adapter for loosely structured document text (PDF extracts)."""

from __future__ import annotations

import io
import re

import structlog
from pypdf import PdfReader
from pypdf.errors import PyPdfError

from taskrules.adapters.json_adapter import parse_effects
from taskrules.errors import ContainerMalformed, RecordInvalid
from taskrules.schema import IngestResult, Person, Rule, Task, new_id

logger = structlog.get_logger(__name__)

_RULE_LINE = re.compile(r"Rule\s+\d+:\s*If\s+(.+)\s+then\s+(.+)", re.IGNORECASE)
_TASK_LINE = re.compile(r"^-?\s*(.+?)\s*\(Assigned:\s*(.+?),\s*Due:\s*(.+?),\s*Time:\s*(.+?)\)")
_PERSON_LINE = re.compile(r"^-?\s*(.+?)\s*\((.+?),\s*(.+?)\)")


def _unquote(value: str) -> str:
    return value.replace('"', "").replace("'", "").strip()


def parse_then_clause(clause: str) -> dict[str, str]:
    """Split ``key = value, key = value`` into effects; fall back to ``{"property": clause}``."""

    effects: dict[str, str] = {}
    for pair in clause.split(","):
        key, _, value = pair.partition("=")
        key, value = _unquote(key), _unquote(value)
        if key and value:
            effects[key] = value
    if not effects:
        effects["property"] = clause.strip()
    return effects


def extract_pdf_text(data: bytes) -> str:
    """Return the text of every page of a PDF, one page after another."""

    try:
        reader = PdfReader(io.BytesIO(data))
        pages = [page.extract_text() or "" for page in reader.pages]
    except (PyPdfError, ValueError) as exc:
        raise ContainerMalformed(f"PDF parsing error: {exc}") from exc
    return "\n".join(pages)


def _parse_rule_line(line: str, line_number: int) -> Rule | None:
    match = _RULE_LINE.search(line)
    if not match:
        return None
    return Rule(
        id=new_id("pdf-rule", line_number),
        condition=match.group(1).strip(),
        effects=parse_effects(parse_then_clause(match.group(2)), f"Line {line_number}"),
    )


def _parse_task_line(line: str, line_number: int) -> Task | None:
    match = _TASK_LINE.search(line)
    if not match:
        return None
    title, assignee, due_date, due_time = (group.strip() for group in match.groups())
    if not title:
        return None
    return Task(
        id=new_id("pdf-task", line_number),
        title=title,
        assigned_to=assignee or None,
        due_date=due_date or None,
        due_time=due_time or None,
    )


def _parse_person_line(line: str, line_number: int) -> Person | None:
    match = _PERSON_LINE.search(line)
    if not match:
        return None
    name, email, department = (group.strip() for group in match.groups())
    if not name:
        return None
    return Person(id=new_id("pdf-person", line_number), name=name, email=email, department=department)


def parse(content: str) -> IngestResult:
    """Scan text line by line for rule, task and person lines."""

    result = IngestResult()
    for line_number, raw_line in enumerate(content.splitlines(), start=1):
        line = raw_line.strip()
        if not line:
            continue

        if line.lower().startswith("rule") and ":" in line:
            try:
                rule = _parse_rule_line(line, line_number)
            except RecordInvalid as exc:
                logger.debug("text_adapter.rule_invalid", line=line_number, reason=str(exc))
                result.errors.append(str(exc))
            else:
                if rule is not None:
                    result.rules.append(rule)

        if "Assigned:" in line and "Due:" in line:
            task = _parse_task_line(line, line_number)
            if task is not None:
                result.tasks.append(task)

        if "@" in line and "(" in line:
            person = _parse_person_line(line, line_number)
            if person is not None:
                result.people.append(person)

    return result
