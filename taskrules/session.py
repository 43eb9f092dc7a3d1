"""Workspace: owns rules, tasks and people and keeps tasks in sync with the rules."""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import Iterable, Optional

import structlog

from taskrules.config import Settings
from taskrules.defaults import default_rules
from taskrules.engine import RuleEngine
from taskrules.schema import IngestResult, Person, Rule, Task, normalize_priority, normalize_status

logger = structlog.get_logger(__name__)

# Fields that only ingestion or the engine may set
_TASK_READONLY = {"id", "created_at", "updated_at", "original_properties", "applied_properties", "applied_rules"}


def _index_of(items: list, item_id: str, kind: str) -> int:
    for index, item in enumerate(items):
        if item.id == item_id:
            return index
    raise KeyError(f"No {kind} with id '{item_id}'")


class Workspace:
    """Authoritative rule, task and person collections for one session.

    Every rule change builds a fresh ``RuleEngine`` from the current rule list
    and reprocesses all tasks, so ``applied_properties`` never keeps effects
    from rules that were since disabled or deleted.
    """

    def __init__(
        self,
        rules: Optional[Iterable[Rule]] = None,
        settings: Optional[Settings] = None,
        today: Optional[date] = None,
    ) -> None:
        self.settings = settings or Settings()
        self.today = today
        if rules is None:
            rules = default_rules() if self.settings.load_default_rules else []
        self.rules: list[Rule] = list(rules)
        self.tasks: list[Task] = []
        self.people: list[Person] = []
        self._engine = self._build_engine()

    @property
    def engine(self) -> RuleEngine:
        return self._engine

    def _build_engine(self) -> RuleEngine:
        return RuleEngine(self.rules, timezone=self.settings.timezone, today=self.today)

    def _rules_changed(self) -> None:
        self._engine = self._build_engine()
        self.tasks = self._engine.process_tasks(self.tasks)
        logger.info("workspace.reprocessed", rules=len(self.rules), tasks=len(self.tasks))

    def add_rule(self, rule: Rule) -> Rule:
        self.rules.append(rule)
        self._rules_changed()
        return rule

    def update_rule(self, rule_id: str, **changes) -> Rule:
        index = _index_of(self.rules, rule_id, "rule")
        self.rules[index] = replace(self.rules[index], **changes)
        self._rules_changed()
        return self.rules[index]

    def delete_rule(self, rule_id: str) -> None:
        del self.rules[_index_of(self.rules, rule_id, "rule")]
        self._rules_changed()

    def replace_rules(self, rules: Iterable[Rule]) -> None:
        self.rules = list(rules)
        self._rules_changed()

    def add_task(self, task: Task) -> Task:
        processed = self._engine.process_task(task)
        self.tasks.append(processed)
        return processed

    def update_task(self, task_id: str, **changes) -> Task:
        """Edit task fields, advance ``updated_at`` and re-derive applied properties."""

        readonly = _TASK_READONLY.intersection(changes)
        if readonly:
            raise ValueError(f"Task fields cannot be edited directly: {sorted(readonly)}")
        if "title" in changes:
            if not isinstance(changes["title"], str) or not changes["title"].strip():
                raise ValueError("Task title must be a non-empty string")
            changes["title"] = changes["title"].strip()
        if "priority" in changes:
            changes["priority"] = normalize_priority(changes["priority"])
        if "status" in changes:
            changes["status"] = normalize_status(changes["status"])
        index = _index_of(self.tasks, task_id, "task")
        task = replace(self.tasks[index], **changes)
        task.touch()
        self.tasks[index] = self._engine.process_task(task)
        return self.tasks[index]

    def delete_task(self, task_id: str) -> None:
        del self.tasks[_index_of(self.tasks, task_id, "task")]

    def add_person(self, person: Person) -> Person:
        self.people.append(person)
        return person

    def update_person(self, person_id: str, **changes) -> Person:
        index = _index_of(self.people, person_id, "person")
        self.people[index] = replace(self.people[index], **changes)
        return self.people[index]

    def delete_person(self, person_id: str) -> None:
        del self.people[_index_of(self.people, person_id, "person")]

    def ingest(self, result: IngestResult) -> dict:
        """Merge an ingestion result; rules land first so new tasks see them."""

        if result.rules:
            self.rules.extend(result.rules)
            self._rules_changed()
        self.tasks.extend(self._engine.process_tasks(result.tasks))
        self.people.extend(result.people)
        counts = result.counts()
        logger.info("workspace.ingested", **counts)
        return counts
