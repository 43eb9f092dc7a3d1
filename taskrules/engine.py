"""Rule engine: replays enabled rules over a task's original properties."""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import Iterable, Optional

import structlog

from taskrules.conditions import current_date, is_overdue, matches
from taskrules.schema import Rule, Task, status_equals

logger = structlog.get_logger(__name__)


def _same(left: Optional[str], right: str) -> bool:
    return left is not None and left.lower() == right.lower()


class RuleEngine:
    """Applies the effects of every matching enabled rule, in list order.

    Build a new engine whenever the rule set changes. ``process_task`` never
    reads a task's previous ``applied_properties``; the result depends only on
    the rules, the task's matchable fields and its ``original_properties``.

    Args:
        rules: Rules in precedence order; disabled ones are dropped.
        timezone: IANA zone used to decide what "today" is.
        today: Fixed evaluation date, mainly for tests and replays.
    """

    def __init__(self, rules: Iterable[Rule] = (), timezone: str = "UTC", today: Optional[date] = None) -> None:
        rules = list(rules)
        self._rules: list[Rule] = [rule for rule in rules if rule.enabled]
        self.timezone = timezone
        self.today = today
        logger.debug("engine.built", enabled=len(self._rules), total=len(rules))

    @property
    def rules(self) -> list[Rule]:
        return list(self._rules)

    def _today(self) -> date:
        return self.today or current_date(self.timezone)

    def _apply(self, rules: tuple[Rule, ...], task: Task, today: date) -> Task:
        applied = dict(task.original_properties)
        applied_rules: list[str] = []
        for rule in rules:
            if matches(rule.condition, task, today=today):
                applied.update(rule.effects)
                applied_rules.append(rule.id)
        if applied_rules:
            logger.debug("engine.task_matched", task_id=task.id, rules=applied_rules)
        return replace(task, applied_properties=applied, applied_rules=applied_rules)

    def process_task(self, task: Task) -> Task:
        """Return a copy of ``task`` with freshly derived properties and provenance."""

        return self._apply(tuple(self._rules), task, self._today())

    def process_tasks(self, tasks: Iterable[Task]) -> list[Task]:
        """Process a batch against one snapshot of the rule list and one "today"."""

        rules = tuple(self._rules)
        today = self._today()
        processed = [self._apply(rules, task, today) for task in tasks]
        logger.info(
            "engine.batch_processed",
            tasks=len(processed),
            matched=sum(1 for task in processed if task.applied_rules),
        )
        return processed

    def by_assignee(self, tasks: Iterable[Task], assignee: str) -> list[Task]:
        return [task for task in tasks if _same(task.assigned_to, assignee)]

    def by_priority(self, tasks: Iterable[Task], priority: str) -> list[Task]:
        return [task for task in tasks if _same(task.priority, priority)]

    def by_status(self, tasks: Iterable[Task], status: str) -> list[Task]:
        return [task for task in tasks if task.status is not None and status_equals(task.status, status)]

    def overdue(self, tasks: Iterable[Task]) -> list[Task]:
        today = self._today()
        return [task for task in tasks if is_overdue(task, today)]

    def add_rule(self, rule: Rule) -> None:
        if rule.enabled:
            self._rules.append(rule)

    def update_rule(self, rule_id: str, **changes) -> None:
        """Replace fields of a held rule; a rule updated to disabled is dropped."""

        for index, rule in enumerate(self._rules):
            if rule.id == rule_id:
                updated = replace(rule, **changes)
                if updated.enabled:
                    self._rules[index] = updated
                else:
                    del self._rules[index]
                return

    def remove_rule(self, rule_id: str) -> None:
        self._rules = [rule for rule in self._rules if rule.id != rule_id]
