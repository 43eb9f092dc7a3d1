from datetime import date

from taskrules.defaults import default_rules
from taskrules.engine import RuleEngine
from taskrules.schema import Rule, Task

TODAY = date(2024, 1, 17)


def sample_tasks():
    return [
        Task(id="t1", title="Call Adil about delegation", assigned_to="Adil", priority="High"),
        Task(id="t2", title="Fix login bug", due_date="2024-01-10", status="Pending", assigned_to="alice"),
        Task(id="t3", title="Ship release", due_date="2024-01-10", status="Completed", priority="Low"),
    ]


def test_contains_rule_sets_assignee():
    engine = RuleEngine([Rule("r1", "task contains 'Adil'", {"assignee": "Adil"})], today=TODAY)
    task = sample_tasks()[0]
    processed = engine.process_task(task)
    assert processed.applied_properties["assignee"] == "Adil"
    assert processed.applied_rules == ["r1"]
    assert task.applied_rules == []
    assert task.original_properties == {}


def test_later_rule_wins_on_conflict():
    rules = [
        Rule("first", "task contains 'adil'", {"project": "Delegated", "label": "@A"}),
        Rule("second", "task contains 'call'", {"project": "Calls"}),
    ]
    processed = RuleEngine(rules, today=TODAY).process_task(sample_tasks()[0])
    assert processed.applied_properties == {"project": "Calls", "label": "@A"}
    assert processed.applied_rules == ["first", "second"]


def test_disabled_rule_never_applies():
    rules = [Rule("off", "task contains 'adil'", {"label": "@Off"}, enabled=False)]
    engine = RuleEngine(rules, today=TODAY)
    processed = engine.process_task(sample_tasks()[0])
    assert processed.applied_rules == []
    assert "label" not in processed.applied_properties
    assert engine.rules == []


def test_reprocessing_is_idempotent_and_drops_stale_values():
    task = Task(
        id="t9",
        title="Morning call",
        original_properties={"source": "inbox"},
        applied_properties={"stale": "yes"},
        applied_rules=["deleted-rule"],
    )
    engine = RuleEngine(default_rules(), today=TODAY)
    once = engine.process_task(task)
    twice = engine.process_task(once)
    assert once.applied_properties == twice.applied_properties
    assert once.applied_rules == twice.applied_rules
    assert "stale" not in once.applied_properties
    assert once.applied_properties["source"] == "inbox"
    assert once.applied_rules == ["rule-2", "rule-7"]


def test_default_rules_on_delegation_task():
    processed = RuleEngine(default_rules(), today=TODAY).process_task(sample_tasks()[0])
    assert processed.applied_rules == ["rule-1", "rule-7"]
    assert processed.applied_properties == {"project": "Delegated", "assignee": "Adil", "label": "@Commute"}


def test_weekend_rule():
    engine = RuleEngine(default_rules(), today=TODAY)
    saturday = engine.process_task(Task(id="s", title="Groceries", due_date="2024-01-13"))
    tuesday = engine.process_task(Task(id="t", title="Groceries", due_date="2024-01-16"))
    assert saturday.applied_properties["priority"] == "Low"
    assert "rule-6" in saturday.applied_rules
    assert "rule-6" not in tuesday.applied_rules


def test_process_tasks_batch():
    engine = RuleEngine([Rule("late", "task is overdue", {"label": "@Late"})], today=TODAY)
    processed = engine.process_tasks(sample_tasks())
    assert [task.applied_rules for task in processed] == [[], ["late"], []]


def test_query_filters():
    engine = RuleEngine(today=TODAY)
    tasks = sample_tasks()
    assert [task.id for task in engine.by_assignee(tasks, "ALICE")] == ["t2"]
    assert [task.id for task in engine.by_priority(tasks, "low")] == ["t3"]
    assert [task.id for task in engine.by_status(tasks, "completed")] == ["t3"]
    assert [task.id for task in engine.overdue(tasks)] == ["t2"]


def test_rule_mutations():
    engine = RuleEngine([Rule("r1", "task contains 'adil'", {"label": "@A"})], today=TODAY)
    engine.add_rule(Rule("r2", "task contains 'call'", {"label": "@Call"}))
    engine.add_rule(Rule("r3", "task contains 'call'", {"label": "@Never"}, enabled=False))
    assert [rule.id for rule in engine.rules] == ["r1", "r2"]

    engine.update_rule("r1", effects={"label": "@Adil"})
    assert engine.process_task(sample_tasks()[0]).applied_properties == {"label": "@Call"}

    engine.update_rule("r2", enabled=False)
    assert engine.process_task(sample_tasks()[0]).applied_properties == {"label": "@Adil"}

    engine.remove_rule("r1")
    assert engine.rules == []
