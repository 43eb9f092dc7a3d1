from datetime import date

import pytest

from taskrules.conditions import current_date
from taskrules.config import Settings
from taskrules.schema import IngestResult, Person, Rule, Task
from taskrules.session import Workspace

TODAY = date(2024, 1, 17)


def make_workspace():
    rules = [
        Rule("adil", "task contains 'adil'", {"assignee": "Adil", "project": "Delegated"}),
        Rule("urgent", "task contains 'urgent'", {"priority": "High"}),
    ]
    return Workspace(rules=rules, today=TODAY)


def test_default_rules_follow_settings():
    assert len(Workspace(today=TODAY).rules) == 12
    assert Workspace(settings=Settings(load_default_rules=False), today=TODAY).rules == []


def test_add_task_processes_it():
    workspace = make_workspace()
    task = workspace.add_task(Task(id="t1", title="Email Adil"))
    assert task.applied_rules == ["adil"]
    assert workspace.tasks[0].applied_properties["project"] == "Delegated"


def test_disabling_rule_reprocesses_tasks():
    workspace = make_workspace()
    workspace.add_task(Task(id="t1", title="Urgent: email Adil"))
    assert workspace.tasks[0].applied_rules == ["adil", "urgent"]

    workspace.update_rule("adil", enabled=False)
    assert workspace.tasks[0].applied_rules == ["urgent"]
    assert workspace.tasks[0].applied_properties == {"priority": "High"}

    workspace.delete_rule("urgent")
    assert workspace.tasks[0].applied_rules == []
    assert workspace.tasks[0].applied_properties == {}


def test_add_and_replace_rules():
    workspace = make_workspace()
    workspace.add_task(Task(id="t1", title="Water plants"))
    workspace.add_rule(Rule("plants", "task contains 'plants'", {"label": "@Home"}))
    assert workspace.tasks[0].applied_rules == ["plants"]
    workspace.replace_rules([])
    assert workspace.tasks[0].applied_rules == []
    assert workspace.engine.rules == []


def test_update_task_advances_timestamp_and_reprocesses():
    workspace = make_workspace()
    original = workspace.add_task(Task(id="t1", title="Write notes"))
    updated = workspace.update_task("t1", title="Write notes for Adil")
    assert updated.updated_at > original.updated_at
    assert updated.created_at == original.created_at
    assert updated.applied_rules == ["adil"]


def test_update_task_rejects_derived_fields():
    workspace = make_workspace()
    workspace.add_task(Task(id="t1", title="Write notes"))
    with pytest.raises(ValueError):
        workspace.update_task("t1", applied_properties={"project": "X"})


def test_unknown_ids_raise_key_error():
    workspace = make_workspace()
    with pytest.raises(KeyError):
        workspace.update_rule("missing", enabled=False)
    with pytest.raises(KeyError):
        workspace.delete_task("missing")


def test_people_crud():
    workspace = make_workspace()
    workspace.add_person(Person(id="p1", name="Adil"))
    workspace.update_person("p1", role="Assistant")
    assert workspace.people[0].role == "Assistant"
    workspace.delete_person("p1")
    assert workspace.people == []


def test_ingest_applies_incoming_rules_to_incoming_tasks():
    workspace = Workspace(rules=[], today=TODAY)
    result = IngestResult(
        rules=[Rule("late", "task is overdue", {"label": "@Late"})],
        tasks=[Task(id="t1", title="Renew passport", due_date="2024-01-02")],
        people=[Person(id="p1", name="Ann")],
        errors=["Invalid task at index 1: missing required title"],
    )
    counts = workspace.ingest(result)
    assert counts == {"rules": 1, "tasks": 1, "people": 1, "errors": 1}
    assert workspace.tasks[0].applied_rules == ["late"]
    assert len(workspace.people) == 1


def test_workspace_uses_settings_timezone():
    due = current_date("Pacific/Kiritimati").isoformat()
    rules = [Rule("today", "task is due today", {"label": "@Today"})]
    ahead = Workspace(rules=rules, settings=Settings(timezone="Pacific/Kiritimati"))
    behind = Workspace(rules=rules, settings=Settings(timezone="Etc/GMT+12"))
    assert ahead.add_task(Task(id="t1", title="Pay rent", due_date=due)).applied_rules == ["today"]
    assert behind.add_task(Task(id="t1", title="Pay rent", due_date=due)).applied_rules == []


def test_update_task_validates_values():
    workspace = make_workspace()
    workspace.add_task(Task(id="t1", title="Write notes"))
    for changes in ({"priority": "Urgent"}, {"status": "Lost"}, {"title": "  "}):
        with pytest.raises(ValueError):
            workspace.update_task("t1", **changes)
    updated = workspace.update_task("t1", priority="high", status="in progress")
    assert (updated.priority, updated.status) == ("High", "InProgress")
