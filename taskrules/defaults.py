"""Stock rule set loaded into new workspaces."""

from __future__ import annotations

from taskrules.schema import Rule

_DEFAULT_RULES = (
    ("task contains 'Adil'", {"project": "Delegated", "assignee": "Adil"}),
    ("task time is 'morning'", {"time": "07:00 - 11:00"}),
    ("task time is 'afternoon'", {"time": "13:00 - 17:00"}),
    ("task time is 'evening'", {"time": "17:00 - 20:00"}),
    ("task time is 'night'", {"time": "21:00 - 00:00"}),
    ("task scheduled for Saturday or Sunday", {"priority": "Low", "project": "Personal"}),
    ("task involves calls, communication, or errands", {"label": "@Commute"}),
    ("task is quick or under 15 minutes", {"label": "@Quick"}),
    ("task involves admin work, paperwork or coordination", {"project": "Professional", "label": "@Admin"}),
    ("task includes grooming, meals, health or reflection", {"project": "Personal", "label": "/Health"}),
    ("task includes learning, university, academia, research", {"project": "Personal", "label": "/Academia"}),
    ("task includes team instructions or maintenance requests", {"project": "Delegated"}),
)


def default_rules() -> list[Rule]:
    """Fresh copies of the stock rules, ids ``rule-1`` to ``rule-12``."""

    return [
        Rule(id=f"rule-{number}", condition=condition, effects=dict(effects))
        for number, (condition, effects) in enumerate(_DEFAULT_RULES, start=1)
    ]
