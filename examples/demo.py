"""Demo script for taskrules."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from taskrules.ingest import load_file
from taskrules.session import Workspace

HERE = Path(__file__).resolve().parent


def main() -> None:
    workspace = Workspace()
    for name in ("sample_rules.json", "sample_tasks.csv", "sample_document.txt"):
        result = load_file(HERE / name)
        print(f"{name}:", workspace.ingest(result), result.errors)

    for task in workspace.tasks:
        print(f"- {task.title}: {task.applied_properties} via {task.applied_rules}")
    print("Overdue:", [task.title for task in workspace.engine.overdue(workspace.tasks)])


if __name__ == "__main__":
    main()
