"""Ingest task data files, apply the rule set and print the processed tasks."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

import structlog

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from taskrules.config import load_settings
from taskrules.ingest import load_file
from taskrules.session import Workspace


def _configure_logging(level: str) -> None:
    numeric = getattr(logging, level)
    logging.basicConfig(level=numeric, format="%(message)s", stream=sys.stderr)
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(numeric),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


def main() -> None:
    parser = argparse.ArgumentParser(description="Apply task rules to JSON/CSV/PDF/text data")
    parser.add_argument("--data", required=True, nargs="+", help="Paths to task, rule or people files")
    parser.add_argument("--rules", help="Rules file ingested before the data files")
    parser.add_argument("--config", help="YAML settings file")
    parser.add_argument("--no-defaults", action="store_true", help="Start without the stock rule set")
    parser.add_argument("--output", help="Also write the JSON report to this path")
    parser.add_argument("--debug", action="store_true", help="Verbose logging")
    args = parser.parse_args()

    settings = load_settings(args.config)
    if args.no_defaults:
        settings.load_default_rules = False
    _configure_logging("DEBUG" if args.debug else settings.log_level)

    workspace = Workspace(settings=settings)
    errors: list[str] = []
    sources = [args.rules or settings.rules_file, *args.data]
    for source in filter(None, sources):
        result = load_file(source)
        workspace.ingest(result)
        errors.extend(f"{Path(source).name}: {message}" for message in result.errors)

    report = {
        "counts": {
            "rules": len(workspace.rules),
            "tasks": len(workspace.tasks),
            "people": len(workspace.people),
            "errors": len(errors),
        },
        "errors": errors,
        "tasks": [task.to_dict() for task in workspace.tasks],
    }
    print(json.dumps(report, indent=2))

    if args.output:
        out_path = Path(args.output)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(json.dumps(report, indent=2), encoding="utf-8")
        print(f"Saved report to {out_path}", file=sys.stderr)


if __name__ == "__main__":
    main()
