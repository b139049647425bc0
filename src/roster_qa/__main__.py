"""Entry point: python -m roster_qa

Sub-commands:
  validate FILE --category CAT          validate a CSV/XLSX file
  modify FILE --category CAT --instructions JSON
                                        apply modification instructions
  order RULES_JSON                      print the resolved rule order
  serve [--host H] [--port P]           run the web API with uvicorn
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from roster_qa import __version__
from roster_qa.core.dataset import load_rows
from roster_qa.core.issues import summarize_issues
from roster_qa.core.models import Category, StructuralError
from roster_qa.core.modify import modify_rows
from roster_qa.core.precedence import ordered_rule_summary
from roster_qa.core.profile import load_profile
from roster_qa.core.rule_set import import_rules
from roster_qa.core.validator import validate_rows

_log = logging.getLogger("roster_qa")


def _read_json_arg(value: str):
    """Accept inline JSON or a path to a JSON file."""
    if value.lstrip().startswith(("{", "[")):
        return json.loads(value)
    return json.loads(Path(value).read_text(encoding="utf-8"))


def _cmd_validate(args: argparse.Namespace) -> int:
    rows = load_rows(args.file)
    issues = validate_rows(rows, args.category, load_profile(args.profile))
    if args.json:
        print(json.dumps([issue.to_dict() for issue in issues], indent=2))
    else:
        for issue in issues:
            print(f"row {issue.row:>4}  {issue.severity.value:<7}  {issue.column}: {issue.message}")
    summary = summarize_issues(issues)
    print(f"{summary.errors} error(s), {summary.warnings} warning(s)", file=sys.stderr)
    return 1 if summary.errors else 0


def _cmd_modify(args: argparse.Namespace) -> int:
    rows = load_rows(args.file)
    instructions, result = modify_rows(
        rows, _read_json_arg(args.instructions), args.category, load_profile(args.profile)
    )
    for skipped in result.skipped:
        print(skipped.message, file=sys.stderr)
    print(
        f"{instructions.description or 'Modification'}: "
        f"{result.rows_affected} row(s) changed",
        file=sys.stderr,
    )
    output = json.dumps(result.to_dict(), indent=2, default=str)
    if args.output:
        Path(args.output).write_text(output, encoding="utf-8")
    else:
        print(output)
    return 0


def _cmd_order(args: argparse.Namespace) -> int:
    rule_set = import_rules(Path(args.rules).read_bytes())
    print(ordered_rule_summary(rule_set))
    return 0


def _cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("roster_qa.web.app:app", host=args.host, port=args.port, log_level="info")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="roster_qa", description="Roster data quality tools")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    categories = [c.value for c in Category]

    p_validate = sub.add_parser("validate", help="Validate a CSV/XLSX file")
    p_validate.add_argument("file")
    p_validate.add_argument("--category", required=True, choices=categories)
    p_validate.add_argument("--profile", default=None, help="Overlay validation profile (YAML)")
    p_validate.add_argument("--json", action="store_true", help="Print issues as JSON")
    p_validate.set_defaults(func=_cmd_validate)

    p_modify = sub.add_parser("modify", help="Apply modification instructions to a file")
    p_modify.add_argument("file")
    p_modify.add_argument("--category", required=True, choices=categories)
    p_modify.add_argument("--instructions", required=True, help="Instructions JSON (inline or file path)")
    p_modify.add_argument("--profile", default=None, help="Overlay validation profile (YAML)")
    p_modify.add_argument("-o", "--output", default=None, help="Write the result JSON here")
    p_modify.set_defaults(func=_cmd_modify)

    p_order = sub.add_parser("order", help="Print the resolved execution order of a rules.json")
    p_order.add_argument("rules")
    p_order.set_defaults(func=_cmd_order)

    p_serve = sub.add_parser("serve", help="Run the web API")
    p_serve.add_argument("--host", default="127.0.0.1")
    p_serve.add_argument("--port", type=int, default=8000)
    p_serve.set_defaults(func=_cmd_serve)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        return args.func(args)
    except StructuralError as exc:
        print(f"Invalid input: {exc}", file=sys.stderr)
        return 2
    except (OSError, json.JSONDecodeError) as exc:
        _log.debug("Command failed", exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
