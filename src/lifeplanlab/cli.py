"""
Command-line interface for LifePlanLab.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import date

from lifeplanlab import __version__
from lifeplanlab.core.persistence import NumpyEncoder, plan_from_json
from lifeplanlab.core.recurrence import ExpansionConfig, expand, occurrences_frame
from lifeplanlab.core.schema import load_schema
from lifeplanlab.core.summary import DEFAULT_MAX_NEXT_EVENTS, summarize_plan
from lifeplanlab.core.validation import validate_plan

logger = logging.getLogger("lifeplanlab.cli")

EXAMPLE_SCHEMA = {
    "envelopes": ["Cash", "Savings", "Debt", "Assets"],
    "default_envelopes": [
        {"name": "Checking", "category": "Cash", "growth": "None", "rate": 0.0},
        {"name": "Car", "category": "Assets", "growth": "Appreciation", "rate": -0.15,
         "days_of_usefulness": 3650},
        {"name": "Other (Cash)", "category": "Cash", "account_type": "system"},
    ],
    "events": [
        {
            "type": "job",
            "display_type": "Job",
            "category": "Income",
            "weight": 80,
            "can_be_reocurring": True,
            "is_recurring": True,
            "parameters": [
                {"type": "start_time", "display_name": "Start", "parameter_units": "date", "default": 0},
                {"type": "end_time", "display_name": "End", "parameter_units": "date", "default": 3650},
                {"type": "salary", "display_name": "Salary", "parameter_units": "usd", "default": 60000},
                {"type": "frequency_days", "display_name": "Pay Period", "parameter_units": "days",
                 "default": 365},
                {"type": "to_key", "display_name": "Deposit To", "parameter_units": "envelope",
                 "default": "Checking"},
            ],
            "updating_events": [
                {
                    "type": "get_a_raise",
                    "display_type": "Raise",
                    "weight": 40,
                    "parameters": [
                        {"type": "start_time", "display_name": "Date", "parameter_units": "date",
                         "default": 365},
                        {"type": "salary", "display_name": "New Salary", "parameter_units": "usd",
                         "default": 70000},
                    ],
                }
            ],
        },
        {
            "type": "buy_car",
            "display_type": "Buy Car",
            "category": "Purchases",
            "weight": 60,
            "can_be_reocurring": False,
            "parameters": [
                {"type": "start_time", "display_name": "Purchase Date", "parameter_units": "date",
                 "default": 30},
                {"type": "end_time", "display_name": "Loan Payoff", "parameter_units": "date",
                 "default": 1855},
                {"type": "price", "display_name": "Price", "parameter_units": "usd", "default": 25000},
                {"type": "from_key", "display_name": "Pay From", "parameter_units": "envelope",
                 "default": "Checking"},
                {"type": "to_key", "display_name": "Asset", "parameter_units": "envelope",
                 "default": "Car"},
            ],
        },
    ],
}

EXAMPLE_PLAN = {
    "title": "Example Plan",
    "birth_date": "1990-01-01",
    "inflation_rate": 0.03,
    "adjust_for_inflation": False,
    "retirement_goal": 1500000,
    "envelopes": [
        {"name": "Checking", "category": "Cash", "growth": "None", "rate": 0.0},
        {"name": "Other (Cash)", "category": "Cash", "account_type": "system"},
    ],
    "events": [
        {
            "id": 1,
            "type": "job",
            "title": "Engineer",
            "is_recurring": True,
            "parameters": [
                {"id": 0, "type": "start_time", "value": "2015-06-01"},
                {"id": 1, "type": "end_time", "value": "2020-06-01"},
                {"id": 2, "type": "salary", "value": 85000},
                {"id": 3, "type": "frequency_days", "value": 365},
                {"id": 4, "type": "to_key", "value": "Checking"},
            ],
            "updating_events": [
                {
                    "id": 2,
                    "type": "get_a_raise",
                    "title": "Promotion",
                    "parameters": [
                        {"id": 0, "type": "start_time", "value": "2017-06-01"},
                        {"id": 1, "type": "salary", "value": 95000},
                    ],
                }
            ],
        }
    ],
}


def _load_json(path: str) -> dict:
    """Load JSON from file path."""
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def _load_plan(path: str):
    with open(path, encoding="utf-8") as f:
        return plan_from_json(f.read())


def cmd_example(args) -> int:
    """Print a minimal working plan or schema JSON."""
    example = EXAMPLE_SCHEMA if args.what == "schema" else EXAMPLE_PLAN
    json.dump(example, sys.stdout, indent=2)
    sys.stdout.write("\n")
    return 0


def cmd_expand(args) -> int:
    """Expand a plan into timeline occurrences."""
    try:
        schema = load_schema(args.schema)
        plan = _load_plan(args.input)
        locked = _load_plan(args.locked) if args.locked else None
        occurrences = expand(
            plan,
            schema,
            locked_plan=locked,
            zoom_level=args.zoom,
            config=ExpansionConfig(),
        )
        frame = occurrences_frame(occurrences)

        if args.format == "csv":
            if args.output:
                frame.to_csv(args.output, index=False)
            else:
                frame.to_csv(sys.stdout, index=False)
        else:
            records = json.loads(frame.to_json(orient="records"))
            if args.output:
                with open(args.output, "w", encoding="utf-8") as f:
                    json.dump(records, f, indent=2, cls=NumpyEncoder)
            else:
                json.dump(records, sys.stdout, indent=2, cls=NumpyEncoder)
                sys.stdout.write("\n")

        logger.info("Expanded %d occurrences over %d days", len(frame), len(occurrences))
        return 0

    except Exception as e:
        print(f"Error expanding plan: {e}", file=sys.stderr)
        return 1


def cmd_validate(args) -> int:
    """Validate a plan JSON against a schema."""
    try:
        schema = load_schema(args.schema)
        document = _load_json(args.input)
        report = validate_plan(document, schema)

        if args.format == "json":
            json.dump(report.to_dict(), sys.stdout, indent=2)
            sys.stdout.write("\n")
        else:
            print(str(report))

        return report.get_exit_code()

    except Exception as e:
        if args.format == "json":
            error_report = {
                "has_errors": True,
                "has_warnings": False,
                "is_valid": False,
                "exit_code": 1,
                "error": str(e),
            }
            json.dump(error_report, sys.stdout, indent=2)
            sys.stdout.write("\n")
        else:
            print(f"❌ Validation failed: {e}")
        return 1


def cmd_summary(args) -> int:
    """Print a plain-text summary of a plan."""
    try:
        schema = load_schema(args.schema) if args.schema else None
        plan = _load_plan(args.input)
        today = args.today or date.today()
        print(summarize_plan(plan, schema, today=today, max_next_events=args.max_next))
        return 0

    except Exception as e:
        print(f"Error summarizing plan: {e}", file=sys.stderr)
        return 1


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="lifeplan", description="LifePlanLab - Financial plan timeline engine"
    )

    # Version argument
    parser.add_argument("--version", action="version", version=f"LifePlanLab {__version__}")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )

    subparsers = parser.add_subparsers(
        dest="cmd", required=True, help="Available commands"
    )

    # Example command
    example_parser = subparsers.add_parser(
        "example", help="Print a minimal working plan or schema JSON"
    )
    example_parser.add_argument(
        "what", nargs="?", choices=["plan", "schema"], default="plan", help="Document to print"
    )
    example_parser.set_defaults(func=cmd_example)

    # Expand command
    expand_parser = subparsers.add_parser(
        "expand", help="Expand a plan into timeline occurrences"
    )
    expand_parser.add_argument("-i", "--input", required=True, help="Input plan JSON file")
    expand_parser.add_argument(
        "-s", "--schema", required=True, help="Event schema file (YAML or JSON)"
    )
    expand_parser.add_argument("--locked", help="Locked plan JSON file, expanded as shadows")
    expand_parser.add_argument(
        "--zoom", type=float, default=None, help="Zoom level (default: no visibility filtering)"
    )
    expand_parser.add_argument(
        "--format", choices=["json", "csv"], default="json", help="Output format"
    )
    expand_parser.add_argument("-o", "--output", help="Output file (default: stdout)")
    expand_parser.set_defaults(func=cmd_expand)

    # Validate command
    validate_parser = subparsers.add_parser("validate", help="Validate a plan JSON")
    validate_parser.add_argument("-i", "--input", required=True, help="Input plan JSON file")
    validate_parser.add_argument(
        "-s", "--schema", required=True, help="Event schema file (YAML or JSON)"
    )
    validate_parser.add_argument(
        "--format", choices=["human", "json"], default="human", help="Output format"
    )
    validate_parser.set_defaults(func=cmd_validate)

    # Summary command
    summary_parser = subparsers.add_parser("summary", help="Print a plan summary")
    summary_parser.add_argument("-i", "--input", required=True, help="Input plan JSON file")
    summary_parser.add_argument("-s", "--schema", help="Event schema file (YAML or JSON)")
    summary_parser.add_argument("--today", default=None, help="Reference date (YYYY-MM-DD, default: today)")
    summary_parser.add_argument(
        "--max-next",
        type=int,
        default=DEFAULT_MAX_NEXT_EVENTS,
        help=f"Number of upcoming events listed (default: {DEFAULT_MAX_NEXT_EVENTS})",
    )
    summary_parser.set_defaults(func=cmd_summary)

    # Parse arguments and execute
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(levelname)s %(name)s: %(message)s",
    )
    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
