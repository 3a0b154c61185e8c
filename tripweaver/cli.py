"""tripweaver CLI: plan a trip from a JSON request file."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from dotenv import load_dotenv

from tripweaver.application.plan_trip import plan_trip
from tripweaver.domain.exceptions import DomainError
from tripweaver.domain.models import TripResult

load_dotenv()


def format_itinerary(result: TripResult) -> str:
    """Render the trip as a readable text itinerary."""
    lines: list[str] = []
    lines.append(f"{result.destination}: {len(result.days)}-day itinerary")
    lines.append("=" * 50)

    for day in result.days:
        header = f"\nDay {day.day_number} ({day.date.isoformat()}, {day.day_type.value})"
        if day.theme:
            header += f"  |  {day.theme}"
        lines.append(header)
        lines.append("-" * 50)
        for item in day.items:
            cost = f"{item.estimated_cost:.0f}" if item.estimated_cost else "free"
            lines.append(f"  {item.start_time}-{item.end_time}  {item.title}  ({cost})")
            if item.travel_minutes > 0:
                lines.append(f"     travel ~{item.travel_minutes} min")

    lines.append("\n" + "=" * 50)
    lines.append(f"Total committed: {result.total_cost:.0f}")
    spent = {k: v for k, v in result.cost_breakdown.items() if v}
    if spent:
        lines.append("  " + ", ".join(f"{k} {v:.0f}" for k, v in spent.items()))
    if result.carryover is not None:
        lines.append(f"Arrives home {result.carryover.arrival_time.isoformat(timespec='minutes')}")
    for issue in result.issues:
        lines.append(f"[{issue.severity.value}] {issue.message}")
    return "\n".join(lines)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tripweaver", description="Plan a multi-day trip itinerary")
    parser.add_argument("--input", required=True, help="path to a JSON plan request")
    parser.add_argument("--json", action="store_true", help="print the full JSON result")
    parser.add_argument("--trace-id", default=None, help="trace id attached to every log line")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        payload = json.loads(Path(args.input).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        print(f"cannot read request: {exc}", file=sys.stderr)
        return 2
    if args.trace_id:
        payload["trace_id"] = args.trace_id

    try:
        result = plan_trip(payload)
    except DomainError as exc:
        print(f"planning failed: {exc}", file=sys.stderr)
        return 1

    if args.json:
        print(result.model_dump_json(indent=2))
    else:
        print(format_itinerary(result))
    return 0


if __name__ == "__main__":
    sys.exit(main())
