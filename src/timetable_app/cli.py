"""
Command-line interface for the weekly class-timetable builder.

Usage examples:
    python -m timetable_app.cli --config data/sample_week.json
    python -m timetable_app.cli --config data/sample_week.json --out result.json
    python -m timetable_app.cli --config data/sample_week.json \\
        --assign Monday 1 English --assign Friday 8 -

Exit codes:
    0  every subject reached its weekly quota (after any --assign edits)
    1  bad arguments, unreadable config, or an error alert declined generation
    2  timetable produced but some subjects are under-allocated
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

from timetable_app.engine.policy import POLICIES, get_policy
from timetable_app.engine.result import COMPLETE, DECLINED
from timetable_app.engine.session import GenerationSession
from timetable_app.io_json import ConfigError, load_config
from timetable_app.models import Config, PeriodKind, WeekSchedule
from timetable_app.store import JsonFileStore, save_config_to_store

_BREAK_LABELS = {PeriodKind.BREAK: "Short Break", PeriodKind.LUNCH: "Lunch Break"}


def _print_schedule(cfg: Config, schedule: WeekSchedule) -> None:
    for day, row in schedule.days.items():
        print(f"\n{day}")
        for period in cfg.all_periods():
            time_str = f"{period.start_time}–{period.end_time}"
            if not period.is_regular:
                print(f"  [{time_str}]  {period.name:<12}  {_BREAK_LABELS[period.kind]}")
                continue
            cell = row.get(period.id)
            subject = cell.subject if cell else "Not assigned"
            teacher = (cell.teacher or "Not assigned") if cell else "-"
            print(f"  [{time_str}]  {period.name:<12}  {subject}  |  {teacher}")


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Weekly class-timetable builder — command-line mode",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "examples:\n"
            "  timetable-cli --config data/sample_week.json\n"
            "  timetable-cli --config cfg.json --out result.json --policy balanced\n"
            "  timetable-cli --config cfg.json --assign Monday 1 English\n"
        ),
    )
    parser.add_argument("--config", required=True, metavar="FILE",
                        help="path to the timetable config JSON")
    parser.add_argument("--out",    default=None,  metavar="FILE",
                        help="write result JSON to this path (optional)")
    parser.add_argument("--store",  default=None,  metavar="FILE",
                        help="persist config and timetable to this JSON store (optional)")
    parser.add_argument("--ceiling", type=int, default=None, metavar="N",
                        help="override the per-teacher daily ceiling")
    parser.add_argument("--policy", default="canonical", choices=sorted(POLICIES),
                        help="allocation policy (default: canonical)")
    parser.add_argument("--assign", nargs=3, action="append", default=[],
                        metavar=("DAY", "PERIOD", "SUBJECT"),
                        help="manual edit applied after generation; SUBJECT '-' clears the cell")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="log allocator decisions")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    # ── 1. load config ────────────────────────────────────────────────────────
    try:
        cfg = load_config(args.config)
    except FileNotFoundError:
        print(f"[ERROR] File not found: {args.config}", file=sys.stderr)
        sys.exit(1)
    except (ConfigError, ValueError) as e:
        print(f"[ERROR] Could not load config: {e}", file=sys.stderr)
        sys.exit(1)

    if args.ceiling is not None:
        if args.ceiling < 1:
            print("[ERROR] --ceiling must be >= 1", file=sys.stderr)
            sys.exit(1)
        cfg.constraints.daily_ceiling = args.ceiling

    store = None
    if args.store:
        store = JsonFileStore(args.store)
        save_config_to_store(store, cfg)

    # ── 2. validate + generate ────────────────────────────────────────────────
    session = GenerationSession(cfg, store=store, policy=get_policy(args.policy))
    result  = session.generate()

    for alert in result.alerts:
        print(f"[{alert.severity.value.upper()}] {alert.title}: {alert.description}")

    if result.status == DECLINED:
        print("\n[ERROR] Timetable not generated — fix the error alerts above.",
              file=sys.stderr)
        sys.exit(1)

    # ── 3. manual edits ───────────────────────────────────────────────────────
    for day, period_id, subject in args.assign:
        try:
            session.assign(day, period_id, None if subject == "-" else subject)
        except ValueError as e:
            print(f"[ERROR] --assign {day} {period_id} {subject}: {e}", file=sys.stderr)
            sys.exit(1)

    if args.assign:
        # status, stats and diagnostics must describe the edited schedule
        result = session.summary()

    # ── 4. print summary ──────────────────────────────────────────────────────
    meta = cfg.meta
    if meta.get("class_name"):
        print(f"\n{meta['class_name']} - Section {meta.get('section', '?')}")
    print(f"\nStatus    : {result.status}")
    for k, v in result.stats.items():
        print(f"  {k}: {v}")
    for d in result.diagnostics:
        print(f"[DIAG] {d}")

    _print_schedule(cfg, result.schedule)

    print("\nTeacher load:")
    for name, load in session.snapshot()["teachers"].items():
        print(f"  {name}: {load['assigned_count']}/{load['max_load']}")

    # ── 5. write output file (optional) ──────────────────────────────────────
    if args.out:
        payload = result.to_dict()
        payload["tracking"] = session.snapshot()
        with open(args.out, "w", encoding="utf-8") as f:
            json.dump(payload, f, ensure_ascii=False, indent=2)
        print(f"\nResult written to: {args.out}")

    sys.exit(0 if result.status == COMPLETE else 2)


if __name__ == "__main__":
    main()
