"""
stormnorm Command Line Interface (CLI)
======================================

Run it like:

    stormnorm --events StormData.csv --cpi CPIAUCSL.csv [--reference 2011-11]

It loads both inputs once, runs the normalization pipeline, aggregates,
and then opens a small REPL for looking at the results and exporting the
two output tables. The input files are never modified.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional, Tuple
import argparse
import json
import logging
import shlex
import sys

from .aggregate import aggregate, category_frame, rank_categories, year_category_frame
from .classifier import RULES, RULESET_VERSION, classify, matching_rules
from .errors import ConfigurationError
from .loader import load_price_index, load_storm_events
from .models import CategoryAggregate, YearCategoryAggregate
from .pipeline import PipelineResult, run_pipeline

logger = logging.getLogger(__name__)

HELP = """
Commands:
  help
  stats
  top <n> [damages|deaths|injuries] [median|mean]
                                   (example: top 10 damages median)
  years "<category>"               (example: years "flood")
  classify "<raw label>"           (example: classify "TSTM WIND/HAIL")
  rules
  export year "<path.csv|.json>"
  export category "<path.csv|.json>"
  quit
"""


@dataclass
class Session:
    """Results of one pipeline run, held for the REPL."""
    result: PipelineResult
    year_aggregates: List[YearCategoryAggregate]
    summaries: List[CategoryAggregate]
    top_n: int = 10

    @classmethod
    def from_result(cls, result: PipelineResult, top_n: int = 10) -> "Session":
        year_aggregates, summaries = aggregate(result.retained)
        return cls(result=result, year_aggregates=year_aggregates, summaries=summaries, top_n=top_n)


def parse_reference(text: str) -> Tuple[int, int]:
    """'2011-11' -> (2011, 11)."""
    try:
        y, m = text.strip().split("-")
        year, month = int(y), int(m)
    except ValueError as e:
        raise ConfigurationError(f"Reference must look like YYYY-MM, got {text!r}") from e
    if not 1 <= month <= 12:
        raise ConfigurationError(f"Reference month out of range: {text!r}")
    return year, month


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="stormnorm", description="Normalize storm event records.")
    ap.add_argument("--events", required=True, help="Path to storm events CSV/Excel export")
    ap.add_argument("--cpi", required=True, help="Path to monthly price index CSV (DATE,value)")
    ap.add_argument("--reference", default=None, help="Reference month YYYY-MM (default: latest event month)")
    ap.add_argument("--top", type=int, default=10, help="Default number of categories for 'top'")
    ap.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the stormnorm CLI.

    1) Load both inputs
    2) Normalize + aggregate
    3) Start an interactive REPL
    """
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level, format="%(asctime)s - %(levelname)s - %(name)s - %(message)s")

    try:
        reference = parse_reference(args.reference) if args.reference else None
        raw = load_storm_events(args.events)
        entries = load_price_index(args.cpi)
        result = run_pipeline(raw, entries, reference=reference)
    except ConfigurationError as e:
        logger.error("%s", e)
        return 2

    session = Session.from_result(result, top_n=args.top)
    print(f"Normalized {len(result.classified)} events "
          f"({len(result.retained)} classified, {result.dropped} dropped). Type 'help' for commands.")

    while True:
        try:
            line = input("stormnorm> ")
        except EOFError:
            break
        line = line.strip()
        if not line:
            continue
        if line.lower() in ("quit", "exit"):
            break
        try:
            handle(session, line)
        except Exception as e:
            print(f"Error: {e}")
    return 0


def handle(session: Session, line: str) -> None:
    """Handle one REPL command line."""
    parts = shlex.split(line)
    cmd = parts[0].lower()

    if cmd == "help":
        print(HELP)
        return

    if cmd == "stats":
        r = session.result
        print(f"Reference month: {r.reference[0]}-{r.reference[1]:02d}")
        print(f"Events normalized: {len(r.classified)} | dropped (bad date): {r.dropped}")
        print(f"Classified: {len(r.retained)} | other: {r.other_count} | missing damages: {r.missing_damages}")
        print(f"Categories: {len(session.summaries)} | year/category rows: {len(session.year_aggregates)}")
        return

    if cmd == "top":
        n = int(parts[1]) if len(parts) >= 2 else session.top_n
        metric = parts[2].lower() if len(parts) >= 3 else "damages"
        statistic = parts[3].lower() if len(parts) >= 4 else "median"
        out = rank_categories(session.summaries, n, metric=metric, statistic=statistic)
        print(f"Top {len(out)} categories by {statistic} yearly {metric}:")
        _print_summaries(out, metric)
        return

    if cmd == "years":
        if len(parts) < 2:
            print('Usage: years "<category>"')
            return
        category = parts[1]
        rows = [a for a in session.year_aggregates if a.category == category]
        if not rows:
            print(f"No rows for category {category!r}.")
            return
        for a in rows:
            print(f"{a.year} | events={a.event_count} damages={a.damages:,.0f} deaths={a.deaths} injuries={a.injuries}")
        return

    if cmd == "classify":
        label = " ".join(parts[1:])
        matches = matching_rules(label)
        print(f"{label!r} -> {classify(label)}  (matched: {', '.join(matches) or 'none'})")
        return

    if cmd == "rules":
        print(f"Rule set version {RULESET_VERSION} (last match wins):")
        for i, rule in enumerate(RULES, start=1):
            print(f"{i:2d}. {rule.label}: {', '.join(sorted(rule.patterns))}")
        return

    if cmd == "export":
        # export <year|category> "<path>"
        if len(parts) < 3:
            print('Usage: export year "out.csv"  OR  export category "out.json"')
            return
        table, out_path = parts[1].lower(), parts[2]
        if table == "year":
            df = year_category_frame(session.year_aggregates)
        elif table == "category":
            df = category_frame(session.summaries)
        else:
            print("Unknown table. Use: year or category")
            return
        if out_path.lower().endswith(".json"):
            with open(out_path, "w", encoding="utf-8") as f:
                json.dump(df.to_dict(orient="records"), f, ensure_ascii=False, indent=2)
        else:
            df.to_csv(out_path, index=False)
        print(f"Exported {len(df)} rows to {out_path}")
        return

    print("Unknown command. Type 'help'.")


def _print_summaries(rows: List[CategoryAggregate], metric: str) -> None:
    for s in rows:
        print(f"{s.category} | events={s.event_count} years={s.year_count} "
              f"median={s.stat(metric, 'median'):,.1f} mean={s.stat(metric, 'mean'):,.1f}")


if __name__ == "__main__":
    sys.exit(main())
