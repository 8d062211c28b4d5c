import argparse
import os
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from rich.console import Console
from rich.table import Table

from dicepattern.core.classifier import STATE_BANDS
from dicepattern.core.config import Config, load_config
from dicepattern.core.data.loader import default_export_name, export_json, import_json
from dicepattern.core.data.schema import MalformedLogError, RollValidationError
from dicepattern.core.data.store import ObservationStore
from dicepattern.core.log import setup_logging
from dicepattern.core.session import Session
from dicepattern.core.types import STATES, Observation, Outcome, Trend
from dicepattern.core.utils import round_half_up

console = Console()

TREND_ARROWS = {Trend.RISING: "↑", Trend.FALLING: "↓", Trend.FLAT: "→"}


def _load_config(path: Optional[str]) -> Config:
    if path is None:
        return load_config()
    config_path = Path(path)
    if not config_path.exists():
        raise SystemExit(f"Config file not found: {path}")
    return load_config(config_path)


def _open(args: argparse.Namespace) -> Tuple[Config, ObservationStore, Session]:
    config = _load_config(args.config)
    setup_logging(
        level=args.log_level or config.logging.level,
        structured=config.logging.structured,
        log_file=Path(config.logging.log_file) if config.logging.log_file else None,
    )
    store = ObservationStore(args.db or config.storage.db_path)
    try:
        session = Session(store.load(), config)
    except MalformedLogError as exc:
        store.close()
        raise SystemExit(f"Stored log is corrupt: {exc}") from exc
    return config, store, session


def filter_history(
    log: Sequence[Observation],
    search: Optional[str] = None,
    sort: str = "desc",
) -> List[Tuple[int, Observation]]:
    """Pair entries with their display rank (1 = most recent), filter and order them."""
    ranked = [(len(log) - idx, obs) for idx, obs in enumerate(log)]
    if search:
        needle = search.lower()
        ranked = [
            (rank, obs)
            for rank, obs in ranked
            if needle
            in f"{obs.first_value} {obs.second_value} {obs.outcome.value} {obs.second_state.value}".lower()
        ]
    if sort == "desc":
        ranked.reverse()
    return ranked


def _non_negative_int(text: str) -> int:
    value = int(text)
    if value < 0:
        raise argparse.ArgumentTypeError(f"must be >= 0, got {value}")
    return value


def quick_summary(log: Sequence[Observation]) -> Tuple[str, str, str, str]:
    """Total, K share, last trend and last state, with "-" where undefined."""
    if not log:
        return "0", "-", "-", "-"
    k_count = sum(1 for obs in log if obs.outcome is Outcome.K)
    last = log[-1]
    return (
        str(len(log)),
        f"{round_half_up(k_count / len(log) * 100)}% K",
        f"{TREND_ARROWS[last.trend]} {last.trend.value}",
        last.second_state.value,
    )


def _print_observation(obs: Observation) -> None:
    console.print(
        f"#{obs.id}: {obs.first_value} ({obs.first_state.value}) -> "
        f"{obs.second_value} ({obs.second_state.value}) "
        f"{TREND_ARROWS[obs.trend]} {obs.delta:+d}  class {obs.outcome.value}"
    )


def cmd_add(args: argparse.Namespace) -> None:
    _, store, session = _open(args)
    try:
        obs = session.append(args.first, args.second)
    except RollValidationError as exc:
        raise SystemExit(str(exc)) from exc
    else:
        store.save(session.snapshot())
        _print_observation(obs)
    finally:
        store.close()


def cmd_remove(args: argparse.Namespace) -> None:
    _, store, session = _open(args)
    before = len(session)
    session.remove(args.id)
    if len(session) == before:
        console.print(f"No entry with id {args.id}")
    else:
        store.save(session.snapshot())
        console.print(f"Removed entry {args.id}")
    store.close()


def cmd_clear(args: argparse.Namespace) -> None:
    if not args.yes:
        raise SystemExit("Refusing to delete all entries without --yes")
    _, store, session = _open(args)
    session.clear()
    store.save(session.snapshot())
    store.close()
    console.print("All entries deleted")


def cmd_history(args: argparse.Namespace) -> None:
    _, store, session = _open(args)
    store.close()
    log = session.snapshot()
    if not log:
        console.print("No entries yet")
        return

    rows = filter_history(log, args.search, args.sort)
    if args.limit is not None:
        rows = rows[: args.limit]

    table = Table(title=f"History ({len(rows)} of {len(log)})")
    for column in ("#", "Roll 1", "State 1", "Roll 2", "State 2", "Diff", "Trend", "K/B", "Time", "ID"):
        table.add_column(column)
    for rank, obs in rows:
        table.add_row(
            str(rank),
            str(obs.first_value),
            obs.first_state.value,
            str(obs.second_value),
            obs.second_state.value,
            f"{obs.delta:+d}",
            TREND_ARROWS[obs.trend],
            obs.outcome.value,
            obs.created_at,
            str(obs.id),
        )
    console.print(table)


def cmd_predict(args: argparse.Namespace) -> None:
    config, store, session = _open(args)
    store.close()
    steps = args.steps if args.steps is not None else config.engine.default_steps
    try:
        forecasts = session.predict_multi_step(steps)
    except ValueError as exc:
        raise SystemExit(str(exc)) from exc

    table = Table(title=f"Forecast ({len(session)} entries)")
    table.add_column("Step")
    table.add_column("K %", justify="right")
    table.add_column("B %", justify="right")
    table.add_column("Confidence %", justify="right")
    table.add_column("Lean")
    for forecast in forecasts:
        table.add_row(
            f"+{forecast.step}",
            str(forecast.prob_k),
            str(forecast.prob_b),
            str(forecast.confidence),
            forecast.favored.value if forecast.favored else "-",
        )
    console.print(table)

    if not forecasts or not forecasts[0].factors:
        console.print(
            f"At least {config.engine.min_entries} entries are needed for a factor breakdown"
        )
        return

    factors = Table(title="Factors")
    factors.add_column("Factor")
    factors.add_column("K", justify="right")
    factors.add_column("B", justify="right")
    factors.add_column("Reason")
    for result in forecasts[0].factors:
        factors.add_row(
            f"{result.name} ({result.weight:g})",
            f"{result.k_score:.1f}",
            f"{result.b_score:.1f}",
            result.rationale,
        )
    console.print(factors)


def cmd_matrix(args: argparse.Namespace) -> None:
    _, store, session = _open(args)
    store.close()
    matrix = session.transition_matrix()

    table = Table(title="Transitions (roll 1 state -> roll 2 state)")
    table.add_column("From \\ To")
    for state in STATES:
        table.add_column(state.value, justify="right")
    for src in STATES:
        table.add_row(src.value, *(str(matrix[src][dst]) for dst in STATES))
    console.print(table)


def cmd_stats(args: argparse.Namespace) -> None:
    _, store, session = _open(args)
    store.close()
    metrics = session.metrics()
    stats = metrics.dispersion

    overview = Table(title="Overview")
    for column in ("Total", "Ratio", "Last trend", "Last state"):
        overview.add_column(column)
    overview.add_row(*quick_summary(session.snapshot()))
    console.print(overview)

    trend = Table(title="Trend")
    for column in ("Rising", "Falling", "Flat"):
        trend.add_column(column, justify="right")
    trend.add_row(str(metrics.trend.rising), str(metrics.trend.falling), str(metrics.trend.flat))
    console.print(trend)

    states = Table(title="States (roll 2)")
    for state in STATES:
        low, high = STATE_BANDS[state]
        states.add_column(f"{state.value} {low}-{high}", justify="right")
    states.add_row(*(str(metrics.states[state]) for state in STATES))
    console.print(states)

    classes = Table(title="Classes")
    classes.add_column("K", justify="right")
    classes.add_column("B", justify="right")
    classes.add_column("Alternation %", justify="right")
    classes.add_row(
        str(metrics.classes[Outcome.K]),
        str(metrics.classes[Outcome.B]),
        f"{metrics.alternation_rate:.1f}",
    )
    console.print(classes)

    summary = Table(title="Statistics")
    summary.add_column("Metric")
    summary.add_column("Value", justify="right")
    summary.add_row("Entries", str(stats.total))
    summary.add_row("Mean roll 1", f"{stats.mean_first:.1f}")
    summary.add_row("Mean roll 2", f"{stats.mean_second:.1f}")
    summary.add_row("Mean |diff|", f"{stats.mean_abs_delta:.1f}")
    summary.add_row("Min", str(stats.min_value))
    summary.add_row("Max", str(stats.max_value))
    summary.add_row("Median", f"{stats.median:.1f}")
    summary.add_row("Std dev", f"{stats.std_dev:.1f}")
    summary.add_row("Volatility", f"{stats.volatility:.1f}%")
    console.print(summary)


def cmd_insights(args: argparse.Namespace) -> None:
    _, store, session = _open(args)
    store.close()
    for idx, insight in enumerate(session.insights(), start=1):
        console.print(f"{idx}. {insight}")


def cmd_export(args: argparse.Namespace) -> None:
    config, store, session = _open(args)
    store.close()
    path = args.path or os.path.join(config.storage.export_dir, default_export_name())
    out = export_json(path, session.snapshot())
    console.print(f"Exported {len(session)} entries to {out}")


def cmd_import(args: argparse.Namespace) -> None:
    _, store, session = _open(args)
    try:
        observations = import_json(args.path)
        session.replace(observations)
    except (OSError, MalformedLogError) as exc:
        raise SystemExit(f"Import failed: {exc}") from exc
    else:
        store.save(session.snapshot())
        console.print(f"Imported {len(session)} entries")
    finally:
        store.close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="dicepattern")
    parser.add_argument("--db", default=None, help="SQLite DB path (default from config)")
    parser.add_argument("--config", default=None, help="YAML config path")
    parser.add_argument("--log-level", default=None, help="Override logging level")
    sub = parser.add_subparsers(dest="command", required=True)

    add = sub.add_parser("add", help="Record a new pair of rolls")
    add.add_argument("first", help="First roll (6-54)")
    add.add_argument("second", help="Second roll (6-54)")
    add.set_defaults(func=cmd_add)

    remove = sub.add_parser("remove", help="Delete an entry by id")
    remove.add_argument("id", type=int, help="Entry id")
    remove.set_defaults(func=cmd_remove)

    clear = sub.add_parser("clear", help="Delete all entries")
    clear.add_argument("--yes", action="store_true", help="Confirm deletion")
    clear.set_defaults(func=cmd_clear)

    history = sub.add_parser("history", help="Show recorded entries")
    history.add_argument("--sort", choices=("desc", "asc"), default="desc", help="desc = newest first")
    history.add_argument("--search", default=None, help="Filter by roll, class or state")
    history.add_argument("--limit", type=_non_negative_int, default=None, help="Show at most N rows")
    history.set_defaults(func=cmd_history)

    predict = sub.add_parser("predict", help="Forecast the next entries")
    predict.add_argument("--steps", type=int, default=None, help="Number of steps ahead")
    predict.set_defaults(func=cmd_predict)

    matrix = sub.add_parser("matrix", help="Show the state transition matrix")
    matrix.set_defaults(func=cmd_matrix)

    stats = sub.add_parser("stats", help="Show distribution statistics")
    stats.set_defaults(func=cmd_stats)

    insights = sub.add_parser("insights", help="Show pattern insights")
    insights.set_defaults(func=cmd_insights)

    export = sub.add_parser("export", help="Export entries to JSON")
    export.add_argument("path", nargs="?", default=None, help="Output file")
    export.set_defaults(func=cmd_export)

    importer = sub.add_parser("import", help="Replace entries from a JSON export")
    importer.add_argument("path", help="JSON file")
    importer.set_defaults(func=cmd_import)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    args.func(args)


if __name__ == "__main__":
    main()
