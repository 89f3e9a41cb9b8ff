"""cadence CLI: daily queue, answer recording, planning and stats."""

import json
import logging
import sys
from pathlib import Path
from typing import Annotated, Any

import typer
from pydantic import TypeAdapter, ValidationError

from cadence.application.config import AppSettings, resolve_config
from cadence.domain.errors import CadenceError

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="cadence: spaced-repetition review scheduling.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(help="Manage cadence configuration.")
app.add_typer(config_app, name="config")

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

VERBOSITY_LEVELS = {1: logging.INFO}

CardsOption = Annotated[
    Path | None, typer.Option("--cards", help="Progress JSON file. Defaults to config.")
]
CatalogOption = Annotated[
    Path | None, typer.Option("--catalog", help="Problem catalog (YAML/JSON). Defaults to config.")
]
JsonOption = Annotated[bool, typer.Option("--json", help="Output as JSON.")]


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 0,
):
    """Global settings for cadence."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    if verbose:
        logging.getLogger("cadence").setLevel(VERBOSITY_LEVELS.get(verbose, logging.DEBUG))


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _resolve(**overrides: Any) -> AppSettings:
    try:
        settings = resolve_config(overrides)
    except ValidationError as e:
        typer.secho(f"Invalid configuration:\n{e}", fg="red", err=True)
        raise typer.Exit(1)

    package_logger = logging.getLogger("cadence")
    if package_logger.level == logging.NOTSET:
        package_logger.setLevel(settings.log_level)
    return settings


def _build_service(cards: Path | None, catalog: Path | None):
    from cadence.application.service import ReviewService
    from cadence.infrastructure.adapters import JsonCardRepository
    from cadence.infrastructure.catalog import load_catalog

    settings = _resolve(cards_file=cards, catalog_file=catalog)
    if settings.catalog_file is None:
        typer.secho(
            "No catalog configured. Pass --catalog or set CADENCE_CATALOG_FILE.",
            fg="red",
            err=True,
        )
        raise typer.Exit(1)

    try:
        problems = load_catalog(settings.catalog_file)
    except CadenceError as e:
        typer.secho(str(e), fg="red", err=True)
        raise typer.Exit(1)

    repo = JsonCardRepository(settings.cards_file)
    return ReviewService(repo, problems, settings.scheduler)


def _dump(value: Any) -> str:
    return json.dumps(TypeAdapter(type(value)).dump_python(value, mode="json"), indent=2)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command("queue")
def queue(
    cards: CardsOption = None,
    catalog: CatalogOption = None,
    size: Annotated[
        int | None, typer.Option("--size", "-n", min=0, help="Requested queue size.")
    ] = None,
    json_output: JsonOption = False,
):
    """Build [bold green]today's[/bold green] review queue."""
    service = _build_service(cards, catalog)
    result = service.daily_queue(size)

    if json_output:
        typer.echo(
            json.dumps(
                {
                    "queue": result.problem_ids,
                    "due": result.due_count,
                    "target_size": result.target_size,
                    "calculator_swaps": result.calculator_swaps,
                },
                indent=2,
            )
        )
        return

    if not result.queue:
        typer.secho("Nothing due. You're all caught up.", fg="green")
        return

    typer.echo(f"Due: {result.due_count}  Today: {len(result.queue)}")
    for position, review in enumerate(result.queue, start=1):
        calc = " [calc]" if review.calculator_required else ""
        typer.echo(
            f"{position:>3}. {review.problem_id}{calc}  ({review.unit} / {review.topic})"
            f"  priority {review.priority:.1f}: {', '.join(review.reasons)}"
        )


@app.command("review")
def review(
    problem_id: Annotated[str, typer.Argument(help="Problem that was answered.")],
    time_spent: Annotated[
        float, typer.Option("--time", "-t", min=0, help="Seconds spent on the problem.")
    ],
    correct: Annotated[
        bool, typer.Option("--correct/--incorrect", help="Whether the answer was correct.")
    ] = True,
    hints: Annotated[int, typer.Option("--hints", min=0, help="Hints used.")] = 0,
    cards: CardsOption = None,
    catalog: CatalogOption = None,
):
    """Record an answer and reschedule the problem."""
    service = _build_service(cards, catalog)

    try:
        result = service.record_answer(problem_id, correct, time_spent, hints)
    except CadenceError as e:
        typer.secho(str(e), fg="red", err=True)
        raise typer.Exit(1)

    card = result.card
    typer.echo(
        f"{problem_id}: quality {card.quality}, interval {card.interval}d "
        f"({result.interval_changed:+d}), ease {card.ease_factor:.2f} "
        f"({result.ease_factor_changed:+.2f})"
    )
    typer.echo(f"Next review: {card.next_review.isoformat()}")


@app.command("plan")
def plan(
    days: Annotated[int, typer.Option("--days", "-d", min=0, help="Days to project.")] = 7,
    cards: CardsOption = None,
    catalog: CatalogOption = None,
    json_output: JsonOption = False,
):
    """Project review load for the coming days."""
    service = _build_service(cards, catalog)
    report = service.plan(days)

    if json_output:
        typer.echo(_dump(report))
        return

    for schedule in report.daily_schedules:
        typer.echo(
            f"{schedule.date.isoformat()}  {schedule.total_count:>3} review(s)"
            f"  ~{schedule.estimated_time_minutes} min"
        )
    typer.echo(
        f"Total: {report.total_reviews}  Avg/day: {report.average_per_day:.1f}"
        f"  Peak: {report.peak_day}  Lightest: {report.lightest_day}"
    )


@app.command("stats")
def stats(
    cards: CardsOption = None,
    catalog: CatalogOption = None,
    json_output: JsonOption = False,
):
    """Summarize everything currently due."""
    service = _build_service(cards, catalog)
    summary = service.stats()

    if json_output:
        typer.echo(_dump(summary))
        return

    typer.echo(
        f"Due: {summary.total}  Overdue: {summary.overdue}  Weak: {summary.weak}"
        f"  ~{summary.estimated_time_minutes} min"
    )
    typer.echo(f"Calculator: {summary.calculator_needed}  No calculator: {summary.no_calculator}")
    for unit, count in sorted(summary.by_unit.items()):
        typer.echo(f"  {unit}: {count}")

    session = service.today_session()
    if session is not None:
        typer.echo(
            f"Today: {len(session.problem_ids)} reviewed in {session.time_seconds // 60} min"
        )


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show():
    """Display final resolved configuration."""
    settings = _resolve()
    typer.echo(json.dumps(settings.model_dump(mode="json"), indent=2))
