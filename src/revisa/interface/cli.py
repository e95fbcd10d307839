"""revisa CLI: progress views, grading and configuration."""

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Annotated, NoReturn

import typer

from revisa.application.config import SrsSettings, StudyContext, resolve_config
from revisa.domain.exceptions import ItemNotFoundError, RevisaError
from revisa.infrastructure.adapters.file_store import FileItemStore
from revisa.interface._common import status_to_dict

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="revisa: spaced-repetition scheduling and progress for study items.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

config_app = typer.Typer(help="Manage revisa configuration.")
app.add_typer(config_app, name="config")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _settings(ctx: typer.Context) -> SrsSettings:
    return ctx.obj["settings"]


def _store(ctx: typer.Context) -> FileItemStore:
    settings = _settings(ctx)
    if settings.data_file is None:
        typer.secho("No data file. Pass --data or set REVISA_DATA_FILE.", fg="red")
        raise typer.Exit(1)
    return FileItemStore(settings.data_file)


def _fail(e: Exception) -> NoReturn:
    typer.secho(f"Error: {e}", fg="red", err=True)
    raise typer.Exit(1)


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    ctx: typer.Context,
    data: Annotated[
        Path | None,
        typer.Option("--data", "-d", help="JSON or YAML file with questions and flashcards."),
    ] = None,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 0,
):
    """Global settings for revisa."""
    if verbose:
        logging.getLogger("revisa").setLevel(logging.INFO if verbose == 1 else logging.DEBUG)
    ctx.ensure_object(dict)
    try:
        ctx.obj["settings"] = resolve_config({"data_file": data})
    except ValueError as e:
        _fail(e)


# ---------------------------------------------------------------------------
# Root commands
# ---------------------------------------------------------------------------


@app.command()
def status(
    ctx: typer.Context,
    reference: Annotated[str, typer.Argument(help="Reference or topic key to aggregate.")],
    as_json: Annotated[bool, typer.Option("--json", help="Print the full status as JSON.")] = False,
):
    """Show the [bold]progress[/bold] of every item linked to a reference."""
    from revisa.application.stats.service import ProgressService

    store = _store(ctx)
    service = ProgressService(store, _settings(ctx))
    try:
        result = asyncio.run(service.reference_status(reference))
    except RevisaError as e:
        _fail(e)

    if as_json:
        typer.echo(json.dumps(status_to_dict(result), indent=2, ensure_ascii=False))
        return

    typer.echo(f"Reference: {reference}")
    typer.echo(f"Next review: {result.next_review_label}")
    typer.echo(f"Items: {result.total_items} ({result.reviewed_items} reviewed)")
    typer.echo(f"Domain: {result.domain:.1f}  Mastery: {result.mastery:.1f}")
    if result.overdue_items:
        typer.secho(f"Overdue: {result.overdue_items}", fg="yellow")


@app.command()
def topics(
    ctx: typer.Context,
    sort: Annotated[
        str, typer.Option(help="Sort mode: pending, alpha, mastery, errors, critical.")
    ] = "pending",
    only_critical: Annotated[bool, typer.Option("--critical", help="Only topics with critical items.")] = False,
    only_marked: Annotated[bool, typer.Option("--marked", help="Only topics with study-later items.")] = False,
    marked: Annotated[
        list[str] | None, typer.Option("--mark", help="Item id bookmarked for later (repeatable).")
    ] = None,
    search: Annotated[str, typer.Option(help="Filter topics by label.")] = "",
):
    """List question topics with their decayed mastery."""
    from revisa.application.stats.service import ProgressService

    settings = _settings(ctx)
    context = StudyContext(settings=settings, study_later_ids=frozenset(marked or []))
    service = ProgressService(_store(ctx), settings)
    try:
        result = asyncio.run(
            service.topics(context, sort, only_critical, only_marked, search)
        )
    except (RevisaError, ValueError) as e:
        _fail(e)

    if not result:
        typer.secho("No topics found.", fg="yellow")
        return

    for t in result:
        flag = "!" if t.is_overdue else " "
        typer.echo(
            f"{flag} {t.label}: {t.attempted}/{t.total} attempted, "
            f"domain {t.mastery_avg:.1f}, errors {t.error_count}, critical {t.critical_count}"
        )


@app.command()
def grade(
    ctx: typer.Context,
    item_id: Annotated[str, typer.Argument(help="Item to grade.")],
    rating: Annotated[str, typer.Argument(help="again, hard, good or easy (or 0-3).")],
    time_taken: Annotated[float, typer.Option("--time", "-t", help="Seconds taken to answer.")] = 20.0,
    wrong: Annotated[
        bool, typer.Option("--wrong", help="Mark as incorrect even if the rating is not 'again'.")
    ] = False,
):
    """[bold green]Grade[/bold green] an item and reschedule it."""
    from revisa.application.grading_service import GradingService
    from revisa.domain.constants import Grade

    try:
        grade_value = Grade(int(rating)) if rating.isdigit() else Grade.from_label(rating)
    except ValueError as e:
        _fail(e)

    service = GradingService(_store(ctx), _settings(ctx))
    try:
        outcome = asyncio.run(
            service.grade(item_id, grade_value, time_taken, was_correct=False if wrong else None)
        )
    except RevisaError as e:
        _fail(e)

    patch = outcome.patch
    typer.secho(
        f"{item_id}: {patch.grade} ({'correct' if patch.last_was_correct else 'incorrect'})",
        fg="green" if patch.last_was_correct else "red",
    )
    typer.echo(f"Stability: {patch.stability:.2f} days")
    typer.echo(f"Mastery: {patch.mastery_score:.1f}")
    typer.echo(f"Next review: {patch.next_review_date} [{patch.timing_class}]")


@app.command()
def item(
    ctx: typer.Context,
    item_id: Annotated[str, typer.Argument(help="Item to inspect.")],
):
    """Show the current decay status of one item."""
    from revisa.application.item_status import calculate_metrics, urgency
    from revisa.application.references import resolve_reference
    from revisa.application.utils.dates import format_iso_to_br, is_gold_window

    settings = _settings(ctx)
    try:
        found = asyncio.run(_store(ctx).get_item(item_id))
    except RevisaError as e:
        _fail(e)
    if found is None:
        _fail(ItemNotFoundError(item_id))

    metrics = calculate_metrics(found)
    typer.echo(f"{found.id} [{found.kind.value}] ref={resolve_reference(found) or '-'}")
    typer.echo(f"Attempts: {found.total_attempts}")
    typer.echo(f"Retrievability: {metrics.r_now:.3f} ({urgency(found).value})")
    typer.echo(f"Domain: {metrics.domain:.1f}  Mastery: {found.mastery_score:.1f}")
    typer.echo(f"Due: {format_iso_to_br(found.next_review_date, settings.tz)}")
    if is_gold_window(found.next_review_date, window_hours=settings.gold_window_hours):
        typer.secho("In the review window now.", fg="green")


@app.command()
def server(
    host: Annotated[str, typer.Option(help="Bind address.")] = "127.0.0.1",
    port: Annotated[int, typer.Option(help="Port.")] = 8777,
    reload: Annotated[bool, typer.Option(help="Auto-reload on code changes.")] = False,
):
    """Start the HTTP API."""
    import uvicorn

    uvicorn.run("revisa.server:app", host=host, port=port, reload=reload)


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show(ctx: typer.Context):
    """Display final resolved configuration."""
    config = _settings(ctx)
    d = {k: str(v) if isinstance(v, Path) else v for k, v in config.model_dump().items()}
    typer.echo(json.dumps(d, indent=2))
