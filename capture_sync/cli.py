import asyncio
import logging
import time
from datetime import timedelta
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from capture_sync.core.config.settings import settings
from capture_sync.core.errors import CaptureSyncError, FetchFailure, StorageFailure
from capture_sync.features.cache.service.ttl_cache import TTLCache
from capture_sync.features.event_source.data.http_source import HttpEventSource
from capture_sync.features.kv_store.data.repository import SqlKeyValueStore
from capture_sync.features.meeting_sync.data.history_repo import SessionHistoryRepo
from capture_sync.features.meeting_sync.domain.models import SyncResult
from capture_sync.features.meeting_sync.service.controller import SyncController
from capture_sync.features.pipe_registry.data.github_api import GithubApi
from capture_sync.features.pipe_registry.service.resolver import DescriptorResolver, PipeCatalog
from capture_sync.features.segmentation.domain.models import SegmentationConfig

app = typer.Typer(help="Meeting history and pipe metadata for a local capture service")
console = Console()


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level")):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _store():
    from capture_sync.core.database.connection import init_db
    init_db()
    return SqlKeyValueStore()


def _controller() -> SyncController:
    config = SegmentationConfig(
        gap_threshold=timedelta(minutes=settings.GAP_THRESHOLD_MINUTES),
        min_transcript_length=settings.MIN_TRANSCRIPT_LENGTH,
    )
    return SyncController(
        event_source=HttpEventSource(settings.CAPTURE_API_URL, timeout=settings.HTTP_TIMEOUT_SECONDS),
        history=SessionHistoryRepo(_store()),
        config=config,
        lookback=timedelta(days=settings.INITIAL_LOOKBACK_DAYS),
        fetch_limit=settings.EVENT_FETCH_LIMIT,
    )


def _enricher(controller: SyncController):
    from capture_sync.features.enrichment.data.openai_adapter import OpenAIChatAdapter
    from capture_sync.features.enrichment.service.enricher import MeetingEnricher

    if not settings.OPENAI_API_KEY:
        console.print("[red]OPENAI_API_KEY is not set[/red]")
        raise typer.Exit(1)
    llm = OpenAIChatAdapter(api_key=settings.OPENAI_API_KEY, model=settings.AI_MODEL, base_url=settings.AI_URL)
    return MeetingEnricher(llm, controller, remediation_keep=settings.STORAGE_REMEDIATION_KEEP)


def _resolver() -> DescriptorResolver:
    cache = TTLCache(_store(), default_ttl=timedelta(seconds=settings.CACHE_TTL_SECONDS))
    api = GithubApi(
        cache,
        api_url=settings.GITHUB_API_URL,
        raw_url=settings.GITHUB_RAW_URL,
        token=settings.GITHUB_TOKEN,
        timeout=settings.HTTP_TIMEOUT_SECONDS,
    )
    return DescriptorResolver(api)


def _print_meetings(sessions):
    if not sessions:
        console.print("No meetings found.")
        return
    table = Table(title="Meetings")
    table.add_column("ID", style="cyan")
    table.add_column("Start")
    table.add_column("End")
    table.add_column("Name", style="magenta")
    table.add_column("Participants")
    for s in sessions:
        table.add_row(s.session_id, s.start_time.strftime("%Y-%m-%d %H:%M"), s.end_time.strftime("%H:%M"),
                      s.name or "", s.participants or "")
    console.print(table)


def _report(controller: SyncController, result: SyncResult):
    if result.error:
        console.print("[red]Some trouble fetching new meetings. Please check health status.[/red]")
        console.print(f"[dim]{result.error_message}[/dim]")
        return
    if result.storage_degraded:
        console.print("[yellow]Meetings updated but couldn't be saved; removing older meetings to make space.[/yellow]")
        try:
            result.sessions = controller.persist_with_remediation(result.sessions, keep=settings.STORAGE_REMEDIATION_KEEP)
        except StorageFailure as e:
            console.print(f"[red]Failed to clean up storage: {e}[/red]")
    console.print(f"[green]{result.added} new, {result.extended} extended[/green]")


@app.command()
def sync():
    """Pull new events from the capture service and merge them into the meeting history."""
    controller = _controller()
    result = controller.sync()
    _report(controller, result)
    _print_meetings(result.sessions)
    if result.error:
        raise typer.Exit(1)


@app.command()
def watch(interval: int = typer.Option(60, help="Seconds between syncs"),
          iterations: int = typer.Option(0, help="Stop after N syncs (0 = forever)")):
    """Sync on a fixed interval."""
    controller = _controller()
    count = 0
    while not iterations or count < iterations:
        _report(controller, controller.sync())
        count += 1
        if not iterations or count < iterations:
            time.sleep(interval)


@app.command()
def meetings():
    """List stored meetings, newest first."""
    _print_meetings(_controller().load())


@app.command()
def show(session_id: str):
    """Print one meeting's transcript and summary."""
    for s in _controller().load():
        if s.session_id == session_id:
            console.print(f"[bold]{s.name or 'untitled meeting'}[/bold]  {s.session_id}")
            if s.participants:
                console.print(f"[cyan]participants:[/cyan] {s.participants}")
            if s.summary:
                console.print("[cyan]summary:[/cyan]")
                console.print(s.summary, markup=False)
            console.print(s.transcript, markup=False)
            return
    console.print(f"[red]No meeting with id {session_id}[/red]")
    raise typer.Exit(1)


@app.command()
def rename(session_id: str, name: str):
    """Give a meeting a name."""
    try:
        result = _controller().update_session(session_id, name=name)
    except KeyError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    if result.storage_degraded:
        console.print(f"[yellow]Renamed in memory only: {result.error_message}[/yellow]")


@app.command()
def clear():
    """Remove all stored meetings."""
    _controller().clear()
    console.print("All stored meeting data has been removed.")


@app.command()
def summarize(session_id: str, prompt: Optional[str] = typer.Option(None, help="Custom summary prompt")):
    """Generate a meeting summary with the configured LLM."""
    controller = _controller()
    enricher = _enricher(controller)
    kwargs = {"prompt": prompt} if prompt else {}
    try:
        enricher.summarize(session_id, on_delta=lambda d: console.print(d, end="", markup=False), **kwargs)
    except (KeyError, CaptureSyncError) as e:
        console.print(f"\n[red]Failed to generate meeting summary: {e}[/red]")
        raise typer.Exit(1)
    console.print()


@app.command()
def identify(session_id: str, prompt: Optional[str] = typer.Option(None, help="Custom identification prompt")):
    """Identify meeting participants with the configured LLM."""
    controller = _controller()
    enricher = _enricher(controller)
    kwargs = {"prompt": prompt} if prompt else {}
    try:
        result = enricher.identify_participants(session_id, **kwargs)
    except (KeyError, CaptureSyncError) as e:
        console.print(f"[red]Failed to identify meeting participants: {e}[/red]")
        raise typer.Exit(1)
    updated = next((s for s in result.sessions if s.session_id == session_id), None)
    if updated:
        console.print(updated.participants)


@app.command()
def pipes(urls: List[str] = typer.Argument(None, help="Repository URLs (defaults to DEFAULT_PIPE_URLS)"),
          add: Optional[str] = typer.Option(None, help="Resolve and add a custom pipe URL")):
    """Resolve pipe metadata from their repositories."""
    catalog = PipeCatalog(_resolver(), urls or settings.DEFAULT_PIPE_URLS)

    async def run():
        outcomes = await catalog.refresh()
        if add:
            await catalog.add_custom(add)
        return outcomes

    try:
        outcomes = asyncio.run(run())
    except (ValueError, CaptureSyncError) as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    table = Table(title="Pipes")
    table.add_column("Name", style="cyan")
    table.add_column("Version")
    table.add_column("Stars", justify="right")
    table.add_column("Author", style="magenta")
    table.add_column("Updated")
    table.add_column("Description")
    for p in catalog.pipes:
        table.add_row(p.name, p.latest_version, str(p.star_count), p.author, p.last_updated, p.short_description)
    console.print(table)
    for outcome in outcomes:
        if outcome.ok:
            continue
        if isinstance(outcome.error, FetchFailure) and outcome.error.rate_limited:
            console.print(f"[yellow]{outcome.repo_ref}: GitHub rate limit exceeded, try again later or set GITHUB_TOKEN[/yellow]")
        else:
            console.print(f"[yellow]{outcome.repo_ref}: {outcome.error}[/yellow]")


if __name__ == "__main__":
    app()
