"""
CLI interface for the lap timer.

Provides an interactive stopwatch plus commands to review, compare and export
saved sessions.
"""

import asyncio
import json
import uuid
from pathlib import Path
from typing import Optional, Tuple

import click

from app.utils.logger import get_logger, set_correlation_id, setup_logging_from_settings
from config.settings import Settings, get_settings
from integrations.live_session import LiveSession, RealtimeDatabasePublisher
from integrations.location import NominatimGeocoder, StaticLocationProvider
from integrations.upload import HttpSessionUploader
from sessions.analytics import compare_sessions, summarize_by_location
from sessions.preferences import UserPreferences
from sessions.recorder import SessionRecorder
from sessions.repository import SessionRepository
from sessions.store import KeyValueStore, create_store
from sessions.web_sessions import WebSessionBook
from stopwatch.engine import Stopwatch
from stopwatch.schemas import TickSnapshot

logger = get_logger(__name__)

RUN_HELP = """Commands:
  s  start / stop        l  lap            x  sector
  r  reset               v  save           u  save, upload and reset
  t  show times          p  live session   q  quit"""


def _open_store(settings: Settings) -> KeyValueStore:
    setup_logging_from_settings(settings.logging)
    return create_store(settings.storage)


def _resolve(repository: SessionRepository, session_id: str):
    session = repository.get(session_id) or repository.find(session_id)
    if session is None:
        raise click.ClickException(f"No unique session matches '{session_id}'")
    return session


@click.group()
@click.version_option(version='0.1.0')
@click.pass_context
def cli(ctx):
    """Moto Lap Timer - lap/sector stopwatch"""
    ctx.obj = get_settings()


# ----------------------------------------------------------------------
# Interactive stopwatch
# ----------------------------------------------------------------------
def _print_times(snapshot: Optional[TickSnapshot], stopwatch: Stopwatch) -> None:
    if snapshot is None:
        state = stopwatch.state
        click.echo(f"stopped | laps={state.lap_count} sectors={state.sector_count}")
        return
    click.echo(f"total {snapshot.total_time} | lap {snapshot.current_lap} | best {snapshot.best_lap}")


def _start_run(stopwatch: Stopwatch) -> None:
    """Start the stopwatch; a run with nothing recorded gets a new log correlation ID."""
    state = stopwatch.state
    if state.lap_count == 0 and not state.sectors_by_lap:
        set_correlation_id(f"run-{uuid.uuid4().hex[:12]}")
    stopwatch.start()


def _build_recorder(settings: Settings, stopwatch: Stopwatch, repository: SessionRepository,
                    preferences: UserPreferences) -> SessionRecorder:
    geocoding = settings.geocoding
    provider = StaticLocationProvider(geocoding.latitude, geocoding.longitude)
    return SessionRecorder(
        stopwatch,
        repository,
        location_provider=provider,
        geocoder=NominatimGeocoder.from_settings(geocoding) if geocoding.enabled else None,
        uploader=HttpSessionUploader.from_settings(settings.upload),
        geocode_timeout=geocoding.timeout_seconds,
        reference_std_dev=settings.timing.reference_std_dev,
        username=preferences.username,
        device=settings.upload.device,
    )


def _build_live_session(settings: Settings, preferences: UserPreferences) -> Optional[LiveSession]:
    if not settings.live_session.base_url or not preferences.username:
        return None
    publisher = RealtimeDatabasePublisher.from_settings(settings.live_session, preferences.username)
    provider = StaticLocationProvider(settings.geocoding.latitude, settings.geocoding.longitude)
    return LiveSession(
        publisher,
        location_provider=provider,
        publish_interval=settings.live_session.publish_interval_seconds,
    )


async def _run_interactive(settings: Settings, store: KeyValueStore) -> None:
    stopwatch = Stopwatch.from_settings(settings.timing)
    repository = SessionRepository(store)
    preferences = UserPreferences(store)
    recorder = _build_recorder(settings, stopwatch, repository, preferences)
    live = _build_live_session(settings, preferences)

    if live is not None and live.auto_start(preferences, stopwatch):
        click.echo("Live session auto-started")

    click.echo(RUN_HELP)
    try:
        while True:
            try:
                command = (await asyncio.to_thread(input, "> ")).strip().lower()
            except EOFError:
                break

            if command == "q":
                break
            elif command == "s":
                if stopwatch.running:
                    stopwatch.stop()
                    click.echo("Stopped")
                else:
                    _start_run(stopwatch)
                    click.echo("Started")
            elif command == "l":
                lap = stopwatch.lap()
                click.echo(lap.label if lap else "Not running")
            elif command == "x":
                sector = stopwatch.sector()
                click.echo(sector.label if sector else "Not running")
            elif command == "r":
                stopwatch.reset()
                click.echo("Reset")
            elif command == "v":
                result = recorder.save()
                if result is None:
                    click.echo("Nothing to save: no completed laps")
                else:
                    suffix = "" if result.persisted else " (not persisted!)"
                    click.echo(f"Saved session {result.session.id}{suffix}")
            elif command == "u":
                result, upload = await recorder.save_and_upload()
                if result is None:
                    click.echo("Nothing to save: no completed laps")
                else:
                    click.echo(f"Saved session {result.session.id}; {upload.message}")
            elif command == "t":
                _print_times(stopwatch.tick(), stopwatch)
            elif command == "p":
                if live is None:
                    click.echo("Live session unavailable: set a username and LIVE_SESSION_BASE_URL")
                else:
                    live.toggle(stopwatch)
                    click.echo(f"Live session: {live.status}")
            elif command:
                click.echo(RUN_HELP)
    finally:
        stopwatch.stop()
        if live is not None:
            live.close()
        await recorder.wait_for_location()


@cli.command()
@click.option('--verbose', '-v', is_flag=True, help='Verbose output')
@click.pass_obj
def run(settings: Settings, verbose: bool):
    """Run the interactive stopwatch."""
    if verbose:
        settings.logging.level = "DEBUG"
    store = _open_store(settings)
    asyncio.run(_run_interactive(settings, store))


# ----------------------------------------------------------------------
# Saved sessions
# ----------------------------------------------------------------------
@cli.group()
def sessions():
    """Review saved sessions."""
    pass


@sessions.command('list')
@click.pass_obj
def list_sessions(settings: Settings):
    """List saved sessions in save order."""
    repository = SessionRepository(_open_store(settings))
    if not len(repository):
        click.echo("No saved sessions")
        return
    for session in repository:
        click.echo(
            f"{session.id[:8]}  {session.date:%Y-%m-%d %H:%M}  "
            f"{session.location or '-':<16} laps={session.lap_count:<3} "
            f"best={session.fastest_lap} avg={session.average_lap} "
            f"consistency={session.consistency}"
        )


@sessions.command('show')
@click.argument('session_id')
@click.pass_obj
def show_session(settings: Settings, session_id: str):
    """Show laps and sectors of one session."""
    repository = SessionRepository(_open_store(settings))
    session = _resolve(repository, session_id)

    click.echo(f"Session {session.id} ({session.date:%Y-%m-%d %H:%M})")
    click.echo(f"Location: {session.location or 'unknown'}")
    click.echo(f"Fastest {session.fastest_lap} | Slowest {session.slowest_lap} | "
               f"Average {session.average_lap} | Consistency {session.consistency} | "
               f"Total {session.total_time}")

    if session.sector_times and session.sector_times[0]:
        click.echo("Unfinished lap sectors:")
        for label in session.sector_times[0]:
            click.echo(f"    {label}")
    for i, label in enumerate(session.lap_times):
        click.echo(label)
        if len(session.sector_times) > i + 1:
            for sector in session.sector_times[i + 1]:
                click.echo(f"    {sector}")


@sessions.command('delete')
@click.argument('session_id')
@click.pass_obj
def delete_session(settings: Settings, session_id: str):
    """Delete a saved session."""
    repository = SessionRepository(_open_store(settings))
    session = _resolve(repository, session_id)
    if not repository.delete(session.id):
        raise click.ClickException("Session deleted in memory but could not be persisted")
    click.echo(f"✓ Deleted {session.id}")


@sessions.command('compare')
@click.argument('session_ids', nargs=-1, required=True)
@click.pass_obj
def compare(settings: Settings, session_ids: Tuple[str, ...]):
    """Compare two or more sessions."""
    repository = SessionRepository(_open_store(settings))
    selected = [_resolve(repository, sid) for sid in session_ids]
    comparison = compare_sessions(selected)

    for entry in comparison.entries:
        marker = "*" if entry.session_id == comparison.best_fastest_session_id else " "
        click.echo(
            f"{marker} {entry.session_id[:8]}  best={entry.fastest_lap} (+{entry.fastest_delta:.2f}s)  "
            f"avg={entry.average_lap} (+{entry.average_delta:.2f}s)  consistency={entry.consistency}"
        )


@sessions.command('locations')
@click.pass_obj
def locations(settings: Settings):
    """Summarize sessions per location."""
    repository = SessionRepository(_open_store(settings))
    for summary in summarize_by_location(list(repository)):
        click.echo(
            f"{summary.location:<20} sessions={summary.session_count:<3} laps={summary.lap_count:<4} "
            f"best={summary.best_lap} avg={summary.average_lap}"
        )


@sessions.command('export')
@click.option('--output-file', '-o', type=click.Path(), help='Output JSON file')
@click.pass_obj
def export(settings: Settings, output_file: Optional[str]):
    """Export saved sessions as JSON."""
    repository = SessionRepository(_open_store(settings))
    output_data = [session.to_storage() for session in repository]

    if output_file:
        Path(output_file).write_text(json.dumps(output_data, indent=2), encoding='utf-8')
        click.echo(f"✓ {len(output_data)} sessions written to {output_file}")
    else:
        click.echo(json.dumps(output_data, indent=2))


# ----------------------------------------------------------------------
# Preferences and web sessions
# ----------------------------------------------------------------------
@cli.command()
@click.argument('name')
@click.pass_obj
def username(settings: Settings, name: str):
    """Set the username used for live sessions and uploads."""
    preferences = UserPreferences(_open_store(settings))
    preferences.username = name
    click.echo(f"✓ Username set to {preferences.username or '(none)'}")


@cli.command('auto-start')
@click.pass_obj
def auto_start(settings: Settings):
    """Toggle live-session auto start."""
    preferences = UserPreferences(_open_store(settings))
    enabled = preferences.toggle_auto_start()
    click.echo(f"Auto Start: {'ON' if enabled else 'OFF'}")


@cli.group()
def web():
    """Manually entered sessions."""
    pass


@web.command('add')
@click.argument('duration', type=float)
@click.option('--notes', default='', help='Notes for the session')
@click.pass_obj
def web_add(settings: Settings, duration: float, notes: str):
    """Add a web session of DURATION seconds."""
    book = WebSessionBook(_open_store(settings))
    entry = book.add(duration, notes)
    click.echo(f"✓ Added {entry.id}")


@web.command('list')
@click.pass_obj
def web_list(settings: Settings):
    """List web sessions."""
    book = WebSessionBook(_open_store(settings))
    for entry in book.entries:
        flag = "uploaded" if entry.is_uploaded else "pending"
        click.echo(f"{entry.id[:8]}  {entry.duration:.2f} sec  {flag:<8}  {entry.notes}")


@web.command('upload')
@click.argument('entry_id')
@click.pass_obj
def web_upload(settings: Settings, entry_id: str):
    """Upload one web session."""
    book = WebSessionBook(_open_store(settings))
    matches = [e for e in book.entries if e.id.startswith(entry_id)]
    if len(matches) != 1:
        raise click.ClickException(f"No unique web session matches '{entry_id}'")

    result = book.upload(matches[0].id, HttpSessionUploader.from_settings(settings.upload))
    if not result.success:
        raise click.ClickException(result.message)
    click.echo(f"✓ {result.message}")


@web.command('delete')
@click.argument('entry_id')
@click.pass_obj
def web_delete(settings: Settings, entry_id: str):
    """Delete one web session."""
    book = WebSessionBook(_open_store(settings))
    matches = [e for e in book.entries if e.id.startswith(entry_id)]
    if len(matches) != 1:
        raise click.ClickException(f"No unique web session matches '{entry_id}'")

    if not book.delete(matches[0].id):
        raise click.ClickException("Web session deleted in memory but could not be persisted")
    click.echo(f"✓ Deleted {matches[0].id}")


if __name__ == '__main__':
    cli()
