"""CLI command implementations"""

from pathlib import Path
from typing import Annotated, Optional

import typer
from sqlmodel import Session

from sophub.config import Settings, load_config
from sophub.core.export import sop_to_yaml
from sophub.core.models import StepType
from sophub.core.pipeline import run_export, run_import
from sophub.crud.database import init_db, make_engine, reset_db
from sophub.crud.sops import (
    archive_sop,
    delete_sop,
    get_sop,
    list_sops,
    tag_names,
    to_exportable,
)
from sophub.errors import ImportFailure, SOPHubError


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _settings(overrides: dict = None) -> Settings:
    """Load config with standard CLI error handling."""
    try:
        return load_config(overrides=overrides)
    except ValueError as e:
        _fail(str(e))


def _engine(settings: Settings):
    engine = make_engine(settings.db_url)
    init_db(engine)
    return engine


def init_cmd(
    reset: Annotated[bool, typer.Option("--reset", help="Drop and recreate all tables")] = False,
    ):
    """Initialize database schema. Use --reset to clear existing data."""
    settings = _settings()
    engine = make_engine(settings.db_url)
    if reset:
        reset_db(engine)
        typer.echo("Existing data cleared.")
    else:
        init_db(engine)
    typer.echo(f"Database initialized at: {settings.db_url}")


def import_cmd(
    path: Annotated[str, typer.Argument(help="SOP file (.txt, .md, .yaml, .yml) or directory")],
    author: Annotated[Optional[str], typer.Option("--author", help="created_by attribution")] = None,
    replace: Annotated[Optional[str], typer.Option("--replace", help="Override this SOP id with the file's content")] = None,
    ):
    """Parse SOP files and store them."""
    settings = _settings(overrides={"author": author})
    engine = _engine(settings)

    try:
        results = run_import(engine, path, created_by=settings.author, sop_id=replace)
    except ImportFailure as e:
        _fail(str(e), e.cause)
    except SOPHubError as e:
        _fail(str(e))

    if not results:
        typer.echo("No .txt/.md/.yaml/.yml files found.")
        raise typer.Exit(1)
    for r in results:
        typer.echo(f"  {r.status}: {r.path} -> {r.sop_id} ({r.title!r}, {r.steps} steps)")
    typer.echo(f"Imported {len(results)} SOP(s)")


def export_cmd(
    sop_id: Annotated[Optional[str], typer.Argument(help="SOP id to export")] = None,
    all_sops: Annotated[bool, typer.Option("--all", help="Export every non-archived SOP")] = False,
    tag: Annotated[Optional[str], typer.Option("--tag", help="Export SOPs carrying this tag")] = None,
    out: Annotated[Optional[str], typer.Option("--out-dir", help="Output directory")] = None,
    stdout: Annotated[bool, typer.Option("--stdout", help="Print a single SOP's YAML instead of writing a file")] = False,
    ):
    """Write SOPs as YAML files (or print one to stdout)."""
    settings = _settings(overrides={"output_dir": out})
    engine = _engine(settings)
    output_dir = Path(settings.output_dir)

    with Session(engine) as session:
        if sop_id:
            sop = get_sop(session, sop_id)
            if sop is None:
                _fail(f"SOP {sop_id} not found")
            sops = [sop]
        elif all_sops or tag:
            sops = list_sops(session, tag=tag)
        else:
            _fail("Pass an SOP id, --tag, or --all")

        if not sops:
            typer.echo("No SOPs found.")
            raise typer.Exit(1)

        if stdout:
            if len(sops) != 1:
                _fail("--stdout needs exactly one SOP")
            typer.echo(sop_to_yaml(to_exportable(session, sops[0])), nl=False)
            return

        try:
            results = run_export(session, sops, output_dir)
        except OSError as e:
            _fail("Export failed", e)

    for title, path in results:
        typer.echo(f"  {title} -> {path}")
    typer.echo(f"Exported {len(results)} SOP(s) to {output_dir}/")


def list_cmd(
    search: Annotated[Optional[str], typer.Option("--search", help="Match title or objectives")] = None,
    tag: Annotated[Optional[str], typer.Option("--tag", help="Only SOPs carrying this tag")] = None,
    archived: Annotated[bool, typer.Option("--archived", help="Include archived SOPs")] = False,
    ):
    """List stored SOPs, newest first."""
    settings = _settings()
    engine = _engine(settings)
    with Session(engine) as session:
        sops = list_sops(session, search=search, tag=tag, include_archived=archived)
        if not sops:
            typer.echo("No SOPs found.")
            raise typer.Exit(1)
        for sop in sops:
            tags = ", ".join(tag_names(session, sop))
            flag = " [archived]" if sop.is_archived else ""
            typer.echo(f"{sop.id}  {sop.title}{flag}" + (f"  ({tags})" if tags else ""))


def show_cmd(
    sop_id: Annotated[str, typer.Argument(help="SOP id")],
    ):
    """Print an SOP's header and numbered steps."""
    settings = _settings()
    engine = _engine(settings)
    with Session(engine) as session:
        sop = get_sop(session, sop_id)
        if sop is None:
            _fail(f"SOP {sop_id} not found")
        doc = to_exportable(session, sop)

    typer.echo(f"SOP: {doc.title}")
    if doc.tags:
        typer.echo(f"Tags: {', '.join(doc.tags)}")
    for heading, text in (("Objectives and Outcomes", doc.objectives),
                          ("Logins and Prerequisites", doc.logins_prerequisites)):
        if text:
            typer.echo(f"\n{heading}\n{text}")
    for step in doc.steps:
        marker = " [decision]" if step.type is StepType.decision else ""
        typer.echo(f"\nStep {step.order + 1} — {step.title}{marker}")
        if step.content:
            typer.echo(step.content)


def delete_cmd(
    sop_id: Annotated[str, typer.Argument(help="SOP id")],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip the confirmation prompt")] = False,
    ):
    """Delete an SOP and its tag associations."""
    settings = _settings()
    engine = _engine(settings)
    if not yes:
        typer.confirm(f"Are you sure you want to delete SOP {sop_id}?", abort=True)
    with Session(engine) as session:
        try:
            delete_sop(session, sop_id)
        except SOPHubError as e:
            _fail(str(e))
        session.commit()
    typer.echo(f"Deleted {sop_id}")


def archive_cmd(
    sop_id: Annotated[str, typer.Argument(help="SOP id")],
    restore: Annotated[bool, typer.Option("--restore", help="Un-archive instead")] = False,
    ):
    """Hide an SOP from listings and bulk exports (or restore it)."""
    settings = _settings()
    engine = _engine(settings)
    with Session(engine) as session:
        try:
            archive_sop(session, sop_id, archived=not restore)
        except SOPHubError as e:
            _fail(str(e))
        session.commit()
    typer.echo(f"{'Restored' if restore else 'Archived'} {sop_id}")
