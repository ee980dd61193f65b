"""CLI entrypoint: Typer app definition, logging setup, and command registration"""

import logging
from typing import Annotated, Optional

import typer

from sophub.cli.commands import (
    _settings, archive_cmd, delete_cmd, export_cmd, import_cmd, init_cmd, list_cmd, show_cmd,
)


app = typer.Typer(name="sophub", no_args_is_help=True, help="SOP import/export and library management")


@app.callback()
def main(
    log_level: Annotated[Optional[str], typer.Option("--log-level", help="DEBUG, INFO, WARNING, ...")] = None,
    ):
    """Configure logging once per invocation from settings."""
    settings = _settings(overrides={"log_level": log_level})
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


app.command(name="init")(init_cmd)
app.command(name="import")(import_cmd)
app.command(name="export")(export_cmd)
app.command(name="list")(list_cmd)
app.command(name="show")(show_cmd)
app.command(name="delete")(delete_cmd)
app.command(name="archive")(archive_cmd)
