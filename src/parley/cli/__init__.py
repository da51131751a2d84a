"""Parley CLI -- terminal chat over a configured provider and collaborators.

This module is NEVER imported from parley/__init__.py.
It is only loaded via the ``parley`` entry point defined in pyproject.toml.
"""

from __future__ import annotations

import logging

import click
from dotenv import load_dotenv

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


@click.group()
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    envvar="PARLEY_LOG_LEVEL",
    show_default=True,
    help="Logging verbosity.",
)
@click.option(
    "--env-file",
    type=click.Path(dir_okay=False),
    default=None,
    help="Load environment variables from this file (default: ./.env).",
)
@click.pass_context
def cli(ctx: click.Context, log_level: str, env_file: str | None) -> None:
    """Parley: tool-calling chat with interchangeable LLM backends."""
    load_dotenv(env_file)
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)


# Register subcommands after cli group is defined
from parley.cli.commands.chat import chat  # noqa: E402

cli.add_command(chat)
