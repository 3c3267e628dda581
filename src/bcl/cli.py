"""Root CLI command for bcl: global long options plus free-form tokens.

Only long options exist so that ``-tag`` tokens reach the classifier
untouched; unknown ``-x`` / ``--x`` tokens are passed through as well.
"""

from __future__ import annotations

import click

from bcl import __version__
from bcl.commands._context import AppContext
from bcl.config.settings import BclSettings

EXAMPLES = """\
\b
Examples:
  bcl add cat:G Gravel            add a category with code G
  bcl add bike:G Cross Check      add the next bike of category G
  bcl add ride G:1 42.5 +commute  log a ride with a tag
  bcl add lub G:1                 log a chain lubrication
  bcl add buy Chain 450 G:1       log a purchase linked to bike G:1
  bcl ls ride gt:2024-05- +road   rides after 1 May 2024 tagged road
  bcl _G                          list the bikes of category G
  bcl 2 del ride month:prev       delete the 2nd ride of last month
  bcl mod ride id:17 45.0 -road   change a ride by its permanent id
"""


@click.command(
    context_settings={
        "ignore_unknown_options": True,
        "help_option_names": ["--help"],
    },
    epilog=EXAMPLES,
)
@click.version_option(__version__, "--version", prog_name="bcl")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("--quiet", is_flag=True, help="Minimal output (ids only for listings).")
@click.option("--verbose", is_flag=True, help="Detailed output with debug logging.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("--no-interact", is_flag=True, help="Non-interactive mode (no prompts).")
@click.option("--config", "config_path", default=None, help="Override config file path.")
@click.option("--db", "db_path", default=None, help="Override database file path.")
@click.argument("tokens", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    no_interact: bool,
    config_path: str | None,
    db_path: str | None,
    tokens: tuple[str, ...],
) -> None:
    """bcl — bicycle log: bikes, rides, purchases, and chain lubrication."""
    if not tokens:
        click.echo(ctx.get_help())
        return

    settings = BclSettings.from_cli(
        config_path=config_path,
        db_path=db_path,
        json_output=json_output,
        quiet=quiet,
        verbose=verbose,
        log_json=log_json,
        no_interact=no_interact,
    )
    app = AppContext(settings)
    ctx.obj = app
    ctx.call_on_close(app.close)

    from bcl.services.dispatch import CommandService

    confirm = None if settings.no_interact else app.confirm
    app.emit(CommandService(app.store).run(list(tokens), confirm=confirm))
