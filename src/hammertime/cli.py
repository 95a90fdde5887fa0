"""
Command-line entry point for Hammertime.

Commands:
    hammertime list-to-stop          # ASGs the next stop run would stop
    hammertime list-to-start         # ASGs the next start run would start
    hammertime stop                  # tag and spin down stoppable ASGs
    hammertime start                 # spin up and untag stopped ASGs
    hammertime tag NAME [NAME...]    # record size and mark stopped, no resize
    hammertime untag NAME [NAME...]  # remove hammertime state tags

Global options --dry-run, --config and --log-level apply to every command.
"""

import logging

import click

from . import __version__
from .asgs import AsgManager
from .config import configure_logging, load_settings
from .handlers.start import start_hammertime
from .handlers.stop import stop_hammertime
from .models import AutoScalingGroup
from .tags import operating_timezone

logger = logging.getLogger(__name__)


@click.group()
@click.version_option(__version__, prog_name="hammertime")
@click.option("--dry-run", is_flag=True, default=False, help="Log changes without making them.")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="YAML settings file.",
)
@click.option("--log-level", default=None, help="DEBUG, INFO, WARNING or ERROR.")
@click.pass_context
def cli(ctx: click.Context, dry_run: bool, config_path: str | None, log_level: str | None):
    """Pause and resume Auto Scaling Groups by tag."""
    settings = load_settings(config_path)

    updates = {}
    if dry_run:
        updates["dry_run"] = True
    if log_level:
        updates["log_level"] = log_level
    if updates:
        settings = settings.model_validate({**settings.model_dump(), **updates})

    configure_logging(settings.log_level)

    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings
    ctx.obj["manager"] = AsgManager.from_settings(settings)


def _echo_groups(asgs: list[AutoScalingGroup], default_timezone: int) -> None:
    if not asgs:
        click.echo("No matching auto scaling groups.")
        return

    for asg in asgs:
        try:
            timezone = f"{operating_timezone(asg.tags, default=default_timezone):+d}"
        except ValueError as e:
            logger.warning(f"Unreadable timezone tag on {asg.name}: {e}")
            timezone = "?"
        click.echo(f"{asg.name}\tsize={asg.size.to_tag_value()}\ttimezone={timezone}")


def _find_groups(manager: AsgManager, names: tuple[str, ...]) -> list[AutoScalingGroup]:
    asgs = manager.get_all_asgs(names=list(names))
    missing = set(names) - {asg.name for asg in asgs}
    if missing:
        raise click.ClickException(f"Auto scaling group(s) not found: {', '.join(sorted(missing))}")
    return asgs


@cli.command("list-to-stop")
@click.pass_context
def list_to_stop(ctx: click.Context):
    """List ASGs the next stop run would stop."""
    manager: AsgManager = ctx.obj["manager"]
    _echo_groups(manager.list_asgs_to_stop(), ctx.obj["settings"].default_timezone)


@cli.command("list-to-start")
@click.pass_context
def list_to_start(ctx: click.Context):
    """List ASGs the next start run would start."""
    manager: AsgManager = ctx.obj["manager"]
    _echo_groups(manager.list_asgs_to_start(), ctx.obj["settings"].default_timezone)


@cli.command()
@click.pass_context
def stop(ctx: click.Context):
    """Tag and spin down every stoppable ASG."""
    result = stop_hammertime(ctx.obj["manager"])
    prefix = "DRY-RUN: " if result.dry_run else ""
    click.echo(f"{prefix}Stopped {len(result.groups)} ASG(s)")
    for name in result.groups:
        click.echo(f"  {name}")


@cli.command()
@click.pass_context
def start(ctx: click.Context):
    """Spin up and untag every stopped ASG."""
    result = start_hammertime(ctx.obj["manager"])
    prefix = "DRY-RUN: " if result.dry_run else ""
    click.echo(f"{prefix}Started {len(result.groups)} ASG(s)")
    for name in result.groups:
        click.echo(f"  {name}")


@cli.command()
@click.argument("names", nargs=-1, required=True)
@click.pass_context
def tag(ctx: click.Context, names: tuple[str, ...]):
    """Record current size and mark ASGs as stopped."""
    manager: AsgManager = ctx.obj["manager"]
    for asg in manager.tag_asgs(_find_groups(manager, names)):
        click.echo(f"Tagged {asg.name}")


@cli.command()
@click.argument("names", nargs=-1, required=True)
@click.pass_context
def untag(ctx: click.Context, names: tuple[str, ...]):
    """Remove hammertime state tags from ASGs."""
    manager: AsgManager = ctx.obj["manager"]
    for asg in manager.untag_asgs(_find_groups(manager, names)):
        click.echo(f"Untagged {asg.name}")


if __name__ == "__main__":
    cli()
