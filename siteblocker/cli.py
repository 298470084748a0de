import logging
import sys

import click

from siteblocker import __version__
from siteblocker.config import HOSTS_FILE_ENV, CONFIG_ENV, load_config
from siteblocker.editor import EditorError, edit_sites
from siteblocker.hosts import HostsError, HostsFile, HostsPermissionDenied
from siteblocker.log import setup_logging
from siteblocker.sites import (
    InvalidSiteError,
    SiteSourceError,
    collect_sites,
    read_stream,
    validate_sites,
)

logger = logging.getLogger(__name__)


class Session:
    def __init__(self, config, hosts_file):
        self.config = config
        self.hosts_file = hosts_file

    def load(self) -> HostsFile:
        try:
            return HostsFile.load(self.hosts_file)
        except HostsError as e:
            raise click.ClickException(str(e))


def apply(session: Session, hosts: HostsFile, dry_run: bool, backup: bool):
    """Persists the document, or shows the pending diff on a dry run."""
    if not hosts.changed:
        logger.info("nothing to change in %s", hosts.path)
        return
    if dry_run:
        click.echo(hosts.diff())
        return

    try:
        if backup or session.config.backup:
            hosts.backup()
        hosts.write(atomic=session.config.atomic_write)
    except HostsPermissionDenied as e:
        raise click.ClickException(f"{e}\nRetry with elevated privileges, e.g. 'sudo site-blocker ...'")
    except HostsError as e:
        raise click.ClickException(str(e))


def gather_sites(sites, sources):
    try:
        if sites or sources:
            collected = collect_sites(sites, sources)
        else:
            collected = read_stream(click.get_text_stream("stdin"))
        return validate_sites(collected)
    except (InvalidSiteError, SiteSourceError) as e:
        raise click.ClickException(str(e))


def mutation_options(func):
    func = click.option("--backup", is_flag=True, help="Back up the hosts file before writing")(func)
    func = click.option("--dry-run", is_flag=True, help="Show the changes without writing them")(func)
    return func


def site_arguments(func):
    func = click.option(
        "-f", "--file", "sources", multiple=True, metavar="FILE",
        help="Read sites from a file or an http(s) URL, one per line",
    )(func)
    func = click.argument("sites", nargs=-1)(func)
    return func


@click.group()
@click.option("--hosts-file", envvar=HOSTS_FILE_ENV, metavar="FILE", help="Set a custom hosts file path")
@click.option("--config", "config_path", envvar=CONFIG_ENV, metavar="FILE", help="Path to a JSON config file")
@click.option("--no-color", is_flag=True, help="Disable colored output")
@click.option("-q", "--quiet", is_flag=True, help="Disable log output")
@click.option("-v", "--verbose", count=True, help="Set the log level. Repeat for more logs")
@click.version_option(__version__, prog_name="site-blocker")
@click.pass_context
def cli(ctx, hosts_file, config_path, no_color, quiet, verbose):
    """Block sites by redirecting them to localhost in the hosts file."""
    setup_logging(verbosity=verbose, quiet=quiet, color=not no_color and sys.stderr.isatty())
    if no_color:
        ctx.color = False
    config = load_config(config_path)
    ctx.obj = Session(config, hosts_file or config.hosts_file)
    logger.debug("using hosts file %s", ctx.obj.hosts_file)


@click.command()
@click.pass_obj
def get(session):
    """Get blocked sites"""
    for site in session.load().blocked_sites():
        click.echo(site)


@click.command()
@site_arguments
@mutation_options
@click.pass_obj
def add(session, sites, sources, dry_run, backup):
    """Add blocked sites"""
    sites = gather_sites(sites, sources)
    if not sites:
        return
    hosts = session.load()
    hosts.add(sites)
    apply(session, hosts, dry_run, backup)


@click.command()
@site_arguments
@mutation_options
@click.pass_obj
def delete(session, sites, sources, dry_run, backup):
    """Remove blocked sites"""
    sites = gather_sites(sites, sources)
    if not sites:
        return
    hosts = session.load()
    hosts.remove(sites)
    apply(session, hosts, dry_run, backup)


@click.command()
@mutation_options
@click.pass_obj
def edit(session, dry_run, backup):
    """Edit blocked sites through $EDITOR"""
    hosts = session.load()
    try:
        sites = validate_sites(edit_sites(hosts.blocked_sites(), session.config.resolve_editor()))
    except (EditorError, InvalidSiteError) as e:
        raise click.ClickException(str(e))
    if not sites:
        logger.info("no sites given, leaving %s alone", hosts.path)
        return
    hosts.set(sites)
    apply(session, hosts, dry_run, backup)


@click.command()
@click.option("--backup", is_flag=True, help="Back up the hosts file before saving")
@click.pass_obj
def ui(session, backup):
    """Manage blocked sites in an interactive terminal UI"""
    from siteblocker.ui import SiteBlockerApp

    app = SiteBlockerApp(session.load(), backup=backup or session.config.backup, atomic=session.config.atomic_write)
    app.run()


cli.add_command(get)
cli.add_command(get, name="ls")
cli.add_command(add)
cli.add_command(delete)
cli.add_command(delete, name="rm")
cli.add_command(edit)
cli.add_command(ui)


def main():
    cli()
