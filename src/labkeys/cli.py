"""labkeys command line interface.

Commands:
    build      Build the lab authorized_keys file from the host's public keys
    sources    Show which key files would be used
    config     Show or change persistent settings
"""

import logging
import sys

import click
from rich.console import Console
from rich.table import Table

from labkeys import __version__
from labkeys.config_manager import ConfigError, ConfigManager, LabKeysConfig
from labkeys.lab_paths import LabPathError, LabPaths
from labkeys.modules.authorized_keys import (
    AuthorizedKeysError,
    FileModeError,
    KeyAggregator,
)
from labkeys.modules.path_utils import resolve_path

logger = logging.getLogger(__name__)

console = Console()


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, format="%(message)s")


def _load_config(config: str | None) -> LabKeysConfig:
    try:
        return ConfigManager.load_config(config)
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def _make_aggregator(
    cfg: LabKeysConfig,
    keys_glob: str | None,
    authorized_keys: str | None,
    no_authorized_keys: bool,
    prune_stale: bool,
) -> KeyAggregator:
    authorized_keys_path = None
    if not no_authorized_keys:
        authorized_keys_path = authorized_keys or cfg.authorized_keys_path
    return KeyAggregator(
        pub_keys_glob=keys_glob or cfg.pub_keys_glob,
        authorized_keys_path=authorized_keys_path,
        prune_stale=prune_stale or cfg.prune_stale,
    )


@click.group(context_settings={"help_option_names": ["--help", "-h"]})
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Show debug output")
def main(verbose: bool) -> None:
    """labkeys - authorized_keys aggregation for lab nodes.

    Collects ~/.ssh/*.pub and ~/.ssh/authorized_keys into one file that
    lab nodes are provisioned with.

    \b
    CONFIGURATION:
        Config file: ~/.labkeys/config.toml
        Keys: pub_keys_glob, authorized_keys_path, lab_dir, prune_stale
    """
    _setup_logging(verbose)


@main.command(name="build")
@click.option("--lab-dir", help="Lab directory (output: <lab-dir>/authorized_keys)", type=str)
@click.option("--output", "-o", help="Explicit output file (overrides --lab-dir)", type=str)
@click.option("--keys-glob", help="Glob matching public key files", type=str)
@click.option("--authorized-keys", help="Existing authorized_keys file to include", type=str)
@click.option(
    "--no-authorized-keys", is_flag=True, help="Do not include the host authorized_keys file"
)
@click.option("--prune-stale", is_flag=True, help="Remove the output file if no keys are found")
@click.option("--config", help="Config file path", type=click.Path())
def build(
    lab_dir: str | None,
    output: str | None,
    keys_glob: str | None,
    authorized_keys: str | None,
    no_authorized_keys: bool,
    prune_stale: bool,
    config: str | None,
) -> None:
    """Build the lab authorized_keys file.

    \b
    Examples:
        labkeys build --lab-dir ./clab-demo
        labkeys build -o /tmp/authorized_keys --keys-glob '~/keys/*.pub'
    """
    cfg = _load_config(config)

    try:
        if output:
            destination = resolve_path(output)
        else:
            target_dir = lab_dir or cfg.lab_dir
            if not target_dir:
                click.echo("Error: No lab directory specified (use --lab-dir or --output).", err=True)
                sys.exit(1)
            paths = LabPaths(target_dir)
            paths.ensure_lab_dir()
            destination = paths.authorized_keys_filename()

        aggregator = _make_aggregator(
            cfg, keys_glob, authorized_keys, no_authorized_keys, prune_stale
        )
        logger.debug(f"Building authorized_keys file: {destination}")
        result = aggregator.build(destination)

    except FileModeError as e:
        click.echo(f"Error: {e}", err=True)
        click.echo("The file content was written but its permissions are wrong.", err=True)
        sys.exit(1)
    except (AuthorizedKeysError, LabPathError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if result.written:
        click.echo(
            f"Wrote {len(result.sources)} key source(s) "
            f"({result.bytes_written} bytes) to {result.destination}"
        )
    elif result.removed_stale:
        click.echo(f"No public keys found. Removed stale {result.destination}")
    else:
        click.echo("No public keys found. Nothing written.")


@main.command(name="sources")
@click.option("--keys-glob", help="Glob matching public key files", type=str)
@click.option("--authorized-keys", help="Existing authorized_keys file to include", type=str)
@click.option(
    "--no-authorized-keys", is_flag=True, help="Do not include the host authorized_keys file"
)
@click.option("--config", help="Config file path", type=click.Path())
def sources(
    keys_glob: str | None,
    authorized_keys: str | None,
    no_authorized_keys: bool,
    config: str | None,
) -> None:
    """List the key files a build would use, in order."""
    cfg = _load_config(config)
    aggregator = _make_aggregator(cfg, keys_glob, authorized_keys, no_authorized_keys, False)

    try:
        found = aggregator.discover_sources()
    except AuthorizedKeysError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if not found:
        click.echo("No public keys found.")
        return

    table = Table(title="Key Sources", show_header=True, header_style="bold")
    table.add_column("#", justify="right")
    table.add_column("Path", style="cyan")
    table.add_column("Kind")

    for index, source in enumerate(found, start=1):
        table.add_row(str(index), str(source.path), source.kind)

    console.print(table)


@main.group(name="config")
def config_group() -> None:
    """Show or change labkeys settings."""
    pass


@config_group.command(name="show")
@click.option("--config", help="Config file path", type=click.Path())
def config_show(config: str | None) -> None:
    """Show the effective configuration."""
    cfg = _load_config(config)
    for key, value in cfg.to_dict().items():
        click.echo(f"{key} = {value}")


@config_group.command(name="set")
@click.argument("key")
@click.argument("value")
@click.option("--config", help="Config file path", type=click.Path())
def config_set(key: str, value: str, config: str | None) -> None:
    """Set a configuration value.

    \b
    Examples:
        labkeys config set lab_dir ~/labs/demo
        labkeys config set prune_stale true
    """
    try:
        ConfigManager.update_config(config, **{key: value})
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(f"Set {key} = {value}")


if __name__ == "__main__":
    main()
