"""
devbox — CLI entrypoint.

Usage:
    devbox
    devbox --dry-run
    devbox --config ~/my-profile.yml --verbose
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from devbox import __version__
from devbox.core.observability.logging_config import setup_from_flags


@click.command()
@click.version_option(version=__version__, prog_name="devbox")
@click.option("--verbose", "-v", is_flag=True, help="Show command diagnostics, even for silent probes.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False, dir_okay=False),
    default=None,
    help="Path to a profile YAML (default: $DEVBOX_CONFIG, ~/.config/devbox/profile.yml, bundled).",
)
@click.option("--dry-run", is_flag=True, help="Print what would run without changing anything.")
@click.option("--no-input", is_flag=True, help="Never wait for confirmation (unattended runs).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Print the run report as JSON.")
def cli(
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
    dry_run: bool,
    no_input: bool,
    as_json: bool,
) -> None:
    """Provision this workstation: packages, toolchains, shell and dotfiles."""
    setup_from_flags(verbose, quiet, debug)

    from devbox.core.config.loader import ConfigError
    from devbox.core.services.credentials import CredentialError
    from devbox.core.use_cases.provision import run_provision
    from devbox.ui.cli.console import Console

    interactive = not no_input and sys.stdin.isatty()

    try:
        result = run_provision(
            config_path=Path(config_path) if config_path else None,
            verbose=verbose,
            dry_run=dry_run,
            interactive=interactive,
            console=Console(quiet=quiet),
        )
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)
    except CredentialError as e:
        click.secho(f"❌ {e}; nothing was changed.", fg="red", err=True)
        sys.exit(1)
    except KeyboardInterrupt:
        click.secho("\nInterrupted.", fg="yellow", err=True)
        sys.exit(130)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))

    sys.exit(result.exit_code)


if __name__ == "__main__":
    cli()
