#!/usr/bin/env python3
"""stackup CLI - Main entry point"""

import functools
import os
import re
import sys

from rich.console import Console

import rich_click as click
from click.exceptions import ClickException, MissingParameter, UsageError

# Configure rich-click help output
click.rich_click.USE_RICH_MARKUP = True
click.rich_click.USE_MARKDOWN = False
click.rich_click.SHOW_ARGUMENTS = True
click.rich_click.GROUP_ARGUMENTS_OPTIONS = True
click.rich_click.MAX_WIDTH = 100

click.rich_click.STYLE_COMMAND = "bold cyan"
click.rich_click.STYLE_OPTION = "bold magenta"
click.rich_click.STYLE_SWITCH = "bold green"
click.rich_click.STYLE_ARGUMENT = "bold yellow"
click.rich_click.STYLE_HEADER_TEXT = "bold cyan"
click.rich_click.STYLE_USAGE = "bold yellow"
click.rich_click.STYLE_USAGE_COMMAND = "bold cyan"
click.rich_click.STYLE_HELPTEXT_FIRST_LINE = "bold white"
click.rich_click.STYLE_HELPTEXT = ""
click.rich_click.STYLE_METAVAR = "bold yellow"
click.rich_click.STYLE_REQUIRED_SHORT = "bold red"
click.rich_click.STYLE_REQUIRED_LONG = "bold red"
click.rich_click.STYLE_OPTION_DEFAULT = "dim cyan"
click.rich_click.STYLE_OPTIONS_PANEL_BORDER = "cyan"
click.rich_click.STYLE_COMMANDS_PANEL_BORDER = "cyan"
click.rich_click.ALIGN_OPTIONS_PANEL = "left"
click.rich_click.ERRORS_EPILOGUE = ""

from stackup import __version__
from stackup.commands import doctor
from stackup.commands.wordpress import (
    wordpress_up,
    wordpress_down,
    wordpress_status,
    wordpress_verify,
)
from stackup.commands.compose import compose_generate, compose_up, compose_down
from stackup.commands.nginx import nginx_scaffold, nginx_apply
from stackup.commands.vm import vm_init, vm_up, vm_halt, vm_destroy, vm_status

console = Console()

BANNER = """
[bold cyan]╔═══════════════════════════════════════════════════════════╗[/bold cyan]
[bold cyan]║[/bold cyan]  [bold white]stackup[/bold white] - WordPress, nginx & VM dev environments       [bold cyan]║[/bold cyan]
[bold cyan]╚═══════════════════════════════════════════════════════════╝[/bold cyan]
"""


def handle_cli_errors(func):
    """Decorator to handle CLI errors gracefully."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (MissingParameter, UsageError) as e:
            console.print(f"\n[bold red]✗ Error:[/bold red] {e.format_message()}\n")
            if e.ctx and e.ctx.command:
                console.print(
                    f"[dim]Run[/dim] [cyan]stackup {e.ctx.command.name} --help[/cyan] [dim]for usage information[/dim]\n"
                )
            sys.exit(2)
        except ClickException as e:
            e.show()
            sys.exit(e.exit_code)
        except KeyboardInterrupt:
            console.print("\n\n[yellow]⚠️  Operation cancelled by user[/yellow]")
            sys.exit(130)
        except TypeError as e:
            match = re.search(r"missing \d+ required positional argument: '(\w+)'", str(e))
            if not match:
                raise
            console.print(
                f"\n[bold red]✗ Error:[/bold red] Missing required argument: [yellow]{match.group(1)}[/yellow]\n"
            )
            sys.exit(2)
        except Exception as e:
            console.print(f"\n[bold red]✗ Unexpected error:[/bold red] {e}\n")
            if os.environ.get("DEBUG") or os.environ.get("VERBOSE"):
                import traceback

                console.print("[dim]Traceback:[/dim]")
                traceback.print_exc()
            sys.exit(1)

    return wrapper


@click.group(cls=click.RichGroup, invoke_without_command=True)
@click.version_option(version=__version__)
@click.pass_context
def cli(ctx: click.Context) -> None:
    """
    stackup - Bootstrap WordPress, nginx and VM development environments.

    \b
    WordPress on Docker:
      stackup wordpress:up          # Provision mysql + wordpress + nginx (TLS)
      stackup wordpress:verify      # Acceptance checks
      stackup wordpress:down --purge

    \b
    Docker Compose:
      stackup compose:generate      # docker-compose.yml + .env + nginx config
      stackup compose:up

    \b
    Ansible & Vagrant:
      stackup nginx:scaffold -d example.com
      stackup nginx:apply --tags configure_nginx
      stackup vm:init --playbook ansible/nginx-scenario/site.yml
      stackup vm:up
    """
    if ctx.invoked_subcommand is None:
        console.print(BANNER)
        console.print("[yellow]Run 'stackup --help' for usage[/yellow]\n")


# WordPress stack
cli.add_command(wordpress_up)
cli.add_command(wordpress_down)
cli.add_command(wordpress_status)
cli.add_command(wordpress_verify)
# Compose
cli.add_command(compose_generate)
cli.add_command(compose_up)
cli.add_command(compose_down)
# Ansible nginx role
cli.add_command(nginx_scaffold)
cli.add_command(nginx_apply)
# Vagrant
cli.add_command(vm_init)
cli.add_command(vm_up)
cli.add_command(vm_halt)
cli.add_command(vm_destroy)
cli.add_command(vm_status)
# Diagnostics
cli.add_command(doctor.doctor)


@handle_cli_errors
def main():
    """Main entry point with error handling."""
    cli()


if __name__ == "__main__":
    main()
