"""DNS commands -- long names and the services published under them.

Example::

    safenet dns create example
    safenet dns register example www /website
    safenet dns services example
"""

from __future__ import annotations

import typer

from safenet.commands.common import check, open_client
from safenet.output import OutputFormat, format_response, get_output, info, success


dns_app = typer.Typer(no_args_is_help=True)


@dns_app.command("list")
def dns_list(ctx: typer.Context) -> None:
    """List the long names owned by this account."""
    with open_client(ctx) as client:
        names = check(client.dns.list_long_names())
    _print_names(names, "Long Name", "No long names registered.")


@dns_app.command("services")
def dns_services(
    ctx: typer.Context,
    long_name: str = typer.Argument(help="Long name."),
) -> None:
    """List the services registered under LONG_NAME."""
    with open_client(ctx) as client:
        services = check(client.dns.list_services(long_name))
    _print_names(services, "Service", f"No services under {long_name}.")


@dns_app.command("create")
def dns_create(
    ctx: typer.Context,
    long_name: str = typer.Argument(help="Long name to register."),
) -> None:
    """Register a new long name."""
    with open_client(ctx) as client:
        check(client.dns.create_long_name(long_name))
    success(f"Registered {long_name}")


@dns_app.command("register")
def dns_register(
    ctx: typer.Context,
    long_name: str = typer.Argument(help="Long name."),
    service: str = typer.Argument(help="Service name, e.g. www."),
    home_dir: str = typer.Argument(help="Drive directory the service serves."),
    shared: bool = typer.Option(False, "--shared", help="HOME_DIR is in the shared drive."),
) -> None:
    """Publish HOME_DIR as SERVICE.LONG_NAME."""
    with open_client(ctx) as client:
        check(client.dns.register_service(long_name, service, home_dir, is_path_shared=shared))
    success(f"Published {home_dir} as {service}.{long_name}")


def _print_names(names: object, header: str, empty: str) -> None:
    output = get_output()
    if output.format == OutputFormat.JSON or not isinstance(names, list):
        format_response(names)
        return
    if not names:
        info(empty)
        return
    output.print_table([header], [[str(n)] for n in names])
