"""Config commands -- manage connection profiles.

A profile (:class:`~safenet.models.ClientConfig`) names an application
identity, the gateway it talks to, the protocol variant and where its
session is stored.

Example::

    safenet config init photos --app-name "Photo Sync" --app-id com.example.photos \\
        --permission SAFE_DRIVE_ACCESS --default
    safenet config list
    safenet config show photos --json
"""

from __future__ import annotations

from typing import Optional

import typer

from safenet.commands.common import context_options
from safenet.exit_codes import EXIT_INVALID_USAGE
from safenet.output import error, format_response, get_output, info, success, suggest


config_app = typer.Typer(no_args_is_help=True)


@config_app.command("init")
def config_init(
    ctx: typer.Context,
    name: str = typer.Argument(help="Profile name."),
    app_name: str = typer.Option("SafeNet Python App", "--app-name", help="Application name."),
    app_id: str = typer.Option("org.thevendor.demo", "--app-id", help="Application id."),
    vendor: str = typer.Option("Vendor's Name", "--vendor", help="Application vendor."),
    app_version: str = typer.Option("0.0.1", "--app-version", help="Application version."),
    permissions: Optional[list[str]] = typer.Option(
        None, "--permission", help="Permission to request (repeatable)."
    ),
    base_url: Optional[str] = typer.Option(None, "--base-url", help="Gateway root URL."),
    api_version: Optional[str] = typer.Option(None, "--api-version", help="API version segment."),
    protocol: str = typer.Option("encrypted", "--protocol", help="encrypted or plain."),
    conf_file: Optional[str] = typer.Option(None, "--conf-file", help="Credential file path."),
    make_default: bool = typer.Option(False, "--default", help="Make this the default profile."),
) -> None:
    """Create (or with ``--force`` overwrite) a profile."""
    from safenet.config import load_global_config, profile_exists, save_global_config, save_profile
    from safenet.models import DEFAULT_BASE_URL, AppIdentity, ClientConfig, ProtocolVariant

    try:
        variant = ProtocolVariant(protocol.lower())
    except ValueError:
        error(f"Unknown protocol '{protocol}'. Choose from: encrypted, plain")
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None

    if profile_exists(name) and not context_options(ctx).get("force", False):
        error(f'Profile "{name}" already exists.')
        suggest("Overwrite it with --force.")
        raise typer.Exit(code=EXIT_INVALID_USAGE)

    profile = ClientConfig(
        name=name,
        app=AppIdentity(
            name=app_name,
            id=app_id,
            vendor=vendor,
            version=app_version,
            permissions=permissions or [],
        ),
        base_url=base_url or DEFAULT_BASE_URL,
        api_version=api_version,
        protocol=variant,
        conf_file=conf_file,
    )
    save_profile(profile)

    if make_default:
        global_cfg = load_global_config()
        global_cfg.default_profile = name
        save_global_config(global_cfg)

    success(f'Profile "{name}" saved.')
    suggest(f"Authorize with: safenet -p {name} auth login")


@config_app.command("list")
def config_list() -> None:
    """List saved profiles; the default one is marked."""
    from safenet.config import list_profiles, load_global_config, load_profile

    names = list_profiles()
    if not names:
        info("No profiles configured.")
        suggest("Create one with: safenet config init NAME")
        return

    default = load_global_config().default_profile
    rows = []
    for profile_name in names:
        profile = load_profile(profile_name)
        rows.append([
            profile_name + (" *" if profile_name == default else ""),
            profile.app.name,
            profile.api_url,
            profile.protocol.value,
        ])
    get_output().print_table(["Name", "Application", "Gateway", "Protocol"], rows, title="Profiles")


@config_app.command("show")
def config_show(
    ctx: typer.Context,
    name: Optional[str] = typer.Argument(None, help="Profile name (default: the active one)."),
) -> None:
    """Show a profile, or the one the current invocation resolves to."""
    from safenet.config import conf_file_for, get_config_dir, load_profile, resolve_config
    from safenet.exceptions import ConfigError

    try:
        if name is not None:
            profile = load_profile(name)
        else:
            opts = context_options(ctx)
            _, profile = resolve_config(opts.get("profile"), opts.get("base_url"))
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    info(f"Config directory: {get_config_dir()}")
    data = profile.model_dump(mode="json")
    data["conf_file"] = str(conf_file_for(profile))
    format_response(data)


@config_app.command("delete")
def config_delete(
    ctx: typer.Context,
    name: str = typer.Argument(help="Profile name."),
) -> None:
    """Delete a profile. Its stored session is left in place."""
    from safenet.config import delete_profile, load_global_config, profile_exists, save_global_config

    if not profile_exists(name):
        error(f'Profile "{name}" not found.')
        raise typer.Exit(code=EXIT_INVALID_USAGE)

    if not context_options(ctx).get("force", False):
        if not typer.confirm(f'Delete profile "{name}"?'):
            info("Cancelled.")
            raise typer.Exit()

    delete_profile(name)
    global_cfg = load_global_config()
    if global_cfg.default_profile == name:
        global_cfg.default_profile = None
        save_global_config(global_cfg)
    success(f'Profile "{name}" deleted.')
