"""Auth commands -- manage the profile's gateway session.

Typical workflow::

    safenet auth login           # approve the prompt in the gateway
    safenet auth status          # is the stored token still accepted?
    safenet auth revoke --clear  # end the session and delete the file
"""

from __future__ import annotations

import typer

from safenet.commands.common import context_options, open_client, resolve_profile
from safenet.exit_codes import EXIT_AUTH_FAILURE
from safenet.output import error, get_output, info, success, suggest


auth_app = typer.Typer(no_args_is_help=True)


@auth_app.command("login")
def auth_login(ctx: typer.Context) -> None:
    """Authorize the application with the gateway.

    Reuses the stored session when the gateway still accepts it; otherwise
    asks the gateway for a new one, which prompts the user there.

    Example::

        safenet auth login
        safenet -p photos auth login
    """
    with open_client(ctx) as client:
        client.auth.get_valid_token()
        success(f'Authorized "{client.config.app.name}" on {client.config.api_url}')
        info(f"Session stored in {client.conf_file}")


@auth_app.command("status")
def auth_status(ctx: typer.Context) -> None:
    """Show the stored session and whether the gateway accepts its token.

    Never starts a new authorization.
    """
    with open_client(ctx) as client:
        session = client.auth.current_session()
        if session is None:
            info("No session stored.")
            suggest("Authorize with: safenet auth login")
            raise typer.Exit(code=EXIT_AUTH_FAILURE)

        valid = client.auth.is_token_valid()
        rows = [
            ["Profile", client.config.name],
            ["Application", f"{client.config.app.name} ({client.config.app.id})"],
            ["Gateway", client.config.api_url],
            ["Protocol", client.config.protocol.value],
            ["Credential File", str(client.conf_file)],
            ["Permissions", ", ".join(session.permissions) or "-"],
            ["Token Valid", str(valid)],
        ]
        get_output().print_table(["Field", "Value"], rows, title="Session")
        if not valid:
            suggest("Re-authorize with: safenet auth login")
            raise typer.Exit(code=EXIT_AUTH_FAILURE)


@auth_app.command("revoke")
def auth_revoke(
    ctx: typer.Context,
    clear: bool = typer.Option(False, "--clear", help="Also delete the credential file."),
) -> None:
    """Revoke the session's token at the gateway."""
    with open_client(ctx) as client:
        if client.auth.current_session() is None:
            info("No session stored.")
            return
        if not client.auth.revoke():
            error("The gateway did not revoke the token.")
            raise typer.Exit(code=EXIT_AUTH_FAILURE)
        if clear:
            client.auth.forget()
        success("Token revoked.")


@auth_app.command("clear")
def auth_clear(ctx: typer.Context) -> None:
    """Delete the stored session without contacting the gateway.

    Asks for confirmation unless ``--force`` is active.
    """
    from safenet.auth.credential_store import CredentialStore
    from safenet.config import conf_file_for

    store = CredentialStore(conf_file_for(resolve_profile(ctx)))
    if not store.exists():
        info("No session stored.")
        return

    if not context_options(ctx).get("force", False):
        if not typer.confirm(f"Delete the session stored in {store.path}?"):
            info("Cancelled.")
            raise typer.Exit()

    store.clear()
    success("Stored session deleted.")
