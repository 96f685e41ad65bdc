"""Helpers shared by the command modules."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, TypeVar, Union

import typer

from safenet.exceptions import SafeNetError
from safenet.exit_codes import EXIT_AUTH_FAILURE, EXIT_GATEWAY_ERROR
from safenet.models import AuthDenied, ClientConfig, GatewayFailure
from safenet.output import error, get_output

T = TypeVar("T")


def context_options(ctx: typer.Context) -> dict[str, Any]:
    return ctx.obj if isinstance(ctx.obj, dict) else {}


def resolve_profile(ctx: typer.Context) -> ClientConfig:
    """The effective profile for this invocation (flags, env, files, defaults)."""
    from safenet.config import resolve_config

    opts = context_options(ctx)
    _, profile = resolve_config(opts.get("profile"), opts.get("base_url"))
    return profile


@contextmanager
def open_client(ctx: typer.Context) -> Iterator[Any]:
    """Yield an open :class:`~safenet.client.safenet_client.SafeNetClient`.

    A :class:`~safenet.exceptions.SafeNetError` raised inside the block is
    reported on stderr and turned into ``typer.Exit`` with its exit code.
    """
    from safenet.client.safenet_client import SafeNetClient

    try:
        with SafeNetClient(resolve_profile(ctx)) as client:
            yield client
    except SafeNetError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


def check(result: Union[T, GatewayFailure]) -> T:
    """Return *result*, or report the failure and exit.

    ``AuthDenied`` exits with the auth-failure code, any other
    :class:`GatewayFailure` with the gateway-error code.
    """
    if isinstance(result, AuthDenied):
        get_output().failure(result)
        raise typer.Exit(code=EXIT_AUTH_FAILURE)
    if isinstance(result, GatewayFailure):
        get_output().failure(result)
        raise typer.Exit(code=EXIT_GATEWAY_ERROR)
    return result
