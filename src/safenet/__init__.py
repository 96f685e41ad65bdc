"""safenet -- Python client for the SAFE Launcher gateway.

An application authorizes once with the gateway (the user approves the
request there), optionally negotiates an end-to-end encrypted channel,
and then works with the user's drive (NFS), their public names (DNS) and
the low-level data handles.

Typical use::

    from safenet import AppIdentity, GatewayFailure, SafeNetClient

    app = AppIdentity(name="Demo", id="org.example.demo", permissions=["SAFE_DRIVE_ACCESS"])
    with SafeNetClient(app=app) as client:
        result = client.nfs.get_directory("/")
        if isinstance(result, GatewayFailure):
            print(result.description)

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models shared across the entire package.
    config: XDG-aware configuration and profile management.
    auth: Session state machine, credential persistence, secure channel.
    client: Transport, authenticated request primitive, client facade.
    api: NFS, DNS and handle-kind endpoint wrappers.
    handles: Acquire/operate/release discipline for gateway handles.
    exceptions: Exception hierarchy with exit-code mapping.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"

from safenet.client.safenet_client import SafeNetClient  # noqa: E402
from safenet.models import (  # noqa: E402
    AppIdentity,
    AuthDenied,
    ClientConfig,
    GatewayFailure,
    ProtocolVariant,
    Session,
)

__all__ = [
    "AppIdentity",
    "AuthDenied",
    "ClientConfig",
    "GatewayFailure",
    "ProtocolVariant",
    "SafeNetClient",
    "Session",
    "__version__",
]
