"""NFS commands -- browse and edit the drive.

Example::

    safenet nfs mkdir /photos
    safenet nfs put /photos/cat.txt ./cat.txt
    safenet nfs ls /photos
    safenet nfs cat /photos/cat.txt --offset 0 --length 4
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Optional

import typer

from safenet.commands.common import check, context_options, open_client
from safenet.exit_codes import EXIT_INVALID_USAGE
from safenet.output import OutputFormat, error, format_response, get_output, info, success


nfs_app = typer.Typer(no_args_is_help=True)

SHARED_OPTION = typer.Option(False, "--shared", help="Path is in the shared drive.")


@nfs_app.command("ls")
def nfs_ls(
    ctx: typer.Context,
    path: str = typer.Argument("/", help="Directory path."),
    shared: bool = SHARED_OPTION,
) -> None:
    """List a directory's subdirectories and files."""
    with open_client(ctx) as client:
        listing = check(client.nfs.get_directory(path, is_path_shared=shared))

    output = get_output()
    if output.format == OutputFormat.JSON or not isinstance(listing, dict):
        format_response(listing)
        return
    rows = [[_entry_name(d) + "/", "dir", "-"] for d in listing.get("subDirectories", [])]
    rows += [[_entry_name(f), "file", _entry_size(f)] for f in listing.get("files", [])]
    if not rows:
        info(f"{path} is empty.")
        return
    output.print_table(["Name", "Type", "Size"], rows, title=path)


@nfs_app.command("mkdir")
def nfs_mkdir(
    ctx: typer.Context,
    path: str = typer.Argument(help="Directory path."),
    public: bool = typer.Option(False, "--public", help="Create an unencrypted directory."),
    versioned: bool = typer.Option(False, "--versioned", help="Keep previous versions."),
    shared: bool = SHARED_OPTION,
) -> None:
    """Create a directory."""
    with open_client(ctx) as client:
        check(client.nfs.create_directory(
            path, is_private=not public, is_versioned=versioned, is_path_shared=shared,
        ))
    success(f"Created {path}")


@nfs_app.command("rmdir")
def nfs_rmdir(
    ctx: typer.Context,
    path: str = typer.Argument(help="Directory path."),
    shared: bool = SHARED_OPTION,
) -> None:
    """Delete a directory. Asks for confirmation unless ``--force``."""
    _confirm(ctx, f"Delete directory {path}?")
    with open_client(ctx) as client:
        check(client.nfs.delete_directory(path, is_path_shared=shared))
    success(f"Deleted {path}")


@nfs_app.command("cat")
def nfs_cat(
    ctx: typer.Context,
    path: str = typer.Argument(help="File path."),
    offset: int = typer.Option(0, "--offset", min=0, help="First byte to read."),
    length: Optional[int] = typer.Option(None, "--length", min=0, help="Bytes to read."),
    shared: bool = SHARED_OPTION,
) -> None:
    """Print a file's contents to stdout."""
    with open_client(ctx) as client:
        data = check(client.nfs.get_file(path, offset=offset, length=length, is_path_shared=shared))
    get_output().print_bytes(data)


@nfs_app.command("put")
def nfs_put(
    ctx: typer.Context,
    path: str = typer.Argument(help="File path in the drive."),
    source: Path = typer.Argument(help="Local file to upload ('-' for stdin)."),
    public: bool = typer.Option(False, "--public", help="Store the file unencrypted."),
    shared: bool = SHARED_OPTION,
) -> None:
    """Create a file and upload its contents."""
    if str(source) == "-":
        contents = sys.stdin.buffer.read()
    elif source.is_file():
        contents = source.read_bytes()
    else:
        error(f"No such file: {source}")
        raise typer.Exit(code=EXIT_INVALID_USAGE)

    with open_client(ctx) as client:
        check(client.nfs.create_file(path, is_private=not public, is_path_shared=shared))
        check(client.nfs.update_file_content(path, contents, is_path_shared=shared))
    success(f"Uploaded {len(contents)} bytes to {path}")


@nfs_app.command("rm")
def nfs_rm(
    ctx: typer.Context,
    path: str = typer.Argument(help="File path."),
    shared: bool = SHARED_OPTION,
) -> None:
    """Delete a file. Asks for confirmation unless ``--force``."""
    _confirm(ctx, f"Delete file {path}?")
    with open_client(ctx) as client:
        check(client.nfs.delete_file(path, is_path_shared=shared))
    success(f"Deleted {path}")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _entry_name(entry: Any) -> str:
    if isinstance(entry, dict):
        return str(entry.get("name", "?"))
    return str(entry)


def _entry_size(entry: Any) -> str:
    if isinstance(entry, dict):
        return str(entry.get("size", "-"))
    return "-"


def _confirm(ctx: typer.Context, question: str) -> None:
    if context_options(ctx).get("force", False):
        return
    if not typer.confirm(question):
        info("Cancelled.")
        raise typer.Exit()
