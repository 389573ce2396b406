"""chatserver CLI: key generation and a thin client for the auth API.

Usage:
    chatserver keygen --out fixtures                 # Write an Ed25519 key pair
    chatserver serve                                 # Run the API server
    chatserver signup "Tyr Chen" tchen@acme.org acme # Prompts for password, prints token
    chatserver signin tchen@acme.org                 # Prompts for password, prints token
    chatserver users                                 # Members of your workspace
    chatserver whoami                                # Current user
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path
from typing import Optional

import click
import httpx
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from chatserver import __version__

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:6688"


def _api_url() -> str:
    return os.environ.get("CHAT_API_URL", DEFAULT_API_URL).rstrip("/")


def _client(token: Optional[str] = None) -> httpx.Client:
    """Build an HTTP client pointed at the chat server."""
    headers = {"Authorization": f"Bearer {token}"} if token else {}
    return httpx.Client(base_url=f"{_api_url()}/api", headers=headers, timeout=30.0)


def _token_from_ctx(token: Optional[str]) -> str:
    """Resolve the bearer token from --token or the CHAT_TOKEN env var."""
    tok = token or os.environ.get("CHAT_TOKEN")
    if not tok:
        click.secho(
            "Error: --token required (or set CHAT_TOKEN env var)",
            fg="red",
            err=True,
        )
        sys.exit(1)
    return tok


def _check(resp: httpx.Response) -> dict | list:
    if resp.is_error:
        try:
            detail = resp.json().get("detail", resp.text)
        except ValueError:
            detail = resp.text
        click.secho(f"Error {resp.status_code}: {detail}", fg="red", err=True)
        sys.exit(1)
    return resp.json()


def _print_table(rows: list[dict], columns: list[tuple[str, str, int]]):
    """Print a simple ASCII table.

    columns: list of (header, dict_key, width)
    """
    header = "  ".join(h.ljust(w) for h, _, w in columns)
    click.secho(header, bold=True)
    click.echo("-" * len(header))
    for row in rows:
        line = "  ".join(str(row.get(k, "-"))[:w].ljust(w) for _, k, w in columns)
        click.echo(line)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="chatserver")
def main():
    """chatserver: identity and access core for a multi-tenant chat backend."""


# ---------------------------------------------------------------------------
# chatserver keygen
# ---------------------------------------------------------------------------


@main.command()
@click.option(
    "--out",
    "out_dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("fixtures"),
    show_default=True,
    help="Directory to write encoding.pem / decoding.pem into",
)
@click.option("--force", is_flag=True, help="Overwrite existing key files")
def keygen(out_dir: Path, force: bool):
    """Generate an Ed25519 signing key (encoding.pem) and public key (decoding.pem)."""
    sk_path = out_dir / "encoding.pem"
    pk_path = out_dir / "decoding.pem"
    if not force and (sk_path.exists() or pk_path.exists()):
        click.secho(f"Refusing to overwrite keys in {out_dir} (use --force)", fg="red", err=True)
        sys.exit(1)

    sk = Ed25519PrivateKey.generate()
    sk_pem = sk.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    pk_pem = sk.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )

    out_dir.mkdir(parents=True, exist_ok=True)
    sk_path.write_bytes(sk_pem)
    sk_path.chmod(0o600)
    pk_path.write_bytes(pk_pem)
    click.secho(f"Wrote {sk_path} and {pk_path}", fg="green")


# ---------------------------------------------------------------------------
# chatserver serve
# ---------------------------------------------------------------------------


@main.command()
def serve():
    """Run the API server (settings from CHAT_* env vars)."""
    from chatserver.main import run

    run()


# ---------------------------------------------------------------------------
# chatserver signup / signin
# ---------------------------------------------------------------------------


@main.command()
@click.argument("fullname")
@click.argument("email")
@click.argument("workspace")
@click.password_option()
def signup(fullname: str, email: str, workspace: str, password: str):
    """Create an account (and the workspace, if new). Prints a token."""
    with _client() as client:
        data = _check(
            client.post(
                "/signup",
                json={
                    "fullname": fullname,
                    "email": email,
                    "workspace": workspace,
                    "password": password,
                },
            )
        )
    click.echo(data["token"])


@main.command()
@click.argument("email")
@click.option("--password", prompt=True, hide_input=True)
def signin(email: str, password: str):
    """Sign in with email and password. Prints a token."""
    with _client() as client:
        data = _check(client.post("/signin", json={"email": email, "password": password}))
    click.echo(data["token"])


# ---------------------------------------------------------------------------
# chatserver users / whoami
# ---------------------------------------------------------------------------


@main.command()
@click.option("--token", help="Bearer token (or set CHAT_TOKEN)")
def users(token: Optional[str]):
    """List members of your workspace."""
    with _client(_token_from_ctx(token)) as client:
        rows = _check(client.get("/users"))
    if not rows:
        click.echo("No users.")
        return
    _print_table(rows, [("ID", "id", 6), ("NAME", "fullname", 24), ("EMAIL", "email", 32)])


@main.command()
@click.option("--token", help="Bearer token (or set CHAT_TOKEN)")
def whoami(token: Optional[str]):
    """Show the user the token belongs to."""
    with _client(_token_from_ctx(token)) as client:
        me = _check(client.get("/me"))
    click.echo(json.dumps(me, indent=2, default=str))


if __name__ == "__main__":
    main()
