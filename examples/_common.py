"""
Shared helpers for chatserver examples.

Handles the health check and signup so each example can focus on its
specific flow.
"""

import sys
import uuid

import httpx

BASE = "http://localhost:6688/api"


def check_backend() -> None:
    """Verify the backend is reachable and healthy."""
    try:
        resp = httpx.get(f"{BASE}/health", timeout=5)
    except httpx.ConnectError:
        print(f"ERROR: Backend not reachable at {BASE}")
        print("Start it with:  chatserver keygen && chatserver serve")
        sys.exit(1)

    if resp.status_code != 200:
        print(f"ERROR: Health check returned {resp.status_code}")
        sys.exit(1)

    health = resp.json()
    print("Backend health:")
    print(f"  Database: {health['database']}")
    print(f"  Redis:    {health['redis']}")

    if health["database"] != "ok":
        print("\nERROR: Database is not connected.")
        sys.exit(1)


def signup(workspace: str, fullname: str, password: str = "demo-password-123") -> tuple[str, str]:
    """Sign up a fresh user into `workspace`. Returns (email, token).

    Uses a unique email per run so examples are idempotent.
    """
    run_id = uuid.uuid4().hex[:8]
    email = f"{fullname.split()[0].lower()}-{run_id}@example.com"
    resp = httpx.post(
        f"{BASE}/signup",
        json={
            "fullname": fullname,
            "email": email,
            "workspace": workspace,
            "password": password,
        },
        timeout=10,
    )
    if resp.status_code != 201:
        print(f"ERROR: Signup failed: {resp.status_code} {resp.text}")
        sys.exit(1)
    return email, resp.json()["token"]


def authed_client(token: str) -> httpx.Client:
    """An httpx Client that sends the bearer token on every request."""
    return httpx.Client(
        base_url=BASE,
        timeout=10,
        headers={"Authorization": f"Bearer {token}"},
    )
