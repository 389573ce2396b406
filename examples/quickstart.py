#!/usr/bin/env python3
"""
chatserver Quickstart: signup, signin, and workspace membership in one script.

Signs up three users into a fresh workspace → signs one back in →
lists members → shows who owns the workspace → tries a forged token.
Run with: python examples/quickstart.py

Requires: pip install httpx
Backend must be running: http://localhost:6688
"""

import sys
import uuid

import httpx

from _common import BASE, authed_client, check_backend, signup


def main():
    check_backend()
    workspace = f"demo-{uuid.uuid4().hex[:6]}"

    # ── Signup ────────────────────────────────────────────────────
    print(f"\n1. Signing up three users into '{workspace}'...")
    members = [signup(workspace, name) for name in ("Tyr Chen", "Alice Smith", "Bob Jones")]
    for email, _ in members:
        print(f"   {email}")

    # ── Signin ────────────────────────────────────────────────────
    print("\n2. Signing the first user back in...")
    first_email, _ = members[0]
    resp = httpx.post(
        f"{BASE}/signin",
        json={"email": first_email, "password": "demo-password-123"},
        timeout=10,
    )
    assert resp.status_code == 200, f"Failed: {resp.text}"
    token = resp.json()["token"]
    print(f"   Token: {token[:24]}...")

    # ── Wrong password looks the same as unknown email ────────────
    bad = httpx.post(f"{BASE}/signin", json={"email": first_email, "password": "nope"}, timeout=10)
    ghost = httpx.post(f"{BASE}/signin", json={"email": "ghost@example.com", "password": "nope"}, timeout=10)
    print(f"   Wrong password → {bad.status_code}, unknown email → {ghost.status_code}")

    with authed_client(token) as client:
        # ── Members ───────────────────────────────────────────────
        print("\n3. Workspace members (oldest first):")
        for u in client.get("/users").json():
            print(f"   #{u['id']:<4} {u['fullname']:<12} {u['email']}")

        # ── Owner ─────────────────────────────────────────────────
        ws = client.get("/workspace").json()
        me = client.get("/me").json()
        print(f"\n4. Workspace '{ws['name']}' owner: #{ws['owner_id']} (you are #{me['id']})")

    # ── Forged token ──────────────────────────────────────────────
    print("\n5. Calling a protected route with a garbage token...")
    with authed_client("not-a-real-token") as client:
        resp = client.get("/users")
        print(f"   → {resp.status_code} {resp.json()['detail']}")
        if resp.status_code != 401:
            sys.exit(1)

    print("\nDone.")


if __name__ == "__main__":
    main()
