"""Authentication.

Learn: Two halves:
1. Credentials → argon2id password hashes (password.py)
2. Bearer tokens → Ed25519-signed JWTs (jwt.py), checked per request
   by the authenticate dependency (dependencies.py)

Both resolve to an Identity (user_id, ws_id) used to scope queries.
"""
