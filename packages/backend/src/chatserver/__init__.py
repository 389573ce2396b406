"""chatserver: identity and access core of a multi-tenant chat backend.

Provisions workspaces and users, authenticates credentials, and issues
and verifies the bearer tokens that gate every protected request.
"""

__version__ = "0.1.0"
