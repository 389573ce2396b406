"""Error taxonomy shared by the store, services, and API layer.

Services raise these; route handlers translate them into HTTP responses.
Token errors live in chatserver.auth.jwt next to the codec that raises them.
"""


class ChatServerError(Exception):
    """Base class for domain errors."""


class EmailAlreadyExists(ChatServerError):
    """Raised at signup when the email is already registered."""

    def __init__(self, email: str):
        super().__init__(f"Email already exists: {email}")
        self.email = email


class WorkspaceNameConflict(ChatServerError):
    """Raised when a concurrent signup created the same workspace first."""

    def __init__(self, name: str):
        super().__init__(f"Workspace name conflict: {name}")
        self.name = name


class AuthenticationFailed(ChatServerError):
    """Raised at signin. Never says which check failed."""

    def __init__(self):
        super().__init__("Invalid email or password")


class StorageUnavailable(ChatServerError):
    """Raised on transient store failures (connection, timeout)."""


class DeadlineExceeded(ChatServerError):
    """Raised when password hashing outlives its time budget."""
