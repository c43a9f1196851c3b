# timekeeper/core/errors.py

from pathlib import Path
from typing import Optional


class TimekeeperError(Exception):
    """Base class for every error the application reports to the user."""


# --- Document Store Errors ---

class StoreError(TimekeeperError):
    """Something is wrong with one of the JSON documents on disk."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")


class MissingStoreError(StoreError):
    """The backing file of a document does not exist (and was never seeded)."""


class CorruptStoreError(StoreError):
    """A document exists but failed to parse or did not match its schema."""


class StoreInitError(StoreError):
    """The configuration directory could not be created or seeded."""


# --- API Gateway Errors ---

class GatewayError(TimekeeperError):
    """Base class for failures raised by the API gateway."""


class UnroutedMockError(GatewayError):
    """Mock mode received a method/path combination it has no canned answer for."""

    def __init__(self, method: str, path: str):
        self.method = method
        self.path = path
        super().__init__(f"{method} {path} is not available in mock mode")


class ApiError(GatewayError):
    """A live API call failed: transport error, non-2xx status or unreadable body."""

    def __init__(self, status: Optional[int], message: str):
        self.status = status
        self.message = message
        label = f"HTTP {status}" if status is not None else "no response"
        super().__init__(f"API request failed ({label}): {message}")


# --- Domain Errors ---

class ValidationError(TimekeeperError):
    """User input was rejected before anything was sent or saved."""

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid {field}: {reason}")
