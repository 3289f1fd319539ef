from __future__ import annotations

from typing import Dict, Optional


class ExporterError(Exception):
    """Base error; ``message`` is safe to show in the UI."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class CredentialError(ExporterError):
    def __init__(self, field_errors: Dict[str, str]):
        self.field_errors = dict(field_errors)
        super().__init__("; ".join(self.field_errors.values()) or "Invalid credentials.")


class RemoteError(ExporterError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)

    @classmethod
    def from_status(cls, status_code: int, resource: str = "Document") -> "RemoteError":
        if status_code == 401:
            message = "Invalid API Token. Please check your token and try again."
        elif status_code == 403:
            message = "Access denied. The API token cannot read this document."
        elif status_code == 404:
            message = f"{resource} not found. Please check your {resource} ID."
        else:
            message = f"Failed to fetch {resource.lower()} data (HTTP {status_code}). Please try again."
        return cls(message, status_code=status_code)


class StorageError(ExporterError):
    pass


class ExportError(ExporterError):
    pass
