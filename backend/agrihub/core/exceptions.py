"""Domain exceptions raised by the auth and import services."""

from typing import Iterable, List


class AgriHubError(Exception):
    """Base exception for all AgriHub errors."""


class AuthorizationError(AgriHubError):
    """Raised when an authenticated identity lacks the required role."""

    def __init__(self, role: str, allowed_roles: Iterable[str]):
        self.role = role
        self.allowed_roles = [str(getattr(r, "value", r)) for r in allowed_roles]
        super().__init__(
            f"Role '{role}' is not permitted. Required roles: {self.allowed_roles}"
        )


class UnknownFieldError(AgriHubError):
    """Raised when a field map names columns outside a model's allow-list."""

    def __init__(self, table: str, fields: Iterable[str]):
        self.table = table
        self.fields = sorted(fields)
        super().__init__(f"Unknown field(s) for {table}: {', '.join(self.fields)}")


class ImportRejectedError(AgriHubError):
    """Raised when a bulk import is refused as a whole before any row is stored."""


class UnsupportedFileTypeError(ImportRejectedError):
    """Raised when the declared upload type is not CSV or XLSX."""

    def __init__(self, file_type: str):
        self.file_type = file_type
        super().__init__("Only CSV and XLSX files are supported")


class ImportParseError(ImportRejectedError):
    """Raised when the uploaded file cannot be parsed into rows."""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("File could not be parsed: " + "; ".join(self.errors))
