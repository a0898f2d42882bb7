from __future__ import annotations


class SupabaseApiError(Exception):
    """Base error for failed backend calls, carrying an HTTP-like status."""

    status = 500

    def __init__(self, status: int, message: str) -> None:
        super().__init__(message)
        self.status = status
        self.message = message

    def __str__(self) -> str:
        return f"[{self.status}] {self.message}"


class TransportError(SupabaseApiError):
    """Backend unreachable or the query was rejected."""

    def __init__(self, message: str, status: int = 500) -> None:
        super().__init__(status, message)


class NotFoundError(SupabaseApiError):
    """A single-record lookup matched no row."""

    def __init__(self, message: str) -> None:
        super().__init__(404, message)
