"""Shared protocol definitions."""

from typing import Protocol


class RequestLogger(Protocol):
    """Protocol for request logging (Dashboard).

    Events of one relayed request share its ``request_id``.
    """

    def log_request(self, request_id: str, method: str, target: str) -> None: ...
    def log_redirect(self, request_id: str, hop: int, status: int, location: str) -> None: ...
    def log_response(self, request_id: str, status: int) -> None: ...
    def log_error(
        self,
        route: str,
        status: int,
        message: str,
        request_id: str | None = None,
    ) -> None: ...
