"""Shared request data types."""

from collections.abc import AsyncIterable, AsyncIterator
from dataclasses import dataclass, field
from uuid import uuid4


class ReplayableBody:
    """Inbound body stream that can be sent again on a redirect hop.

    The first iteration streams chunks straight from the source. With
    ``replay`` enabled the chunks are also kept, so a redirect hop can resend
    them; this holds the whole upload in memory until the request finishes.
    Without ``replay`` nothing is kept and only one pass is possible.
    """

    def __init__(self, source: AsyncIterable[bytes], replay: bool = True) -> None:
        self._source = source
        self._replay = replay
        self._chunks: list[bytes] = []
        self._consumed = False

    async def __aiter__(self) -> AsyncIterator[bytes]:
        if self._consumed:
            for chunk in self._chunks:
                yield chunk
            return
        async for chunk in self._source:
            if chunk:
                if self._replay:
                    self._chunks.append(chunk)
                yield chunk
        self._consumed = True


def _request_id() -> str:
    return uuid4().hex[:8]


@dataclass(frozen=True)
class IncomingRequest:
    """Inbound request as received by the relay."""

    method: str
    path_segment: str
    headers: list[tuple[str, str]] = field(default_factory=list)
    query: list[tuple[str, str]] = field(default_factory=list)
    body: ReplayableBody | None = None
    request_id: str = field(default_factory=_request_id)
