"""Test helpers (small, reusable doubles).

Keep this file tiny and purpose-built: the fake API stands in for the vendor
endpoint so chat-model tests exercise the real httpx stack end to end.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
import json
from typing import Any

import httpx

Handler = Callable[[httpx.Request], httpx.Response]


@dataclass
class FakeInflectionAPI:
    """Records outgoing requests and answers each with a configured response.

    Use ``respond_json`` for the non-streaming call and ``respond_lines`` for
    streaming calls; ``handler`` can be set directly for custom behavior.
    """

    requests: list[httpx.Request] = field(default_factory=list)
    handler: Handler | None = None

    def respond_json(self, payload: Any, *, status_code: int = 200) -> None:
        self.handler = lambda _request: httpx.Response(status_code, json=payload)

    def respond_lines(self, lines: list[str], *, status_code: int = 200) -> None:
        body = "".join(f"{line}\n" for line in lines).encode()
        self.handler = lambda _request: httpx.Response(
            status_code,
            content=body,
            headers={"content-type": "text/event-stream"},
        )

    def respond_text(self, text: str, *, status_code: int) -> None:
        self.handler = lambda _request: httpx.Response(status_code, text=text)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.handler is None:
            raise AssertionError("FakeInflectionAPI has no response configured")
        return self.handler(request)

    @property
    def last_request(self) -> httpx.Request:
        assert self.requests, "no request was sent"
        return self.requests[-1]

    @property
    def last_body(self) -> dict[str, Any]:
        return json.loads(self.last_request.content)


def sse(payload: Any) -> list[str]:
    """Frame one JSON payload as a Server-Sent-Event."""
    return [f"data: {json.dumps(payload)}", ""]


def json_line(payload: Any) -> str:
    """Frame one JSON payload as a bare line (vendor-native streaming)."""
    return json.dumps(payload)


async def collect(stream: Any) -> list[Any]:
    return [part async for part in stream]
