"""Testing utilities for artiforge-llm.

Builders for scripted :class:`~artiforge_llm.providers.EchoProvider`
responses, plus a fake aiohttp session for exercising HTTP providers
without network access.

Example:
    ```python
    from artiforge_llm.providers import EchoProvider
    from artiforge_llm.testing import tagged_response, tool_response

    provider = EchoProvider({"provider": "echo", "model": "test"})
    provider.set_responses([
        tagged_response("vision", commentary="What problem does it solve?"),
        tool_response(content="# Vision", commentary="Drafted."),
    ])
    ```
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Sequence

from artiforge_llm.base import ArtifactFormat, ParsedResponse


def tagged_response(
    slug: str | None,
    content: str | None = None,
    commentary: str | None = None,
) -> str:
    """Build raw tag-delimited model output for an artifact type slug."""
    fmt = ArtifactFormat.for_slug(slug)
    parts = []
    if content is not None:
        parts.append(f"{fmt.start_tag}\n{content}\n{fmt.end_tag}")
    if commentary is not None:
        parts.append(f"{fmt.commentary_start_tag}\n{commentary}\n{fmt.commentary_end_tag}")
    return "\n\n".join(parts)


def tool_response(content: str = "", commentary: str = "") -> ParsedResponse:
    """Build a structured (tool-call style) response."""
    raw = json.dumps({"content": content, "commentary": commentary})
    return ParsedResponse(raw_response=raw, artifact_content=content, commentary=commentary)


def sse_lines(events: Sequence[Dict[str, Any] | str], done: bool = True) -> List[bytes]:
    """Encode events as server-sent-event lines.

    String entries are sent verbatim after ``data: `` (useful for malformed
    fragments).
    """
    lines = []
    for event in events:
        payload = event if isinstance(event, str) else json.dumps(event)
        lines.append(f"data: {payload}\n".encode("utf-8"))
        lines.append(b"\n")
    if done:
        lines.append(b"data: [DONE]\n")
    return lines


class _LineStream:
    def __init__(self, lines: Sequence[bytes], fail_after: int | None = None, error: BaseException | None = None):
        self._lines = list(lines)
        self._fail_after = fail_after
        self._error = error

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for index, line in enumerate(self._lines):
            if self._fail_after is not None and index >= self._fail_after:
                raise self._error
            yield line


class FakeResponse:
    """Minimal stand-in for :class:`aiohttp.ClientResponse`.

    Tracks ``close_calls`` and ``release_calls`` so tests can assert the
    body was cleaned up exactly once.
    """

    def __init__(
        self,
        status: int = 200,
        json_body: Any = None,
        lines: Sequence[bytes] = (),
        reason: str = "OK",
        has_body: bool = True,
        fail_after: int | None = None,
        error: BaseException | None = None,
    ):
        self.status = status
        self.reason = reason
        self._json_body = json_body
        self.content = _LineStream(lines, fail_after, error) if has_body else None
        self.close_calls = 0
        self.release_calls = 0

    async def json(self, content_type: Any = None) -> Any:
        if self._json_body is None:
            raise ValueError("response body is not JSON")
        return self._json_body

    async def text(self) -> str:
        return json.dumps(self._json_body) if self._json_body is not None else ""

    def close(self) -> None:
        self.close_calls += 1

    def release(self) -> None:
        self.release_calls += 1


class _RequestContext:
    def __init__(self, response: FakeResponse):
        self._response = response

    async def __aenter__(self) -> FakeResponse:
        return self._response

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self._response.release()


class FakeSession:
    """Fake :class:`aiohttp.ClientSession` returning queued responses.

    Every ``post`` is recorded in :attr:`requests` as ``{url, json, headers}``.
    """

    def __init__(self, responses: Sequence[FakeResponse] = ()):
        self._responses = list(responses)
        self.requests: List[Dict[str, Any]] = []
        self.closed = False

    def queue(self, response: FakeResponse) -> None:
        self._responses.append(response)

    def post(self, url: str, json: Any = None, headers: Dict[str, str] | None = None) -> _RequestContext:
        self.requests.append({"url": url, "json": json, "headers": headers or {}})
        return _RequestContext(self._responses.pop(0))

    async def close(self) -> None:
        self.closed = True
