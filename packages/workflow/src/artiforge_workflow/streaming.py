"""Chunk payloads pushed to a streaming sink.

A stream is a sequence of ``{"chunk": text}`` payloads closed by exactly one
terminal payload with ``done`` set: either the final result or an error.
"""

from __future__ import annotations

import inspect
from typing import Any, Awaitable, Callable, Dict, Union

ChunkPayload = Dict[str, Any]
ChunkSink = Callable[[ChunkPayload], Union[None, Awaitable[None]]]


def text_chunk(text: str) -> ChunkPayload:
    return {"chunk": text}


def final_chunk(artifact_content: str, commentary: str) -> ChunkPayload:
    return {
        "chunk": "",
        "done": True,
        "artifact_content": artifact_content,
        "commentary": commentary,
    }


def error_chunk(message: str) -> ChunkPayload:
    return {"chunk": f"Error: {message}", "done": True}


async def emit(sink: ChunkSink, payload: ChunkPayload) -> None:
    """Send ``payload`` to a sync or async sink."""
    result = sink(payload)
    if inspect.isawaitable(result):
        await result
