"""Server-sent event decoding for streamed model responses."""

import json
import logging
from typing import Any, AsyncIterable, AsyncIterator, Dict, Union

logger = logging.getLogger(__name__)

DONE_SENTINEL = "[DONE]"


async def iter_sse_data(
    lines: AsyncIterable[Union[bytes, str]],
) -> AsyncIterator[Dict[str, Any]]:
    """Yield decoded JSON payloads of ``data:`` lines.

    Comment, ``event:`` and blank lines are ignored; iteration stops at the
    ``[DONE]`` sentinel. Fragments that fail to decode are logged and
    skipped so one bad event does not abort the stream.

    Args:
        lines: Line iterator, e.g. an aiohttp ``response.content``.
    """
    async for raw in lines:
        line = raw.decode("utf-8", errors="replace") if isinstance(raw, bytes) else raw
        line = line.strip()
        if not line.startswith("data:"):
            continue

        data = line[len("data:"):].strip()
        if data == DONE_SENTINEL:
            return
        if not data:
            continue

        try:
            event = json.loads(data)
        except json.JSONDecodeError as e:
            logger.warning("Skipping undecodable stream fragment (%s): %.200s", e, data)
            continue

        if isinstance(event, dict):
            yield event
        else:
            logger.warning("Skipping non-object stream fragment: %.200s", data)
