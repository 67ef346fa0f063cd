"""Response parsing for tag-delimited and tool-call model output.

Two strategies produce the same :class:`ParsedResponse` shape:

Tag-delimited text
    The artifact body is the text between the **first** start tag and the
    **last** end tag. When several tag pairs are present, the inner markers
    remain part of the body verbatim. Commentary is read from the
    commentary tags when both are present in the right order; otherwise the
    text outside the body (trimmed, joined by a blank line) is commentary,
    and when no body exists at all the whole response is commentary.

Tool calls
    The model calls ``generate_artifact_content(content)`` and
    ``provide_commentary(commentary)``. Free-text segments emitted alongside
    the calls are appended to the commentary.

Example:
    >>> fmt = ArtifactFormat.for_slug("test")
    >>> parsed = extract_content_and_commentary(
    ...     "[COMMENTARY]c[/COMMENTARY]\\n[TEST]body[/TEST]", fmt)
    >>> (parsed.artifact_content, parsed.commentary)
    ('body', 'c')
"""

import json
import logging
from typing import Any, Dict, Iterable, List, Sequence

from artiforge_common.outcome import Outcome
from artiforge_llm.base import ArtifactFormat, ParsedResponse, ToolCall
from artiforge_llm.exceptions import EmptyArtifactContentError

logger = logging.getLogger(__name__)

GENERATE_CONTENT_TOOL = "generate_artifact_content"
COMMENTARY_TOOL = "provide_commentary"


def _span(text: str, start_tag: str, end_tag: str) -> tuple[int, int] | None:
    start = text.find(start_tag)
    end = text.rfind(end_tag)
    if start == -1 or end == -1 or end <= start:
        return None
    return start, end


def has_valid_artifact_content(response: str, artifact_format: ArtifactFormat) -> bool:
    """Whether ``response`` holds a start tag strictly before an end tag.

    Reversed or partial pairs count as absent content, not as malformed input.
    """
    return _span(response, artifact_format.start_tag, artifact_format.end_tag) is not None


def extract_content_and_commentary(
    response: str, artifact_format: ArtifactFormat
) -> ParsedResponse:
    """Split tag-delimited model output into artifact content and commentary.

    Args:
        response: Raw model output.
        artifact_format: Delimiters for the artifact type.

    Returns:
        Parsed response; fields that could not be located are empty strings.
    """
    result = ParsedResponse(raw_response=response)

    start_tag = artifact_format.start_tag
    end_tag = artifact_format.end_tag
    span = _span(response, start_tag, end_tag)
    if span is not None:
        start, end = span
        result.artifact_content = response[start + len(start_tag):end].strip()

    if artifact_format.has_commentary_tags:
        commentary_span = _span(
            response, artifact_format.commentary_start_tag, artifact_format.commentary_end_tag
        )
        if commentary_span is not None:
            c_start, c_end = commentary_span
            result.commentary = response[
                c_start + len(artifact_format.commentary_start_tag):c_end
            ].strip()
            return result

    if span is not None:
        start, end = span
        before = response[:start].strip()
        after = response[end + len(end_tag):].strip()
        result.commentary = "\n\n".join(part for part in (before, after) if part)
    else:
        result.commentary = response.strip()

    return result


def check_response(parsed: ParsedResponse, is_update: bool) -> Outcome[ParsedResponse]:
    """Validate a parsed response without raising.

    Updates must carry non-blank artifact content. Missing fields are
    defaulted to empty strings in the returned value.
    """
    content = parsed.artifact_content or ""
    if is_update and not content.strip():
        return Outcome.failure(EmptyArtifactContentError())
    return Outcome.success(ParsedResponse(
        raw_response=parsed.raw_response or "",
        artifact_content=content,
        commentary=parsed.commentary or "",
    ))


def validate_and_format_response(parsed: ParsedResponse, is_update: bool) -> ParsedResponse:
    """Validate a parsed response, raising on an empty update.

    Raises:
        EmptyArtifactContentError: If ``is_update`` and the content is blank.
    """
    return check_response(parsed, is_update).unwrap()


def format_instructions(user_prompt: str, artifact_format: ArtifactFormat, is_update: bool) -> str:
    """Append response-format instructions to a user prompt.

    Updates ask for the artifact body and commentary in their tags; a
    kickoff only asks for commentary to open the dialogue.
    """
    commentary_start = artifact_format.commentary_start_tag or ""
    commentary_end = artifact_format.commentary_end_tag or ""
    if is_update:
        return (
            f"{user_prompt}\n\n"
            "# Response Format\n"
            "Provide your response using the following tags:\n\n"
            f"{artifact_format.start_tag}\n"
            f"Your updated {artifact_format.syntax} content here.\n"
            f"{artifact_format.end_tag}\n\n"
            f"{commentary_start}\n"
            "Provide any additional commentary or questions for the user here.\n"
            f"{commentary_end}\n"
        )
    return (
        f"{user_prompt}\n\n"
        "# Response Format\n"
        "Provide your response using the following tags:\n\n"
        f"{commentary_start}\n"
        "Your initial questions and commentary to start the dialogue here.\n"
        f"{commentary_end}\n"
    )


def artifact_tool_definitions() -> List[Dict[str, Any]]:
    """Provider-neutral definitions of the two artifact tools.

    Providers convert these into their own wire format.
    """
    return [
        {
            "name": GENERATE_CONTENT_TOOL,
            "description": "Generate the complete content of the artifact",
            "parameters": {
                "type": "object",
                "properties": {
                    "content": {
                        "type": "string",
                        "description": "The full artifact content in the requested syntax",
                    },
                },
                "required": ["content"],
            },
        },
        {
            "name": COMMENTARY_TOOL,
            "description": "Provide commentary, questions, or additional information about the artifact",
            "parameters": {
                "type": "object",
                "properties": {
                    "commentary": {
                        "type": "string",
                        "description": "Commentary for the user",
                    },
                },
                "required": ["commentary"],
            },
        },
    ]


def decode_tool_arguments(raw: Any, tool_name: str | None = None) -> Dict[str, Any]:
    """Decode tool-call arguments delivered as a JSON string.

    Already-decoded mappings pass through. Undecodable arguments are logged
    and treated as empty.
    """
    if isinstance(raw, dict):
        return raw
    if not raw:
        return {}
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning("Could not decode arguments for tool '%s': %s", tool_name, e)
        return {}
    return value if isinstance(value, dict) else {}


def parse_tool_calls(
    tool_calls: Iterable[ToolCall],
    text_segments: Sequence[str] = (),
) -> ParsedResponse:
    """Map artifact tool calls and free text onto a parsed response.

    Args:
        tool_calls: Decoded tool calls in emission order.
        text_segments: Plain-text segments the model emitted alongside.

    Returns:
        Parsed response whose ``raw_response`` is the joined text segments.
    """
    content = ""
    commentary_parts: List[str] = []
    for call in tool_calls:
        if call.name == GENERATE_CONTENT_TOOL:
            value = call.parameters.get("content")
            if isinstance(value, str):
                content = value
        elif call.name == COMMENTARY_TOOL:
            value = call.parameters.get("commentary")
            if isinstance(value, str) and value.strip():
                commentary_parts.append(value.strip())
        else:
            logger.warning("Ignoring call to unknown tool '%s'", call.name)

    text = [segment.strip() for segment in text_segments if segment and segment.strip()]
    commentary_parts.extend(text)
    return ParsedResponse(
        raw_response="\n".join(text),
        artifact_content=content.strip(),
        commentary="\n".join(commentary_parts),
    )
