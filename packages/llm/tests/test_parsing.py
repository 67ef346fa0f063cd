"""Tests for tag-delimited and tool-call response parsing."""

import pytest

from artiforge_llm.base import ArtifactFormat, ParsedResponse, ToolCall
from artiforge_llm.exceptions import EmptyArtifactContentError
from artiforge_llm.parsing import (
    COMMENTARY_TOOL,
    GENERATE_CONTENT_TOOL,
    check_response,
    decode_tool_arguments,
    extract_content_and_commentary,
    format_instructions,
    has_valid_artifact_content,
    parse_tool_calls,
    validate_and_format_response,
)


@pytest.fixture
def test_format():
    return ArtifactFormat.for_slug("test")


@pytest.fixture
def no_commentary_format():
    return ArtifactFormat(start_tag="[TEST]", end_tag="[/TEST]",
                          commentary_start_tag=None, commentary_end_tag=None)


class TestArtifactFormat:

    def test_for_slug(self):
        fmt = ArtifactFormat.for_slug("c4_context", syntax="mermaid")
        assert fmt.start_tag == "[C4_CONTEXT]"
        assert fmt.end_tag == "[/C4_CONTEXT]"
        assert fmt.syntax == "mermaid"
        assert fmt.commentary_start_tag == "[COMMENTARY]"
        assert fmt.commentary_end_tag == "[/COMMENTARY]"

    def test_fallback_format(self):
        fmt = ArtifactFormat.for_slug(None)
        assert fmt.start_tag == "[ARTIFACT]"
        assert fmt.end_tag == "[/ARTIFACT]"
        assert fmt.syntax == "markdown"


class TestExtractContentAndCommentary:

    def test_commentary_before_content(self, test_format):
        parsed = extract_content_and_commentary(
            "[COMMENTARY]c[/COMMENTARY]\n[TEST]body[/TEST]", test_format
        )
        assert parsed.artifact_content == "body"
        assert parsed.commentary == "c"
        assert parsed.raw_response == "[COMMENTARY]c[/COMMENTARY]\n[TEST]body[/TEST]"

    def test_content_is_stripped(self, test_format):
        parsed = extract_content_and_commentary("[TEST]\n  # Title\n\n[/TEST]", test_format)
        assert parsed.artifact_content == "# Title"

    def test_text_outside_tags_becomes_commentary(self, test_format):
        parsed = extract_content_and_commentary(
            "Intro text.\n[TEST]body[/TEST]\nClosing words.", test_format
        )
        assert parsed.artifact_content == "body"
        assert parsed.commentary == "Intro text.\n\nClosing words."

    def test_whole_response_is_commentary_without_tags(self, test_format):
        parsed = extract_content_and_commentary("  Just chatting.  ", test_format)
        assert parsed.artifact_content == ""
        assert parsed.commentary == "Just chatting."

    def test_multiple_pairs_span_first_start_to_last_end(self, test_format):
        parsed = extract_content_and_commentary(
            "[TEST]one[/TEST] middle [TEST]two[/TEST]", test_format
        )
        assert parsed.artifact_content == "one[/TEST] middle [TEST]two"

    def test_reversed_commentary_tags_fall_back_to_outside_text(self, test_format):
        parsed = extract_content_and_commentary(
            "[/COMMENTARY]x[COMMENTARY] [TEST]body[/TEST]", test_format
        )
        assert parsed.artifact_content == "body"
        assert parsed.commentary == "[/COMMENTARY]x[COMMENTARY]"

    def test_format_without_commentary_tags(self, no_commentary_format):
        parsed = extract_content_and_commentary("before [TEST]b[/TEST]", no_commentary_format)
        assert parsed.artifact_content == "b"
        assert parsed.commentary == "before"


class TestHasValidArtifactContent:

    def test_valid(self, test_format):
        assert has_valid_artifact_content("[TEST]x[/TEST]", test_format)

    def test_end_before_start(self, test_format):
        assert not has_valid_artifact_content("[/TEST]x[TEST]", test_format)

    @pytest.mark.parametrize("text", ["[TEST]x", "x[/TEST]", "nothing"])
    def test_missing_tag(self, test_format, text):
        assert not has_valid_artifact_content(text, test_format)


class TestValidateAndFormat:

    def test_update_without_content_raises(self):
        with pytest.raises(EmptyArtifactContentError):
            validate_and_format_response(ParsedResponse(raw_response="r", commentary="c"), True)

    def test_update_with_blank_content_raises(self):
        with pytest.raises(EmptyArtifactContentError):
            validate_and_format_response(
                ParsedResponse(raw_response="r", artifact_content="   "), True
            )

    def test_kickoff_defaults_missing_fields(self):
        parsed = ParsedResponse(raw_response=None, artifact_content=None, commentary=None)
        result = validate_and_format_response(parsed, False)
        assert result.raw_response == ""
        assert result.artifact_content == ""
        assert result.commentary == ""

    def test_kickoff_returns_input_unchanged(self):
        parsed = ParsedResponse(raw_response="r", artifact_content="a", commentary="c")
        assert validate_and_format_response(parsed, False) == parsed

    def test_check_response_does_not_raise(self):
        outcome = check_response(ParsedResponse(raw_response="r"), True)
        assert not outcome.ok
        assert isinstance(outcome.error, EmptyArtifactContentError)
        assert outcome.error.client_error is True


class TestToolCalls:

    def test_maps_both_tools(self):
        parsed = parse_tool_calls([
            ToolCall(name=GENERATE_CONTENT_TOOL, parameters={"content": " # Doc "}),
            ToolCall(name=COMMENTARY_TOOL, parameters={"commentary": "Done."}),
        ])
        assert parsed.artifact_content == "# Doc"
        assert parsed.commentary == "Done."

    def test_free_text_is_additional_commentary(self):
        parsed = parse_tool_calls(
            [ToolCall(name=COMMENTARY_TOOL, parameters={"commentary": "First"})],
            ["Also this", "  ", "And that"],
        )
        assert parsed.commentary == "First\nAlso this\nAnd that"
        assert parsed.artifact_content == ""

    def test_unknown_tool_is_ignored(self):
        parsed = parse_tool_calls([ToolCall(name="other", parameters={"content": "x"})])
        assert parsed.artifact_content == ""

    def test_missing_content_on_update_fails_validation(self):
        parsed = parse_tool_calls([ToolCall(name=COMMENTARY_TOOL, parameters={"commentary": "c"})])
        with pytest.raises(EmptyArtifactContentError):
            validate_and_format_response(parsed, True)

    def test_decode_tool_arguments(self):
        assert decode_tool_arguments('{"content": "x"}') == {"content": "x"}
        assert decode_tool_arguments({"content": "y"}) == {"content": "y"}
        assert decode_tool_arguments("") == {}
        assert decode_tool_arguments('{"content": ') == {}
        assert decode_tool_arguments("[1, 2]") == {}


class TestFormatInstructions:

    def test_update_requests_content_and_commentary(self, test_format):
        prompt = format_instructions("Please revise", test_format, is_update=True)
        assert prompt.startswith("Please revise")
        assert "[TEST]" in prompt and "[/TEST]" in prompt
        assert "[COMMENTARY]" in prompt

    def test_kickoff_requests_commentary_only(self, test_format):
        prompt = format_instructions("Start", test_format, is_update=False)
        assert "[TEST]" not in prompt
        assert "[COMMENTARY]" in prompt and "[/COMMENTARY]" in prompt
