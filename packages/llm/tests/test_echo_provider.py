"""Tests for EchoProvider."""

import pytest

from artiforge_llm.base import AIConfig, AIMessage, ArtifactFormat, ModelCapability, ProviderKind
from artiforge_llm.exceptions import EmptyArtifactContentError, ProviderError
from artiforge_llm.providers import EchoProvider, StandardEchoProvider
from artiforge_llm.testing import tagged_response, tool_response


@pytest.fixture
def echo_config():
    """Create basic echo config."""
    return AIConfig(provider="echo", model="echo-model")


@pytest.fixture
def echo_config_custom():
    """Create echo config with custom options."""
    return AIConfig(
        provider="echo",
        model="echo-model",
        options={"echo_prefix": "Test: ", "chunk_size": 4, "stream_delay": 0.0},
    )


@pytest.fixture
async def echo_provider(echo_config):
    """Create and initialize EchoProvider."""
    provider = EchoProvider(echo_config)
    await provider.initialize()
    yield provider
    await provider.close()


@pytest.fixture
def fmt():
    return ArtifactFormat.for_slug("vision")


def test_echo_provider_creation(echo_config):
    """Test EchoProvider creation."""
    provider = EchoProvider(echo_config)
    assert provider.config.provider == "echo"
    assert provider.default_model == "echo-model"
    assert provider.echo_prefix == "Echo: "
    assert provider.chunk_size == 8
    assert provider.kind is ProviderKind.STREAMING
    assert ModelCapability.STREAMING in provider.get_capabilities()


def test_echo_provider_custom_options(echo_config_custom):
    provider = EchoProvider(echo_config_custom)
    assert provider.echo_prefix == "Test: "
    assert provider.chunk_size == 4


def test_echo_provider_from_dict():
    provider = EchoProvider({"provider": "echo", "default_model": "m"})
    assert provider.default_model == "m"


@pytest.mark.asyncio
async def test_kickoff_echo_is_commentary(echo_provider, fmt):
    result = await echo_provider.generate_response("sys", "Hello", fmt, is_update=False)
    parsed = echo_provider.parse_response(result, fmt, is_update=False)
    assert parsed.artifact_content == ""
    assert parsed.commentary == "Echo: Hello"


@pytest.mark.asyncio
async def test_update_echo_is_content(echo_provider, fmt):
    result = await echo_provider.generate_response("sys", "Hello", fmt, is_update=True)
    parsed = echo_provider.parse_response(result, fmt, is_update=True)
    assert parsed.artifact_content == "Echo: Hello"


@pytest.mark.asyncio
async def test_scripted_responses_in_order(echo_provider, fmt):
    echo_provider.set_responses([
        tagged_response("vision", commentary="First question"),
        tagged_response("vision", content="# Vision", commentary="Drafted"),
    ])

    first = await echo_provider.generate_response("s", "u1", fmt)
    second = await echo_provider.generate_response("s", "u2", fmt, is_update=True)

    assert echo_provider.parse_response(first, fmt).commentary == "First question"
    parsed = echo_provider.parse_response(second, fmt, is_update=True)
    assert parsed.artifact_content == "# Vision"
    assert parsed.commentary == "Drafted"
    assert echo_provider.call_count == 2


@pytest.mark.asyncio
async def test_structured_response(echo_provider, fmt):
    echo_provider.add_response(tool_response(content="# From tool", commentary="Tool note"))
    result = await echo_provider.generate_response("s", "u", fmt, is_update=True)
    assert result.parsed_response is not None
    parsed = echo_provider.parse_response(result, fmt, is_update=True)
    assert parsed.artifact_content == "# From tool"
    assert parsed.commentary == "Tool note"


@pytest.mark.asyncio
async def test_scripted_exception_is_raised(echo_provider, fmt):
    echo_provider.add_response(ProviderError("boom", provider="echo"))
    with pytest.raises(ProviderError, match="boom"):
        await echo_provider.generate_response("s", "u", fmt)


@pytest.mark.asyncio
async def test_empty_update_fails_validation(echo_provider, fmt):
    echo_provider.add_response(tagged_response("vision", commentary="no content"))
    result = await echo_provider.generate_response("s", "u", fmt, is_update=True)
    with pytest.raises(EmptyArtifactContentError):
        echo_provider.parse_response(result, fmt, is_update=True)


@pytest.mark.asyncio
async def test_calls_are_recorded(echo_provider, fmt):
    history = [AIMessage(role="user", content="hi"), AIMessage(role="assistant", content="hey")]
    await echo_provider.generate_response("sys", "prompt", fmt, is_update=True,
                                          history=history, model="other-model")
    call = echo_provider.calls[0]
    assert call["system_prompt"] == "sys"
    assert call["user_prompt"] == "prompt"
    assert call["is_update"] is True
    assert call["history"] == [m.to_dict() for m in history]
    assert call["model"] == "other-model"
    assert call["streamed"] is False


@pytest.mark.asyncio
async def test_streaming_chunks(echo_config_custom, fmt):
    provider = EchoProvider(echo_config_custom)
    provider.add_response("abcdefghij")
    chunks = []

    result = await provider.generate_streaming_response(
        "s", "u", fmt, on_chunk=chunks.append
    )

    assert chunks == ["abcd", "efgh", "ij"]
    assert "".join(chunks) == result.raw_response
    assert provider.calls[0]["streamed"] is True


@pytest.mark.asyncio
async def test_streaming_exception_emits_nothing(echo_provider, fmt):
    echo_provider.add_response(ProviderError("down"))
    chunks = []
    with pytest.raises(ProviderError):
        await echo_provider.generate_streaming_response("s", "u", fmt, on_chunk=chunks.append)
    assert chunks == []


@pytest.mark.asyncio
async def test_standard_echo_provider_has_no_streaming(fmt):
    provider = StandardEchoProvider({"provider": "echo-standard", "model": "m"})
    assert provider.kind is ProviderKind.STANDARD
    assert not hasattr(provider, "generate_streaming_response")
    assert provider.get_capabilities() == [ModelCapability.TEXT_GENERATION]

    result = await provider.generate_response("s", "u", fmt, is_update=True)
    assert provider.parse_response(result, fmt, is_update=True).artifact_content == "Echo: u"


@pytest.mark.asyncio
async def test_context_manager(echo_config):
    async with EchoProvider(echo_config) as provider:
        assert provider.is_initialized
    assert not provider.is_initialized


@pytest.mark.asyncio
async def test_streaming_to_async_callback(echo_config_custom, fmt):
    provider = EchoProvider(echo_config_custom)
    provider.add_response("12345678")
    received = []

    async def sink(text):
        received.append(text)

    await provider.generate_streaming_response("s", "u", fmt, on_chunk=sink)
    assert received == ["1234", "5678"]
