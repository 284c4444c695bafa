"""Unit tests for provider retries and JSON response parsing."""

import pytest
from conftest import FakeProvider

from vetter.utils.llm import (
    AnthropicProvider,
    LLMResponseParseError,
    LLMServiceError,
    get_provider,
    parse_json_object,
    strip_json_wrapping,
)


@pytest.fixture
def sleeps(monkeypatch):
    """Record backoff delays instead of sleeping."""
    delays = []
    monkeypatch.setattr("vetter.utils.llm.time.sleep", delays.append)
    return delays


# =============================================================================
# RESPONSE PARSING
# =============================================================================


@pytest.mark.unit
@pytest.mark.parametrize(
    "text,expected",
    [
        ('{"a": 1}', {"a": 1}),
        ('Here is the evaluation:\n```json\n{"a": 1}\n```', {"a": 1}),
        ('```\n{"a": [1, 2]}\n```\n', {"a": [1, 2]}),
        ('Result: {"a": {"b": 2}}', {"a": {"b": 2}}),
        ('{"a": 1}\n\nLet me know if you need anything else.', {"a": 1}),
    ],
)
def test_parse_json_object(text, expected):
    """Test commentary, code fences and trailing text are tolerated."""
    assert parse_json_object(text) == expected


@pytest.mark.unit
@pytest.mark.parametrize(
    "text,message",
    [
        ("no json here", "No JSON object"),
        ("[1, 2, 3]", "Expected a JSON object"),
        ("{'a': 1}", "Invalid JSON"),
    ],
)
def test_parse_json_object_errors(text, message):
    with pytest.raises(LLMResponseParseError, match=message):
        parse_json_object(text)


@pytest.mark.unit
def test_parse_error_is_a_service_error():
    """Test callers catching LLMServiceError also see parse failures."""
    assert issubclass(LLMResponseParseError, LLMServiceError)


@pytest.mark.unit
def test_strip_json_wrapping_leaves_plain_json():
    assert strip_json_wrapping('  {"a": 1}  ') == '{"a": 1}'


# =============================================================================
# PROVIDER RETRIES
# =============================================================================


@pytest.mark.unit
def test_generate_retries_transient_errors(sleeps):
    """Test retryable errors back off exponentially and then succeed."""
    provider = FakeProvider("{}", failures=[ConnectionError("reset"), ConnectionError("reset")])

    response = provider.generate("system", "user", max_tokens=100)

    assert response.content == "{}"
    assert len(provider.calls) == 3
    assert sleeps == [1.0, 2.0]


@pytest.mark.unit
def test_generate_gives_up_after_max_retries(sleeps):
    """Test exhausted retries surface as LLMServiceError."""
    provider = FakeProvider("{}", failures=[ConnectionError("reset")] * 3)

    with pytest.raises(LLMServiceError, match="fake/fake-model request failed"):
        provider.generate("system", "user")

    assert len(provider.calls) == 3
    assert sleeps == [1.0, 2.0]


@pytest.mark.unit
def test_generate_does_not_retry_permanent_errors(sleeps):
    """Test a non-retryable service error fails on the first call."""
    provider = FakeProvider("{}", failures=[RuntimeError("400 bad request")])

    with pytest.raises(LLMServiceError) as exc_info:
        provider.generate("system", "user")

    assert isinstance(exc_info.value.__cause__, RuntimeError)
    assert len(provider.calls) == 1
    assert sleeps == []


@pytest.mark.unit
def test_update_model_refreshes_name():
    provider = FakeProvider("{}")

    provider.update_model("other-model")

    assert provider.name == "fake/other-model"


# =============================================================================
# FACTORY
# =============================================================================


@pytest.mark.unit
def test_get_provider_unknown_name():
    with pytest.raises(ValueError, match="Unknown provider"):
        get_provider(provider_name="carrier-pigeon")


@pytest.mark.unit
def test_anthropic_provider_requires_api_key(monkeypatch):
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)

    with pytest.raises(ValueError, match="ANTHROPIC_API_KEY"):
        AnthropicProvider()


@pytest.mark.unit
def test_get_provider_builds_anthropic(monkeypatch):
    """Test the factory passes model and timeout through without a network call."""
    monkeypatch.delenv("LLM_PROVIDER", raising=False)

    provider = get_provider(model="claude-test", api_key="sk-test", timeout_s=5.0)

    assert isinstance(provider, AnthropicProvider)
    assert provider.name == "anthropic/claude-test"
