"""Tests for settings loading, substitution and overrides."""

import pytest

from artiforge_common.exceptions import ConfigurationError
from artiforge_common.settings import Settings, substitute_variables


class TestSubstitution:

    def test_default_used_when_unset(self):
        assert substitute_variables("${NOPE:anthropic}", {}) == "anthropic"

    def test_bash_style_default(self):
        assert substitute_variables("${NOPE:-gpt-4}", {}) == "gpt-4"

    def test_single_reference_is_type_converted(self):
        assert substitute_variables("${PORT}", {"PORT": "8080"}) == 8080
        assert substitute_variables("${FLAG:false}", {}) is False

    def test_embedded_reference_stays_string(self):
        result = substitute_variables("http://${HOST}:80", {"HOST": "example"})
        assert result == "http://example:80"

    def test_default_may_contain_colons(self):
        value = substitute_variables("${BASE:https://api.openai.com/v1}", {})
        assert value == "https://api.openai.com/v1"

    def test_empty_default(self):
        assert substitute_variables("${KEY:}", {}) == ""

    def test_missing_required_variable(self):
        with pytest.raises(ConfigurationError):
            substitute_variables({"key": "${REQUIRED}"}, {})

    def test_recurses_into_lists_and_dicts(self):
        data = {"a": ["${X}", {"b": "${X}"}]}
        assert substitute_variables(data, {"X": "v"}) == {"a": ["v", {"b": "v"}]}


class TestSettings:

    def test_merge_order(self):
        settings = Settings.load(
            {"ai": {"default_provider": "anthropic", "log_dir": None}},
            {"ai": {"default_provider": "openai"}},
            use_env=False,
        )
        assert settings.get("ai.default_provider") == "openai"
        assert settings.get("ai.log_dir") is None

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("workflow:\n  history_pairs: 5\n", encoding="utf-8")
        settings = Settings.load(path, use_env=False)
        assert settings.get("workflow.history_pairs") == 5

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            Settings.load(tmp_path / "absent.yaml")

    def test_env_override(self):
        settings = Settings.load(
            {"ai": {"providers": {"openai-function-calling": {"api_key": ""}}}},
            environ={
                "ARTIFORGE_AI__DEFAULT_PROVIDER": "openai",
                "ARTIFORGE_AI__PROVIDERS__OPENAI_FUNCTION_CALLING__API_KEY": "sk-test",
            },
        )
        assert settings.get("ai.default_provider") == "openai"
        assert settings.get("ai.providers.openai-function-calling.api_key") == "sk-test"

    def test_get_missing_without_default_raises(self):
        with pytest.raises(ConfigurationError):
            Settings({}).get("ai.default_provider")

    def test_get_missing_with_default(self):
        assert Settings({}).get("ai.x", 3) == 3

    def test_section_must_be_mapping(self):
        settings = Settings({"ai": {"default_provider": "echo"}})
        assert settings.section("ai") == {"default_provider": "echo"}
        with pytest.raises(ConfigurationError):
            settings.section("ai.default_provider")
