"""Tests for settings and validation contexts."""

import json
import os

import pytest

from dataknobs_validator import (
    ConfigurationError,
    MetadataCache,
    RuleRegistry,
    ValidatorContext,
    ValidatorSettings,
    get_default_context,
    reset_default_context,
    set_default_context,
)


class TestValidatorSettings:
    """Test settings loading."""

    def test_defaults(self):
        settings = ValidatorSettings()
        assert settings.locale == "en"
        assert settings.strict_email is False
        assert settings.email_regex == r"^[\w.-]+@[\w.-]+\.[a-zA-Z]{2,}$"
        assert settings.detect_cycles is True
        assert settings.message_dirs == []
        assert settings.messages == {}

    def test_from_dict_flat_and_sectioned(self):
        assert ValidatorSettings.from_dict({"locale": "fr"}).locale == "fr"
        assert ValidatorSettings.from_dict({"validator": {"strict_email": True}}).strict_email

    def test_unknown_key(self):
        with pytest.raises(ConfigurationError) as exc_info:
            ValidatorSettings.from_dict({"locale": "fr", "colour": "blue"})
        assert exc_info.value.context["unknown"] == ["colour"]

    def test_bad_type(self):
        with pytest.raises(ConfigurationError):
            ValidatorSettings.from_dict({"strict_email": "yes"})

    def test_from_yaml_file(self, tmp_path):
        path = tmp_path / "validator.yaml"
        path.write_text(
            "validator:\n"
            "  locale: es\n"
            "  messages:\n"
            "    es:\n"
            "      error.notNull: \"{0} es obligatorio\"\n",
            encoding="utf-8",
        )
        settings = ValidatorSettings.from_file(path)
        assert settings.locale == "es"
        assert settings.messages == {"es": {"error.notNull": "{0} es obligatorio"}}

    def test_from_json_file(self, tmp_path):
        path = tmp_path / "validator.json"
        path.write_text(json.dumps({"detect_cycles": False}), encoding="utf-8")
        assert ValidatorSettings.from_file(path).detect_cycles is False

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            ValidatorSettings.from_file(tmp_path / "absent.yaml")

    def test_malformed_file(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("- just\n- a list\n", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            ValidatorSettings.from_file(path)

    def test_env_overrides(self):
        settings = ValidatorSettings().with_env_overrides(
            {
                "DATAKNOBS_VALIDATOR__LOCALE": "fr",
                "DATAKNOBS_VALIDATOR__STRICT_EMAIL": "true",
                "DATAKNOBS_VALIDATOR__DETECT_CYCLES": "off",
                "DATAKNOBS_VALIDATOR__UNKNOWN": "ignored",
                "OTHER_VARIABLE": "ignored",
            }
        )
        assert settings.locale == "fr"
        assert settings.strict_email is True
        assert settings.detect_cycles is False

    def test_env_override_bad_boolean(self):
        with pytest.raises(ConfigurationError):
            ValidatorSettings().with_env_overrides({"DATAKNOBS_VALIDATOR__STRICT_EMAIL": "maybe"})

    def test_env_override_list(self, monkeypatch, tmp_path):
        dirs = os.pathsep.join([str(tmp_path / "a"), str(tmp_path / "b")])
        monkeypatch.setenv("DATAKNOBS_VALIDATOR__MESSAGE_DIRS", dirs)
        settings = ValidatorSettings().with_env_overrides()
        assert settings.message_dirs == [str(tmp_path / "a"), str(tmp_path / "b")]

    def test_to_dict_is_a_copy(self):
        settings = ValidatorSettings(message_dirs=["x"])
        data = settings.to_dict()
        data["message_dirs"].append("y")
        assert settings.message_dirs == ["x"]


class TestValidatorContext:
    """Test context construction."""

    def test_defaults(self):
        context = ValidatorContext()
        assert context.settings == ValidatorSettings()
        assert context.email_regex is None
        assert len(context.cache) == 0
        assert context.messages.locale == "en"

    def test_explicit_empty_collaborators_kept(self):
        cache = MetadataCache()
        rules = RuleRegistry()
        context = ValidatorContext(cache=cache, rules=rules)
        assert context.cache is cache
        assert context.rules is rules

    def test_strict_email_compiles_regex(self):
        context = ValidatorContext(ValidatorSettings(strict_email=True))
        assert context.email_regex.fullmatch("user@example.com")

    def test_bad_email_regex(self):
        with pytest.raises(ConfigurationError):
            ValidatorContext(ValidatorSettings(strict_email=True, email_regex="("))

    def test_inline_messages(self):
        context = ValidatorContext.from_dict(
            {"locale": "de", "messages": {"de": {"error": {"notNull": "{0} fehlt"}}}}
        )
        assert context.messages.get_message("error.notNull", "Name") == "Name fehlt"

    def test_from_file_with_env(self, tmp_path, monkeypatch):
        path = tmp_path / "validator.yaml"
        path.write_text("locale: es\n", encoding="utf-8")
        monkeypatch.setenv("DATAKNOBS_VALIDATOR__LOCALE", "fr")

        assert ValidatorContext.from_file(path).settings.locale == "fr"
        assert ValidatorContext.from_file(path, use_env=False).settings.locale == "es"


class TestDefaultContext:
    """Test the process-wide default context."""

    def test_created_once(self):
        assert get_default_context() is get_default_context()

    def test_set_and_reset(self):
        custom = ValidatorContext(ValidatorSettings(locale="fr"))
        set_default_context(custom)
        assert get_default_context() is custom

        reset_default_context()
        assert get_default_context() is not custom
