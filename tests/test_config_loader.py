"""Tests for configuration loading."""

import logging

import pytest

from querygate.config.loader import get_cache_settings, get_logging_settings, load_config
from querygate.errors import ConfigurationError
from querygate.utils.logging import configure_logging, get_logger


def test_load_config_reads_yaml(tmp_path):
    path = tmp_path / "querygate.config.yaml"
    path.write_text("cache:\n  backend: redis\n  redis_url: redis://cache:6379/1\n  default_ttl_minutes: 10\n")

    config = load_config(path)
    settings = get_cache_settings(config)

    assert settings["backend"] == "redis"
    assert settings["redis_url"] == "redis://cache:6379/1"
    assert settings["default_ttl_minutes"] == 10
    assert settings["key_prefix"] == "querygate"


def test_load_config_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.yaml")


def test_empty_file_is_empty_config(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert load_config(path) == {}


def test_non_mapping_document_rejected(tmp_path):
    path = tmp_path / "list.yaml"
    path.write_text("- a\n- b\n")
    with pytest.raises(ConfigurationError):
        load_config(path)


def test_non_mapping_section_rejected(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("cache: yes\n")
    with pytest.raises(ConfigurationError):
        load_config(path)


def test_cache_defaults():
    settings = get_cache_settings(None)
    assert settings == {
        "backend": "memory",
        "redis_url": None,
        "key_prefix": "querygate",
        "default_ttl_minutes": 0,
    }


@pytest.mark.parametrize(
    "section",
    [
        {"backend": "memcached"},
        {"default_ttl_minutes": -1},
        {"default_ttl_minutes": "ten"},
        {"key_prefix": ""},
    ],
)
def test_invalid_cache_settings(section):
    with pytest.raises(ConfigurationError):
        get_cache_settings({"cache": section})


def test_configuration_error_is_value_error():
    assert issubclass(ConfigurationError, ValueError)


def test_logging_settings_and_configure():
    settings = get_logging_settings({"logging": {"level": "debug"}})
    assert settings["level"] == "DEBUG"

    configure_logging(settings["level"])
    assert logging.getLogger("querygate").level == logging.DEBUG
    assert get_logger("querygate.query").name == "querygate.query"


def test_configure_logging_rejects_unknown_level():
    with pytest.raises(ValueError):
        configure_logging("LOUD")
