import os

import pytest

from spend_categorizer.core import settings


@pytest.fixture
def clean_env(monkeypatch):
    # setenv first so monkeypatch restores the original state on teardown
    for key in settings._CONFIG_KEYS + ("CONFIG_DIR",):
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)
    return monkeypatch


def test_read_config_file(tmp_path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text(
        "# analytics settings\n"
        "LOG_LEVEL: debug  # verbose\n"
        "LOG_DIR: '/var/log/spend # app'\n"
        'SIMILARITY_THRESHOLD: "72.5"\n'
        "nested:\n"
        "not a pair\n",
        encoding="utf-8",
    )

    values = settings.read_config_file(str(path))

    assert values == {
        "LOG_LEVEL": "debug",
        "LOG_DIR": "/var/log/spend # app",
        "SIMILARITY_THRESHOLD": "72.5",
    }


def test_read_missing_config_file(tmp_path) -> None:
    assert settings.read_config_file(str(tmp_path / "absent.yaml")) == {}
    assert settings.read_config_file(None) == {}


def test_load_environment_from_config_dir(clean_env, tmp_path) -> None:
    (tmp_path / "config.yaml").write_text("RULES_PAGE_LIMIT: 5\nUNRELATED: x\n", encoding="utf-8")
    clean_env.setenv("CONFIG_DIR", str(tmp_path))

    settings.load_environment()

    assert settings.get_config_path() == str(tmp_path / "config.yaml")
    assert settings.rules_page_limit() == 5
    assert "UNRELATED" not in os.environ


def test_environment_wins_over_config_file(clean_env, tmp_path) -> None:
    (tmp_path / "config.yaml").write_text("SIMILARITY_THRESHOLD: 90\n", encoding="utf-8")
    clean_env.setenv("CONFIG_DIR", str(tmp_path))
    clean_env.setenv("SIMILARITY_THRESHOLD", "75")

    settings.load_environment()

    assert settings.similarity_threshold() == 75.0


@pytest.mark.parametrize("raw", ["abc", "0", "-3"])
def test_rules_page_limit_falls_back(clean_env, raw) -> None:
    clean_env.setenv("RULES_PAGE_LIMIT", raw)

    assert settings.rules_page_limit() == settings.DEFAULT_RULES_PAGE_LIMIT


def test_get_env_int(clean_env) -> None:
    clean_env.setenv("SOME_INT", "12")
    assert settings.get_env_int("SOME_INT", 3) == 12
    assert settings.get_env_int("MISSING_INT", 3) == 3


@pytest.mark.parametrize("raw", ["high", "-1", "100.5"])
def test_similarity_threshold_falls_back(clean_env, raw) -> None:
    clean_env.setenv("SIMILARITY_THRESHOLD", raw)

    assert settings.similarity_threshold() == settings.DEFAULT_SIMILARITY_THRESHOLD
