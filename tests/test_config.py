"""Engine configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from artiflow.config import EngineConfig, config_from_dict, load_config


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("ARTIFLOW_LOG_LEVEL", raising=False)
    return tmp_path


def test_defaults_without_config_file():
    config = load_config()
    assert config == EngineConfig()
    assert config.log_level == "WARNING"
    assert config.strict_terminal is True
    assert config.max_plan_steps == 50
    assert config.journal_path is None
    assert config.source is None


def test_artiflow_toml_is_discovered(isolated_cwd: Path):
    (isolated_cwd / "artiflow.toml").write_text(
        'log_level = "debug"\nstrict_terminal = false\nmax_plan_steps = 10\njournal_path = "logs/j.jsonl"\n',
        encoding="utf-8",
    )

    config = load_config()
    assert config.log_level == "DEBUG"
    assert config.strict_terminal is False
    assert config.max_plan_steps == 10
    assert config.journal_path == isolated_cwd / "logs" / "j.jsonl"
    assert config.source == isolated_cwd / "artiflow.toml"


def test_pyproject_tool_table(isolated_cwd: Path):
    (isolated_cwd / "pyproject.toml").write_text(
        '[project]\nname = "x"\n\n[tool.artiflow]\nmax_plan_steps = 7\n',
        encoding="utf-8",
    )
    assert load_config().max_plan_steps == 7


def test_pyproject_without_table_uses_defaults(isolated_cwd: Path):
    (isolated_cwd / "pyproject.toml").write_text('[project]\nname = "x"\n', encoding="utf-8")
    assert load_config() == EngineConfig()


def test_explicit_path(tmp_path: Path):
    path = tmp_path / "custom.toml"
    path.write_text('log_level = "ERROR"\n', encoding="utf-8")
    assert load_config(path).log_level == "ERROR"


def test_explicit_missing_path_raises(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.toml")


def test_env_overrides_log_level(isolated_cwd: Path, monkeypatch: pytest.MonkeyPatch):
    (isolated_cwd / "artiflow.toml").write_text('log_level = "ERROR"\n', encoding="utf-8")
    monkeypatch.setenv("ARTIFLOW_LOG_LEVEL", "info")
    assert load_config().log_level == "INFO"


def test_malformed_toml(isolated_cwd: Path):
    (isolated_cwd / "artiflow.toml").write_text("log_level = \n", encoding="utf-8")
    with pytest.raises(ValueError, match="Failed to parse config TOML"):
        load_config()


@pytest.mark.parametrize(
    "data",
    [
        {"log_level": "LOUD"},
        {"max_plan_steps": 0},
        {"max_plan_steps": "10"},
        {"max_plan_steps": True},
        {"strict_terminal": "yes"},
    ],
)
def test_bad_values_rejected(data):
    with pytest.raises(ValueError):
        config_from_dict(data)


def test_unknown_keys_ignored():
    assert config_from_dict({"colour": "blue"}) == EngineConfig()
