"""Tests for configuration loading and state dir resolution."""

from pathlib import Path
import pytest

from bitrot.config import BitrotConfig, load_config, resolve_state_dir
from bitrot.errors import InvalidConfigError


class TestLoadConfig:
    """Test <state_dir>/config.yaml loading."""

    def test_defaults_when_missing(self, tmp_path):
        config = load_config(tmp_path)
        assert config == BitrotConfig()
        assert config.decode_error == "abort"

    def test_load_values(self, tmp_path):
        (tmp_path / "config.yaml").write_text(
            "exclude:\n  - cache\n  - .thumbnails\n"
            "ignore:\n  - '*.tmp'\n"
            "decode_error: reset\n"
        )

        config = load_config(tmp_path)

        assert config.exclude == ["cache", ".thumbnails"]
        assert config.ignore == ["*.tmp"]
        assert config.decode_error == "reset"

    def test_empty_file(self, tmp_path):
        (tmp_path / "config.yaml").write_text("")
        assert load_config(tmp_path) == BitrotConfig()

    def test_invalid_yaml(self, tmp_path):
        (tmp_path / "config.yaml").write_text("exclude: [unterminated\n")
        with pytest.raises(InvalidConfigError):
            load_config(tmp_path)

    def test_wrong_types(self, tmp_path):
        (tmp_path / "config.yaml").write_text("exclude: cache\n")
        with pytest.raises(InvalidConfigError, match="list of strings"):
            load_config(tmp_path)

    def test_unknown_decode_policy(self, tmp_path):
        (tmp_path / "config.yaml").write_text("decode_error: ignore\n")
        with pytest.raises(InvalidConfigError, match="decode_error"):
            load_config(tmp_path)

    def test_top_level_must_be_mapping(self, tmp_path):
        (tmp_path / "config.yaml").write_text("- a\n- b\n")
        with pytest.raises(InvalidConfigError, match="mapping"):
            load_config(tmp_path)


class TestResolveStateDir:
    """Test state directory resolution order."""

    def test_cli_value_wins(self, tmp_path):
        env = {"BITROT_STATE_DIR": str(tmp_path / "env")}
        assert resolve_state_dir(tmp_path / "cli", environ=env) == tmp_path / "cli"

    def test_environment_variable(self, tmp_path):
        env = {"BITROT_STATE_DIR": str(tmp_path / "env")}
        assert resolve_state_dir(None, environ=env) == tmp_path / "env"

    def test_home_default(self, tmp_path, monkeypatch):
        monkeypatch.setattr(Path, "home", lambda: tmp_path)
        assert resolve_state_dir(None, environ={}) == tmp_path / ".bitrot"
