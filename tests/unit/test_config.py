"""Tests for orchestra.config."""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from orchestra.config import OrchestraConfig, load_config
from orchestra.exceptions import ConfigError


@pytest.fixture
def in_temp_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.chdir(tmp_path)
    return tmp_path


class TestOrchestraConfigDefaults:
    """Built-in defaults."""

    def test_defaults(self, clean_env: None, in_temp_dir: Path) -> None:
        config = OrchestraConfig()
        assert config.stream_chunk_event == "ai-sdk-stream-chunk"
        assert config.handoff_marker == "handoffTo"
        assert config.handoff_result == "Done"
        assert config.live_custom_events is False

    def test_blank_marker_rejected(self, clean_env: None, in_temp_dir: Path) -> None:
        with pytest.raises(ValueError):
            OrchestraConfig(handoff_marker="  ")


class TestLoadConfig:
    """Loading from YAML files and environment variables."""

    def test_no_files_uses_defaults(self, clean_env: None, in_temp_dir: Path) -> None:
        assert load_config() == OrchestraConfig()

    def test_project_file(self, clean_env: None, in_temp_dir: Path) -> None:
        (in_temp_dir / "orchestra.yaml").write_text("handoff_marker: transfer_\n")
        assert load_config().handoff_marker == "transfer_"

    def test_explicit_file_overrides_project_file(
        self, clean_env: None, in_temp_dir: Path
    ) -> None:
        (in_temp_dir / "orchestra.yaml").write_text("handoff_result: Project\n")
        explicit = in_temp_dir / "custom.yaml"
        explicit.write_text("handoff_result: Explicit\nlive_custom_events: true\n")

        config = load_config(explicit)

        assert config.handoff_result == "Explicit"
        assert config.live_custom_events is True

    def test_env_overrides_files(self, clean_env: None, in_temp_dir: Path) -> None:
        explicit = in_temp_dir / "custom.yaml"
        explicit.write_text("stream_chunk_event: from-file\n")

        with patch.dict(os.environ, {"ORCHESTRA_STREAM_CHUNK_EVENT": "from-env"}):
            config = load_config(explicit)

        assert config.stream_chunk_event == "from-env"

    def test_empty_file_uses_defaults(self, clean_env: None, in_temp_dir: Path) -> None:
        (in_temp_dir / "orchestra.yaml").write_text("")
        assert load_config().handoff_marker == "handoffTo"

    def test_missing_explicit_file(self, clean_env: None, in_temp_dir: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            load_config(in_temp_dir / "missing.yaml")

    def test_invalid_yaml(self, clean_env: None, in_temp_dir: Path) -> None:
        explicit = in_temp_dir / "broken.yaml"
        explicit.write_text("handoff_marker: [unclosed\n")

        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(explicit)

    def test_non_mapping_yaml(self, clean_env: None, in_temp_dir: Path) -> None:
        explicit = in_temp_dir / "list.yaml"
        explicit.write_text("- one\n- two\n")

        with pytest.raises(ConfigError, match="must contain a mapping"):
            load_config(explicit)

    def test_invalid_value(self, clean_env: None, in_temp_dir: Path) -> None:
        explicit = in_temp_dir / "bad.yaml"
        explicit.write_text("live_custom_events: sometimes\n")

        with pytest.raises(ConfigError) as exc_info:
            load_config(explicit)

        assert exc_info.value.field == "live_custom_events"
        assert exc_info.value.value == "sometimes"
