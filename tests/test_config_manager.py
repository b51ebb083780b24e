"""Tests for config.config_manager: YAML-backed settings."""
import pytest
import yaml

from config.config_manager import DEFAULT_CONFIG, ConfigManager


class TestConfigManager:
    def test_missing_file_writes_defaults(self, tmp_path):
        path = tmp_path / "flashcull" / "config.yaml"
        cm = ConfigManager(str(path))
        assert path.exists()
        assert cm.get("trash.dir_name") == "_Trash"
        assert cm.get("preview.min_segment_size") == 50_000

    def test_user_values_merge_over_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(yaml.dump({"preview": {"workers": 8}, "logging_level": "DEBUG"}))
        cm = ConfigManager(str(path))
        assert cm.get("preview.workers") == 8
        assert cm.get("preview.heic_quality") == 0.5
        assert cm.logging_level == "DEBUG"

    def test_defaults_are_not_shared(self, tmp_path):
        cm = ConfigManager(str(tmp_path / "config.yaml"))
        cm.config["preview"]["workers"] = 99
        assert DEFAULT_CONFIG["preview"]["workers"] == 4

    def test_get_default_for_missing_key(self, tmp_path):
        cm = ConfigManager(str(tmp_path / "config.yaml"))
        assert cm.get("no.such.key", "fallback") == "fallback"
        assert cm.get("trash.dir_name.deeper", "fallback") == "fallback"

    def test_set_persists(self, tmp_path):
        path = tmp_path / "config.yaml"
        cm = ConfigManager(str(path))
        cm.set("triage.default_columns", 9)
        assert ConfigManager(str(path)).get("triage.default_columns") == 9

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("preview: [unclosed")
        with pytest.raises(ValueError):
            ConfigManager(str(path))

    def test_non_mapping(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(ValueError):
            ConfigManager(str(path))

    def test_xdg_config_home(self, tmp_path, monkeypatch):
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
        cm = ConfigManager()
        assert cm.config_path == str(tmp_path / "flashcull" / "config.yaml")

    def test_nested_merge_keeps_sibling_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(yaml.dump({"hotkeys": {"mark_keep": {"sequence": "K"}}}))
        cm = ConfigManager(str(path))
        assert cm.get("hotkeys.mark_keep.sequence") == "K"
        assert cm.get("hotkeys.mark_keep.description") == "Mark image as keep"
        assert cm.get("hotkeys.mark_reject.sequence") == "Down"

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")
        assert ConfigManager(str(path)).get("trash.dir_name") == "_Trash"

    def test_set_replaces_scalar_with_table(self, tmp_path):
        cm = ConfigManager(str(tmp_path / "config.yaml"))
        cm.set("logging_level.console", "DEBUG")
        assert cm.get("logging_level.console") == "DEBUG"

    def test_none_value_counts_as_unset(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(yaml.dump({"trash": {"dir_name": None}}))
        assert ConfigManager(str(path)).get("trash.dir_name", "_Trash") == "_Trash"
