"""
Tests for YAML configuration loading.
"""

import yaml

from imagestudio.config import (
    DEFAULT_CONFIG_PATH,
    get_config_value,
    get_default_config,
    load_config,
    save_config,
    update_config_value,
)


class TestLoadConfig:
    """Test configuration loading and defaults."""

    def test_bundled_config_matches_defaults(self):
        assert DEFAULT_CONFIG_PATH.exists()
        assert load_config() == get_default_config()

    def test_missing_file_uses_defaults(self, tmp_path):
        assert load_config(tmp_path / "missing.yaml") == get_default_config()

    def test_partial_file_merged_over_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("composition:\n  output_width: 512\nbatch:\n  max_workers: 2\n")
        config = load_config(path)
        assert config['composition']['output_width'] == 512
        assert config['composition']['interpolation'] == 'linear'
        assert config['batch']['max_workers'] == 2
        assert config['logging']['level'] == 'INFO'

    def test_environment_variables_expanded(self, tmp_path, monkeypatch):
        monkeypatch.setenv("IMAGESTUDIO_TEST_LEVEL", "DEBUG")
        path = tmp_path / "config.yaml"
        path.write_text("logging:\n  level: ${IMAGESTUDIO_TEST_LEVEL}\n  format: ${UNSET_IMAGESTUDIO_VAR}\n")
        config = load_config(path)
        assert config['logging']['level'] == 'DEBUG'
        assert config['logging']['format'] == '${UNSET_IMAGESTUDIO_VAR}'

    def test_invalid_yaml_uses_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("composition: [unclosed\n")
        assert load_config(path) == get_default_config()

    def test_non_mapping_uses_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- just\n- a list\n")
        assert load_config(path) == get_default_config()

    def test_defaults_are_independent_copies(self):
        config = get_default_config()
        config['aspect_ratios']['custom'].append("5:4")
        assert get_default_config()['aspect_ratios']['custom'] == []


class TestConfigValues:
    """Test dot-path access helpers."""

    def test_get_nested_value(self):
        config = get_default_config()
        assert get_config_value(config, 'composition.output_width') == 1024
        assert get_config_value(config, 'composition.missing', 'fallback') == 'fallback'
        assert get_config_value(config, 'composition.output_width.deeper', 7) == 7

    def test_update_creates_sections(self):
        config = {}
        update_config_value(config, 'aspect_ratios.custom', ['5:4'])
        assert config == {'aspect_ratios': {'custom': ['5:4']}}

    def test_save_round_trip(self, tmp_path):
        path = tmp_path / "saved.yaml"
        config = get_default_config()
        update_config_value(config, 'composition.jpeg_quality', 80)
        assert save_config(config, path)
        assert yaml.safe_load(path.read_text())['composition']['jpeg_quality'] == 80
        assert load_config(path) == config

    def test_save_failure_returns_false(self, tmp_path):
        assert not save_config(get_default_config(), tmp_path / "missing" / "config.yaml")
