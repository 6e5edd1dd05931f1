"""
Unit tests for configuration loading.
"""

import logging

import pytest

from mesh_agent.config import AgentConfig, load_config, parse_config_file
from mesh_agent.errors import ConfigError


class TestLoadConfig:
    """Test defaults, file values and overrides"""

    def test_defaults(self):
        """Should default to the local collector and a 2 second interval"""
        config = load_config()

        assert config == AgentConfig()
        assert config.server == 'ws://localhost:3001'
        assert config.interval == 2
        assert config.name is None
        assert config.json_logs is True
        assert config.log_level_value == logging.INFO

    def test_file_values(self, tmp_path):
        config_file = tmp_path / 'agent.yml'
        config_file.write_text(
            'agent:\n'
            '  server: wss://collector.example:4001/agent\n'
            '  interval: 5\n'
            '  log_level: debug\n'
            '  json_logs: false\n'
        )

        config = load_config(str(config_file))

        assert config.server == 'wss://collector.example:4001/agent'
        assert config.interval == 5
        assert config.log_level == 'DEBUG'
        assert config.json_logs is False

    def test_overrides_win_over_file(self, tmp_path):
        """Should prefer command-line values and ignore unset ones"""
        config_file = tmp_path / 'agent.yml'
        config_file.write_text('agent:\n  server: ws://file:1/agent\n  interval: 5\n')

        config = load_config(str(config_file), server='ws://cli:2/agent', interval=None)

        assert config.server == 'ws://cli:2/agent'
        assert config.interval == 5

    def test_expands_environment_variables(self, tmp_path, monkeypatch):
        monkeypatch.setenv('COLLECTOR_HOST', 'hub.internal')
        config_file = tmp_path / 'agent.yml'
        config_file.write_text('agent:\n  server: ws://${COLLECTOR_HOST}:4001/agent\n')

        assert load_config(str(config_file)).server == 'ws://hub.internal:4001/agent'

    def test_empty_file_uses_defaults(self, tmp_path):
        config_file = tmp_path / 'agent.yml'
        config_file.write_text('')

        assert load_config(str(config_file)) == AgentConfig()

    @pytest.mark.parametrize('overrides', [
        {'server': 'http://localhost:3001'},
        {'server': 'localhost:3001'},
        {'interval': 0},
        {'interval': 1.5},
        {'interval': True},
        {'log_level': 'LOUD'},
        {'json_logs': 'yes'},
    ])
    def test_invalid_values(self, overrides):
        """Should reject invalid settings with ConfigError"""
        with pytest.raises(ConfigError):
            load_config(**overrides)


class TestParseConfigFile:
    """Test YAML parsing errors"""

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match='not found'):
            parse_config_file(str(tmp_path / 'missing.yml'))

    def test_invalid_yaml(self, tmp_path):
        config_file = tmp_path / 'agent.yml'
        config_file.write_text('agent: [unclosed\n')

        with pytest.raises(ConfigError, match='Invalid YAML'):
            parse_config_file(str(config_file))

    def test_unknown_key(self, tmp_path):
        config_file = tmp_path / 'agent.yml'
        config_file.write_text('agent:\n  retries: 3\n')

        with pytest.raises(ConfigError, match='retries'):
            parse_config_file(str(config_file))

    def test_non_mapping_section(self, tmp_path):
        config_file = tmp_path / 'agent.yml'
        config_file.write_text('agent: ws://localhost:3001\n')

        with pytest.raises(ConfigError):
            parse_config_file(str(config_file))

    def test_other_sections_ignored(self, tmp_path):
        config_file = tmp_path / 'config.yml'
        config_file.write_text('monitoring:\n  enabled: true\nagent:\n  interval: 3\n')

        assert parse_config_file(str(config_file)) == {'interval': 3}
