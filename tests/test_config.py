"""
Unit tests for configuration management.

Tests cover:
- Environment variable loading
- Defaults
- Environment file selection
"""
import importlib
import os
import pytest
from unittest.mock import patch

import geo_explorer.config as config_module


@pytest.fixture(autouse=True)
def restore_config():
    yield
    importlib.reload(config_module)


class TestConfigLoading:

    @patch.dict(os.environ, {
        'APP_ENV': 'test',
        'APP_PORT': '9001',
        'OPENAI_MODEL': 'gpt-4o',
        'OPENAI_TEMPERATURE': '0.3',
        'OPENAI_TIMEOUT_SECONDS': '45',
    })
    def test_load_environment_variables(self):
        importlib.reload(config_module)

        assert config_module.APP_PORT == 9001
        assert config_module.OPENAI_MODEL == 'gpt-4o'
        assert config_module.OPENAI_TEMPERATURE == 0.3
        assert config_module.OPENAI_TIMEOUT_SECONDS == 45.0

    @patch.dict(os.environ, {'APP_ENV': 'test'}, clear=True)
    def test_defaults(self):
        with patch('dotenv.load_dotenv'):
            importlib.reload(config_module)

        assert config_module.OPENAI_MODEL == 'gpt-4o-mini'
        assert config_module.OPENAI_TEMPERATURE == 0.0
        assert config_module.OPENAI_TIMEOUT_SECONDS is None
        assert config_module.APP_PORT == 8092
        assert config_module.MAX_QUERY_LENGTH == 5000
        assert config_module.MAX_SESSIONS == 1000
        assert config_module.CORS_ALLOW_METHODS == ["*"]

    @patch.dict(os.environ, {
        'CORS_ORIGINS': 'http://localhost:3000, https://maps.example.com',
        'CORS_ALLOW_METHODS': 'GET,POST',
    })
    def test_cors_lists_parsed(self):
        importlib.reload(config_module)

        assert config_module.CORS_ORIGINS == ['http://localhost:3000', 'https://maps.example.com']
        assert config_module.CORS_ALLOW_METHODS == ['GET', 'POST']


class TestEnvironmentFileSelection:

    @patch.dict(os.environ, {'APP_ENV': 'production'})
    @patch('geo_explorer.config.os.path.exists', return_value=True)
    @patch('geo_explorer.config.load_dotenv')
    def test_production_file(self, mock_load_dotenv, mock_exists):
        config_module.load_environment_config()

        mock_load_dotenv.assert_called_once_with('.env.production')

    @patch.dict(os.environ, {'APP_ENV': 'sit'})
    @patch('geo_explorer.config.os.path.exists', return_value=False)
    @patch('geo_explorer.config.load_dotenv')
    def test_missing_file_falls_back_to_default(self, mock_load_dotenv, mock_exists):
        config_module.load_environment_config()

        mock_load_dotenv.assert_called_once_with()


def test_map_constants():
    assert config_module.FLY_TO_ZOOM == 14
    assert config_module.FIT_BOUNDS_PADDING_PX == 50
    assert config_module.DRAW_CLOSE_RADIUS_PX == 25
