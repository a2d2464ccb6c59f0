"""Tests for EdgeSettings environment loading and validation."""

from __future__ import annotations

import dataclasses
from pathlib import Path

import pytest

from spa_edge.settings import (
    DEFAULT_PORT,
    DEFAULT_PROXY_PATHS,
    DEFAULT_PROXY_TIMEOUT,
    EdgeSettings,
    SettingsError,
    normalize_proxy_paths,
    split_allow_list,
    split_csv,
)


class TestSplitCsv:

    def test_trims_and_drops_blanks(self):
        assert split_csv(' 10.0.0.1 , ,10.0.1. ,') == ('10.0.0.1', '10.0.1.')

    def test_empty(self):
        assert split_csv('') == ()
        assert split_csv(' , ') == ()


class TestSplitAllowList:

    def test_keeps_entries_as_written(self):
        assert split_allow_list('10.0.0.1, 192.168.1.') == ('10.0.0.1', ' 192.168.1.')

    def test_keeps_blank_entries(self):
        assert split_allow_list('10.0.0.,') == ('10.0.0.', '')

    def test_empty(self):
        assert split_allow_list('') == ()


class TestNormalizeProxyPaths:

    def test_keeps_configured(self):
        assert normalize_proxy_paths(['/api', ' /query ']) == ('/api', '/query')

    def test_empty_means_default(self):
        assert normalize_proxy_paths([]) == DEFAULT_PROXY_PATHS
        assert normalize_proxy_paths(['', '  ']) == DEFAULT_PROXY_PATHS


class TestFromEnv:

    def test_defaults(self, dist_dir):
        settings = EdgeSettings.from_env({'DIST_DIR': str(dist_dir)})
        assert settings.dist_dir == dist_dir
        assert settings.host == '0.0.0.0'
        assert settings.port == DEFAULT_PORT
        assert settings.allow_remote_ips == ()
        assert settings.proxy_url == ''
        assert settings.proxy_enabled is False
        assert settings.proxy_paths == ('/query',)
        assert settings.proxy_timeout == DEFAULT_PROXY_TIMEOUT
        assert settings.validate() == []

    def test_all_variables(self, dist_dir):
        settings = EdgeSettings.from_env({
            'DIST_DIR': str(dist_dir),
            'HOST': '127.0.0.1',
            'PORT': '9090',
            'ALLOW_REMOTE_IPS': '10.0.0.1, 192.168.1.',
            'PROXY_URL': ' http://backend-server:8081 ',
            'PROXY_PATHS': '/api,/query,/graphql',
            'PROXY_TIMEOUT': '2.5',
        })
        assert settings.host == '127.0.0.1'
        assert settings.port == 9090
        assert settings.allow_remote_ips == ('10.0.0.1', ' 192.168.1.')
        assert settings.proxy_url == 'http://backend-server:8081'
        assert settings.proxy_enabled is True
        assert settings.proxy_paths == ('/api', '/query', '/graphql')
        assert settings.proxy_timeout == 2.5

    def test_blank_entry_in_list_is_read_from_env(self, dist_dir):
        settings = EdgeSettings.from_env({
            'DIST_DIR': str(dist_dir),
            'ALLOW_REMOTE_IPS': '10.0.0.,',
        })
        assert settings.allow_remote_ips == ('10.0.0.', '')

    def test_blank_proxy_paths_use_default(self, dist_dir):
        settings = EdgeSettings.from_env({'DIST_DIR': str(dist_dir), 'PROXY_PATHS': ' , '})
        assert settings.proxy_paths == DEFAULT_PROXY_PATHS

    def test_missing_dist_dir(self):
        settings = EdgeSettings.from_env({})
        assert settings.dist_dir is None
        assert settings.validate() == ['DIST_DIR is required']

    def test_non_integer_port(self):
        with pytest.raises(SettingsError, match='PORT must be an integer'):
            EdgeSettings.from_env({'PORT': 'eighty'})

    def test_non_numeric_timeout(self):
        with pytest.raises(SettingsError, match='PROXY_TIMEOUT must be a number'):
            EdgeSettings.from_env({'PROXY_TIMEOUT': 'soon'})


class TestValidate:

    def test_nonexistent_directory(self, tmp_path):
        missing = tmp_path / 'missing'
        errors = EdgeSettings(dist_dir=missing).validate()
        assert errors == [f'Directory {missing} does not exist']

    def test_file_is_not_a_directory(self, tmp_path):
        target = tmp_path / 'file.txt'
        target.write_text('x')
        assert EdgeSettings(dist_dir=target).validate() == [
            f'Directory {target} does not exist',
        ]

    @pytest.mark.parametrize('url', ['backend:8081', 'ftp://backend', 'http://'])
    def test_bad_proxy_url(self, dist_dir, url):
        errors = EdgeSettings(dist_dir=dist_dir, proxy_url=url).validate()
        assert len(errors) == 1
        assert errors[0].startswith('PROXY_URL must be an http(s) URL')

    @pytest.mark.parametrize('port', [0, -1, 65536])
    def test_bad_port(self, dist_dir, port):
        assert EdgeSettings(dist_dir=dist_dir, port=port).validate() == [
            f'PORT must be between 1 and 65535, got {port}',
        ]

    def test_bad_timeout(self, dist_dir):
        errors = EdgeSettings(dist_dir=dist_dir, proxy_timeout=0).validate()
        assert errors == ['PROXY_TIMEOUT must be positive, got 0']

    def test_require_valid_collects_every_error(self, tmp_path):
        settings = EdgeSettings(dist_dir=tmp_path / 'missing', port=0, proxy_url='nope')
        with pytest.raises(SettingsError) as excinfo:
            settings.require_valid()
        assert len(excinfo.value.errors) == 3
        assert 'Invalid configuration' in str(excinfo.value)

    def test_require_valid_returns_self(self, dist_dir):
        settings = EdgeSettings(dist_dir=dist_dir)
        assert settings.require_valid() is settings


class TestImmutability:

    def test_frozen(self, dist_dir):
        settings = EdgeSettings(dist_dir=dist_dir)
        with pytest.raises(dataclasses.FrozenInstanceError):
            settings.port = 9000  # type: ignore[misc]

    def test_string_dist_dir_coerced(self, dist_dir):
        settings = EdgeSettings(dist_dir=str(dist_dir))  # type: ignore[arg-type]
        assert isinstance(settings.dist_dir, Path)

    def test_list_inputs_coerced(self, dist_dir):
        settings = EdgeSettings(
            dist_dir=dist_dir,
            allow_remote_ips=['10.0.0.1'],  # type: ignore[arg-type]
            proxy_paths=['/api'],  # type: ignore[arg-type]
        )
        assert settings.allow_remote_ips == ('10.0.0.1',)
        assert settings.proxy_paths == ('/api',)
