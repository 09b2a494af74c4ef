#!/usr/bin/env python3
# tests/test_jisyo_cli.py - Unit tests for jisyo_cli.py

import pytest
import json
import logging
import os
import sys
import shutil
import tempfile
from unittest.mock import MagicMock, patch

# Add src directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

import jisyo_cli
import util


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files"""
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    shutil.rmtree(temp_dir)


@pytest.fixture
def config_path(temp_dir):
    global_path = os.path.join(temp_dir, 'SKK-JISYO.test')
    with open(global_path, 'wb') as f:
        f.write(";; okuri-ari entries.\nわたr /渡/\n;; okuri-nasi entries.\n"
                "あい /愛/藍;植物/\nあいさつ /挨拶/\n".encode('euc-jp'))

    config = util.get_default_config_data()
    config['dictionaries']['global'] = [[global_path, 'euc-jp']]
    config['dictionaries']['user'] = {
        'path': os.path.join(temp_dir, 'user-jisyo'),
        'rank_path': os.path.join(temp_dir, 'rank.json'),
    }
    config['immediately_jisyo_rw'] = False
    path = os.path.join(temp_dir, 'config.json')
    util.save_config_data(config, path)
    return path


class TestCli:
    """Test suite for jisyo_cli.main()"""

    def test_no_command_prints_help(self, capsys):
        assert jisyo_cli.main([]) == 1
        assert 'usage' in capsys.readouterr().out

    def test_lookup_strips_annotations(self, config_path, capsys):
        assert jisyo_cli.main(['-c', config_path, 'lookup', 'あい']) == 0
        assert capsys.readouterr().out.split() == ['愛', '藍']

    def test_lookup_raw(self, config_path, capsys):
        assert jisyo_cli.main(['-c', config_path, 'lookup', '--raw', 'あい']) == 0
        assert capsys.readouterr().out.split() == ['愛', '藍;植物']

    def test_lookup_okuri_ari(self, config_path, capsys):
        assert jisyo_cli.main(['-c', config_path, 'lookup', '-a', 'わたr']) == 0
        assert capsys.readouterr().out.split() == ['渡']

    def test_lookup_not_found(self, config_path, capsys):
        assert jisyo_cli.main(['-c', config_path, 'lookup', 'ない']) == 1

    def test_complete(self, config_path, capsys):
        assert jisyo_cli.main(['-c', config_path, 'complete', 'あい']) == 0
        assert capsys.readouterr().out.splitlines() == ['あい /愛/藍;植物/', 'あいさつ /挨拶/']

    def test_register_persists(self, config_path, temp_dir, capsys):
        assert jisyo_cli.main(['-c', config_path, 'register', 'あい', '哀']) == 0
        capsys.readouterr()

        assert jisyo_cli.main(['-c', config_path, 'lookup', 'あい']) == 0
        assert capsys.readouterr().out.split() == ['哀', '愛', '藍']

        assert jisyo_cli.main(['-c', config_path, 'ranks', 'あい']) == 0
        assert capsys.readouterr().out.split()[1] == '哀'

    def test_purge_persists(self, config_path, capsys):
        jisyo_cli.main(['-c', config_path, 'register', 'ほげ', '保下'])
        assert jisyo_cli.main(['-c', config_path, 'purge', 'ほげ', '保下']) == 0
        capsys.readouterr()
        assert jisyo_cli.main(['-c', config_path, 'lookup', 'ほげ']) == 1

    def test_register_without_user_jisyo(self, temp_dir, capsys):
        path = os.path.join(temp_dir, 'config.json')
        util.save_config_data(util.get_default_config_data(), path)
        assert jisyo_cli.main(['-c', path, 'register', 'ほげ', '保下']) == 1
        assert 'ERROR' in capsys.readouterr().out


class TestCliLogging:
    """Test suite for logging setup in jisyo_cli.main()"""

    @pytest.fixture
    def root_level(self):
        root = logging.getLogger()
        level = root.level
        yield
        root.setLevel(level)

    def test_logging_is_configured_before_config_is_read(self, config_path, root_level):
        calls = MagicMock()
        with patch('jisyo_cli.setup_logging', calls.setup_logging), \
                patch('jisyo_cli.util.get_config_data', wraps=util.get_config_data) as get_config_data:
            calls.attach_mock(get_config_data, 'get_config_data')
            jisyo_cli.main(['-c', config_path, 'lookup', 'あい'])
        names = [name for name, _, _ in calls.mock_calls]
        assert names.index('setup_logging') < names.index('get_config_data')

    def test_config_warnings_are_logged_once(self, temp_dir, caplog, root_level):
        path = os.path.join(temp_dir, 'config.json')
        config = util.get_default_config_data()
        del config['debug']
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(config, f)

        with caplog.at_level(logging.WARNING):
            jisyo_cli.main(['-c', path, 'lookup', 'あい'])

        assert len([r for r in caplog.records if '"debug" was not found' in r.getMessage()]) == 1

    def test_debug_flag_raises_log_level(self, config_path, root_level):
        with open(config_path, encoding='utf-8') as f:
            config = json.load(f)
        config['debug'] = True
        util.save_config_data(config, config_path)

        with patch('jisyo_cli.setup_logging'):
            logging.getLogger().setLevel(logging.WARNING)
            jisyo_cli.main(['-c', config_path, 'lookup', 'あい'])

        assert logging.getLogger().level == logging.DEBUG
