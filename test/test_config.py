import json
import os

import pytest

from common.config import ConfigManager

ENV_KEYS = ['PRTG_URL', 'PRTG_USERNAME', 'PRTG_PASSWORD', 'PRTG_PASSHASH', 'PRTG_TIMEOUT', 'PRTG_VERIFY_SSL']


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    yield
    # load_dotenv 直接写入 os.environ，测试结束后清理
    for key in ENV_KEYS:
        os.environ.pop(key, None)


class TestConfigManager:
    """测试配置加载"""

    def test_missing_files(self, tmp_path):
        config = ConfigManager(str(tmp_path / "config.json"), str(tmp_path / ".env"))
        assert config.get('prtg.url') is None
        assert config.get('prtg.timeout', 30) == 30

    def test_json_file(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"prtg": {"url": "https://prtg.local", "timeout": 12}}), encoding="utf-8")

        config = ConfigManager(str(path), str(tmp_path / ".env"))

        assert config.get('prtg.url') == "https://prtg.local"
        assert config.get('prtg.timeout') == 12

    def test_env_overrides_json(self, tmp_path, monkeypatch):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"prtg": {"url": "https://old.local", "username": "json-user"}}),
                        encoding="utf-8")
        monkeypatch.setenv('PRTG_URL', 'https://new.local')

        config = ConfigManager(str(path), str(tmp_path / ".env"))

        assert config.get('prtg.url') == "https://new.local"
        assert config.get('prtg.username') == "json-user"

    def test_type_conversion(self, tmp_path, monkeypatch):
        monkeypatch.setenv('PRTG_TIMEOUT', '7.5')
        monkeypatch.setenv('PRTG_VERIFY_SSL', 'false')

        config = ConfigManager(str(tmp_path / "config.json"), str(tmp_path / ".env"))

        assert config.get('prtg.timeout') == 7.5
        assert config.get('prtg.verify_ssl') is False

    @pytest.mark.parametrize("raw", ["1", "true", "YES", " on "])
    def test_verify_ssl_true_values(self, tmp_path, monkeypatch, raw):
        monkeypatch.setenv('PRTG_VERIFY_SSL', raw)
        config = ConfigManager(str(tmp_path / "config.json"), str(tmp_path / ".env"))
        assert config.get('prtg.verify_ssl') is True

    def test_dotenv_file(self, tmp_path, monkeypatch):
        env_path = tmp_path / ".env"
        env_path.write_text("PRTG_USERNAME=dotenv-user\nPRTG_PASSHASH=4242\n", encoding="utf-8")

        config = ConfigManager(str(tmp_path / "config.json"), str(env_path))

        assert config.get('prtg.username') == "dotenv-user"
        assert config.get('prtg.passhash') == "4242"

    def test_get_through_non_dict(self, tmp_path, monkeypatch):
        monkeypatch.setenv('PRTG_URL', 'https://prtg.local')
        config = ConfigManager(str(tmp_path / "config.json"), str(tmp_path / ".env"))
        assert config.get('prtg.url.host', 'fallback') == 'fallback'
