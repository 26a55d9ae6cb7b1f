import json
import os
from pathlib import Path
from typing import Dict, Any, Optional
from dotenv import load_dotenv


class ConfigManager:
    """配置管理类"""

    TRUE_VALUES = ('1', 'true', 'yes', 'on')

    def __init__(self, config_path: Optional[str] = None, env_path: Optional[str] = None):
        self.config_path = config_path or str(Path(__file__).parent.parent / "config.json")
        self.env_path = env_path or str(Path(__file__).parent.parent / ".env")
        self._config: Dict[str, Any] = {}
        self.load_config()

    def load_config(self) -> None:
        """加载配置文件"""
        if os.path.exists(self.config_path):
            with open(self.config_path, 'r', encoding='utf-8') as f:
                self._config = json.load(f)

        # 加载 .env 文件
        if os.path.exists(self.env_path):
            load_dotenv(self.env_path)

        # 用环境变量覆盖配置
        self._override_with_env()

    def _override_with_env(self) -> None:
        """用环境变量覆盖配置"""
        env_mappings = {
            'PRTG_URL': 'prtg.url',
            'PRTG_USERNAME': 'prtg.username',
            'PRTG_PASSWORD': 'prtg.password',
            'PRTG_PASSHASH': 'prtg.passhash',
            'PRTG_TIMEOUT': 'prtg.timeout',
            'PRTG_VERIFY_SSL': 'prtg.verify_ssl',
        }

        for env_key, config_key in env_mappings.items():
            env_value = os.getenv(env_key)
            if env_value is not None:
                # 类型转换
                if config_key == 'prtg.timeout':
                    env_value = float(env_value)
                elif config_key == 'prtg.verify_ssl':
                    env_value = env_value.strip().lower() in self.TRUE_VALUES

                self._set_nested_value(config_key, env_value)

    def _set_nested_value(self, key: str, value: Any) -> None:
        """设置嵌套配置值（不保存到文件）"""
        keys = key.split('.')
        config = self._config

        for k in keys[:-1]:
            if k not in config:
                config[k] = {}
            config = config[k]

        config[keys[-1]] = value

    def get(self, key: str, default: Any = None) -> Any:
        """获取配置值"""
        keys = key.split('.')
        value = self._config

        for k in keys:
            if isinstance(value, dict):
                value = value.get(k, default)
            else:
                return default

        return value


if __name__ == '__main__':
    config_manager = ConfigManager()
    print(f"PRTG URL: {config_manager.get('prtg.url')}")
    print(f"Username: {config_manager.get('prtg.username')}")
    print(f"Timeout: {config_manager.get('prtg.timeout', 30)}")
    print(f"Verify SSL: {config_manager.get('prtg.verify_ssl', True)}")
