"""
配置管理
- 配置文件: <DATA_BASE_PATH>/config.json
- 缺少的键以默认值补齐；类型不符的键重置为默认值
- 仅在文件不存在或内容被补齐/修正时写回
- 文件无法解析或顶层不是对象时抛出 ConfigurationError
"""

import os
import pathlib
import json
import logging
from typing import Any, Dict, Tuple

from auth.errors import ConfigurationError

logger = logging.getLogger(__name__)

# 注册路径
DATA_BASE_PATH = pathlib.Path(os.environ.get("DATA_BASE_PATH", "./data"))
CONFIG_FILE = DATA_BASE_PATH / "config.json"


def _is_same_type(default: Any, value: Any) -> bool:
    # bool 是 int 的子类，需单独区分
    if isinstance(default, bool) or isinstance(value, bool):
        return isinstance(default, bool) and isinstance(value, bool)
    return isinstance(value, type(default))


class ConfigManager:
    """配置管理器"""

    config_example = {
        "cors": ["*"],
        "host": "0.0.0.0",
        "port": 8080,
        "log_level": "INFO",
    }

    def __init__(self, config_path: pathlib.Path = CONFIG_FILE):
        self.config_path = pathlib.Path(config_path)
        self.config: Dict[str, Any] = {}
        self.load_config()

    def _normalize(self, raw: Dict[str, Any]) -> Tuple[Dict[str, Any], bool]:
        """补齐缺失项并修正类型不符的项，返回 (配置, 是否有改动)"""
        config = dict(raw)
        changed = False
        for key, default in self.config_example.items():
            if key not in config:
                config[key] = default
                changed = True
            elif not _is_same_type(default, config[key]):
                logger.warning("配置项 %s 类型不匹配，已重置为默认值 %r", key, default)
                config[key] = default
                changed = True
        return config, changed

    def load_config(self):
        """加载配置"""
        if not self.config_path.exists():
            # 初始化配置文件
            self.config = dict(self.config_example)
            self.save_config()
            return

        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, ValueError) as e:
            raise ConfigurationError(f"Cannot read config {self.config_path}: {e}") from e
        if not isinstance(raw, dict):
            raise ConfigurationError(f"Config {self.config_path} must contain a JSON object")

        self.config, changed = self._normalize(raw)
        if changed:
            self.save_config()

    def save_config(self):
        """保存配置"""
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, "w", encoding="utf-8") as f:
            json.dump(self.config, f, indent=4)

    def get(self, key: str, default=None):
        """获取配置项"""
        return self.config.get(key, default)

    def set(self, key: str, value):
        """设置配置项"""
        self.config[key] = value
        self.save_config()
