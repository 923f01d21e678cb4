"""
Auth configuration loader and helpers.

- JWT secret priority: ENV JWT_SECRET > auth.json `jwt_secret`. No default: missing secret -> ConfigurationError.
- Auth file path: ENV AUTH_CONFIG_PATH > <DATA_BASE_PATH>/auth.json.
- Secrets shorter than 32 characters are accepted but logged as a WARNING.
- Password hashes are hex SHA-256 of the UTF-8 password (compatible with existing admin_users rows).
"""

from __future__ import annotations

import hashlib
import hmac
import json
import logging
import os
import pathlib
from dataclasses import dataclass
from typing import Any, Dict, Optional

from auth.errors import ConfigurationError

logger = logging.getLogger(__name__)

_ENV_JWT_SECRET = "JWT_SECRET"
_ENV_AUTH_CONFIG_PATH = "AUTH_CONFIG_PATH"
_ENV_DATA_BASE_PATH = "DATA_BASE_PATH"

_MIN_SECRET_LENGTH = 32


@dataclass(frozen=True)
class AuthSettings:
    """啟動時解析一次的認證設定，之後以唯讀值傳入每個請求。"""
    jwt_secret: str
    config_path: pathlib.Path
    secret_from_env: bool = False


def effective_config_path() -> pathlib.Path:
    """返回有效的配置路徑，優先 ENV AUTH_CONFIG_PATH，其次 DATA_BASE_PATH/auth.json。"""
    env_path = os.environ.get(_ENV_AUTH_CONFIG_PATH)
    if env_path and env_path.strip():
        return pathlib.Path(env_path)
    return pathlib.Path(os.environ.get(_ENV_DATA_BASE_PATH, "./data")) / "auth.json"


def read_auth_file(path: pathlib.Path) -> Dict[str, Any]:
    """
    讀取 auth.json。文件不存在時返回空字典；
    文件存在但無法解析時拋出 ConfigurationError（不靜默降級）。
    """
    if not path.exists():
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise ConfigurationError(f"Cannot read auth config {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"Auth config {path} must contain a JSON object")
    return data


def load_auth_settings(path: Optional[pathlib.Path] = None) -> AuthSettings:
    """
    解析 JWT 密鑰並返回 AuthSettings。
    缺少密鑰（或為空字串）時拋出 ConfigurationError，應用啟動應因此中止。
    """
    cfg_path = path or effective_config_path()

    env_secret = os.environ.get(_ENV_JWT_SECRET)
    if env_secret:
        secret, from_env = env_secret, True
    else:
        file_secret = read_auth_file(cfg_path).get("jwt_secret")
        if not isinstance(file_secret, str) or not file_secret:
            raise ConfigurationError(
                f"JWT secret is not configured: set {_ENV_JWT_SECRET} or 'jwt_secret' in {cfg_path}"
            )
        secret, from_env = file_secret, False

    if len(secret) < _MIN_SECRET_LENGTH:
        logger.warning(
            "JWT secret is shorter than %d characters; tokens are easier to forge", _MIN_SECRET_LENGTH
        )

    logger.debug("Auth settings loaded (config=%s, secret_from_env=%s)", cfg_path, from_env)
    return AuthSettings(jwt_secret=secret, config_path=cfg_path, secret_from_env=from_env)


def hash_password(password: str) -> str:
    """SHA-256 十六進制摘要，與既有 admin_users.password_hash 相容。"""
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


def verify_password(password: str, password_hash: str) -> bool:
    """
    驗證密碼是否與給定的哈希值匹配（常數時間比較）。
    """
    if not password or not password_hash:
        return False
    return hmac.compare_digest(hash_password(password).encode("ascii"), password_hash.lower().encode("utf-8"))
