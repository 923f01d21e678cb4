import json
import os
import sys
import tempfile

import pytest

# 确保项目根目录在 sys.path 中
ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

# 测试期间的数据目录不落在仓库内
os.environ.setdefault("DATA_BASE_PATH", tempfile.mkdtemp(prefix="site-admin-tests-"))

from auth.config import hash_password  # noqa: E402


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """确保不受外部环境 JWT_SECRET / AUTH_CONFIG_PATH / LOG_FORMAT 干扰（除非测试用例主动设置）"""
    monkeypatch.delenv("JWT_SECRET", raising=False)
    monkeypatch.delenv("AUTH_CONFIG_PATH", raising=False)
    monkeypatch.delenv("LOG_FORMAT", raising=False)


@pytest.fixture
def admin_users():
    return [
        {
            "id": 1,
            "username": "admin",
            "password_hash": hash_password("admin123"),
            "email": "admin@example.com",
            "role": "admin",
            "is_active": True,
        },
        {
            "id": 2,
            "username": "editor",
            "password_hash": hash_password("editor-pass"),
            "role": "editor",
        },
        {
            "id": 3,
            "username": "retired",
            "password_hash": hash_password("retired-pass"),
            "role": "editor",
            "is_active": False,
        },
    ]


@pytest.fixture
def make_auth_file(tmp_path):
    """
    在临时目录写入 auth.json 的工厂方法
    使用方式: make_auth_file({"jwt_secret": "...", "users": [...]})
    """
    def _mk(content):
        p = tmp_path / "auth.json"
        p.write_text(json.dumps(content), encoding="utf-8")
        return p
    return _mk
