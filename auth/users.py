"""
管理員用戶存儲
用戶保存在 auth.json 的 `users` 列表中，字段與舊 admin_users 表一致：
id, username, password_hash, email, role, is_active, last_login
"""

from __future__ import annotations

import json
import logging
import os
import pathlib
import shutil
import tempfile
import threading
from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError

from auth import config as auth_config

logger = logging.getLogger(__name__)

# 同一文件的所有存儲實例共用一把鎖
_FILE_LOCKS: Dict[str, threading.Lock] = {}
_FILE_LOCKS_GUARD = threading.Lock()


def _lock_for(path: pathlib.Path) -> threading.Lock:
    key = os.path.abspath(path)
    with _FILE_LOCKS_GUARD:
        lock = _FILE_LOCKS.get(key)
        if lock is None:
            lock = _FILE_LOCKS[key] = threading.Lock()
        return lock


class AdminUser(BaseModel):
    id: int
    username: str
    password_hash: str
    email: Optional[str] = None
    role: str = "editor"
    is_active: bool = True
    last_login: Optional[str] = None


class PublicUser(BaseModel):
    """返回給客戶端的用戶信息（不含密碼哈希）"""
    id: int
    username: str
    email: Optional[str] = Field(None)
    role: str


class AdminUserStore:
    """基於 JSON 文件的管理員用戶存儲"""

    def __init__(self, path: pathlib.Path):
        self.path = pathlib.Path(path)
        self._lock = _lock_for(self.path)

    def list_users(self) -> List[AdminUser]:
        users: List[AdminUser] = []
        raw_users = auth_config.read_auth_file(self.path).get("users", [])
        if not isinstance(raw_users, list):
            logger.warning("'users' in %s is not a list; ignoring", self.path)
            return users
        for raw in raw_users:
            try:
                users.append(AdminUser.model_validate(raw))
            except ValidationError as e:
                logger.warning("Skipping invalid user entry in %s: %s", self.path, e.errors()[:1])
        return users

    def find_user(self, username: str) -> Optional[AdminUser]:
        """通過用戶名查找用戶。"""
        if not username:
            return None
        for user in self.list_users():
            if user.username == username:
                return user
        return None

    def authenticate(self, username: str, password: str) -> Optional[AdminUser]:
        """
        用戶存在、狀態啟用且密碼哈希匹配時返回用戶，否則返回 None。
        """
        user = self.find_user(username)
        if user is None:
            logger.debug("authenticate: 用戶 %s 不存在", username)
            return None
        if not user.is_active:
            logger.warning("authenticate: 用戶 %s 已停用，拒絕登錄", username)
            return None
        if not auth_config.verify_password(password, user.password_hash):
            logger.debug("authenticate: 用戶 %s 密碼驗證失敗", username)
            return None
        return user

    def record_login(self, user_id: int) -> None:
        """
        更新 last_login 並原子寫回文件（先建立 .bak 備份）。
        盡力而為：失敗僅記錄警告，不影響登錄。
        """
        with self._lock:
            try:
                data = auth_config.read_auth_file(self.path)
                users = data.get("users")
                if not isinstance(users, list):
                    return
                stamp = datetime.now(timezone.utc).isoformat()
                for u in users:
                    if isinstance(u, dict) and u.get("id") == user_id:
                        u["last_login"] = stamp
                        break
                else:
                    return

                bak = self.path.with_name(self.path.name + ".bak")
                try:
                    shutil.copy2(self.path, bak)
                except OSError as e:
                    logger.warning("Failed to create backup %s: %s", bak, e)

                with tempfile.NamedTemporaryFile(
                    "w", encoding="utf-8", dir=self.path.parent,
                    prefix=self.path.name + ".", suffix=".tmp", delete=False,
                ) as f:
                    json.dump(data, f, ensure_ascii=False, indent=2)
                    f.write("\n")
                try:
                    os.replace(f.name, self.path)
                except OSError:
                    os.unlink(f.name)
                    raise
            except Exception as e:
                logger.warning("record_login: 寫入 %s 失敗: %s", self.path, e)
