"""用户目录与会话。

会话只保存当前用户的子集（id、姓名、邮箱、角色），登录写入、登出清除，不会过期。
业务层不读取全局会话，而是由调用方构造 ``SessionContext`` 显式传入。
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from bioplastic_lab.errors import AuthenticationFailed, DuplicateEmail, ValidationFailed
from bioplastic_lab.models.enums import UserRole
from bioplastic_lab.schemas.records import SessionUser, User
from bioplastic_lab.services.store import KeyValueStore, StorageKeys, load_records, save_records
from bioplastic_lab.utils.clock import Clock, local_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionContext:
    """一次调用所代表的身份；``user`` 为 None 表示未登录。"""

    user: Optional[SessionUser] = None

    @property
    def user_id(self) -> Optional[str]:
        return self.user.id if self.user else None


def _same_email(a: str, b: str) -> bool:
    return (a or "").lower() == (b or "").lower()


class UserDirectory:
    """封装用户增删改、密码登录与默认管理员初始化。"""

    def __init__(self, store: KeyValueStore, clock: Clock = local_now) -> None:
        self.store = store
        self.clock = clock

    def list_users(self) -> List[User]:
        return load_records(self.store, StorageKeys.USERS, User)

    def get_user(self, user_id: str) -> Optional[User]:
        return next((u for u in self.list_users() if u.id == user_id), None)

    def find_by_email(self, email: str) -> Optional[User]:
        return next((u for u in self.list_users() if _same_email(u.email, email)), None)

    def add_user(
        self,
        name: str,
        email: str,
        password: str,
        role: UserRole = UserRole.STUDENT,
        active: bool = True,
    ) -> User:
        if not (name or "").strip() or not (email or "").strip() or not password:
            raise ValidationFailed("请填写姓名、邮箱和密码")

        users = self.list_users()
        if any(_same_email(u.email, email) for u in users):
            raise DuplicateEmail(email)

        user = User(
            id=uuid.uuid4().hex,
            name=name.strip(),
            email=email.strip(),
            role=role,
            password=password,
            active=active,
            created_at=self.clock(),
        )
        users.append(user)
        save_records(self.store, StorageKeys.USERS, users)
        logger.info("Created user %s with role %s", user.email, user.role.value)
        return user

    def update_user(self, user_id: str, fields: Dict[str, Any]) -> Optional[User]:
        """合并字段；用户不存在时返回 None。id 不可修改。"""

        users = self.list_users()
        for index, existing in enumerate(users):
            if existing.id != user_id:
                continue
            merged = {**existing.model_dump(), **fields, "id": existing.id}
            if "email" in fields and any(
                u.id != user_id and _same_email(u.email, fields["email"]) for u in users
            ):
                raise DuplicateEmail(fields["email"])
            try:
                users[index] = User.model_validate(merged)
            except ValidationError as exc:
                raise ValidationFailed(str(exc)) from exc
            save_records(self.store, StorageKeys.USERS, users)
            return users[index]
        return None

    def delete_user(self, user_id: str) -> bool:
        users = self.list_users()
        remaining = [u for u in users if u.id != user_id]
        if len(remaining) == len(users):
            return False
        save_records(self.store, StorageKeys.USERS, remaining)
        return True

    # === 会话 ===

    def current_user(self) -> Optional[SessionUser]:
        raw = self.store.read(StorageKeys.SESSION)
        if not raw:
            return None
        try:
            return SessionUser.model_validate(raw)
        except ValidationError:
            logger.warning("Discarding malformed session record")
            return None

    def context(self) -> SessionContext:
        return SessionContext(user=self.current_user())

    def login(self, email: str, password: str) -> SessionUser:
        user = self.find_by_email(email)
        if user is None:
            raise AuthenticationFailed("用户不存在")
        if not user.active:
            raise AuthenticationFailed("用户已停用")
        if user.password != password:
            raise AuthenticationFailed("密码错误")

        session_user = SessionUser(id=user.id, name=user.name, email=user.email, role=user.role)
        self.store.write(StorageKeys.SESSION, session_user.model_dump(mode="json"))
        logger.info("User %s logged in", user.email)
        return session_user

    def logout(self) -> None:
        current = self.current_user()
        self.store.remove(StorageKeys.SESSION)
        if current:
            logger.info("User %s logged out", current.email)

    def ensure_default_admin(self, email: str, password: str, name: str = "Admin") -> bool:
        """不存在同邮箱用户时创建默认管理员，返回是否新建。"""

        if self.find_by_email(email):
            return False
        self.add_user(name=name, email=email, password=password, role=UserRole.ADMIN)
        return True
