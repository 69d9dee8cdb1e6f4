"""访问控制谓词。

所有谓词都是纯函数，当前用户由调用方显式传入，每次调用都重新求值、不做缓存。
``user`` 为 ``None`` 表示尚未登录。
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol

from bioplastic_lab.errors import PermissionDenied
from bioplastic_lab.models.enums import UserRole
from bioplastic_lab.schemas.records import Experiment, SessionUser

logger = logging.getLogger(__name__)

REVIEWER_ROLES = (UserRole.ADMIN, UserRole.INSTRUCTOR)


class Owned(Protocol):
    owner_id: Optional[str]


def is_admin(user: Optional[SessionUser]) -> bool:
    return user is not None and user.role == UserRole.ADMIN


def is_instructor(user: Optional[SessionUser]) -> bool:
    return user is not None and user.role == UserRole.INSTRUCTOR


def is_reviewer(user: Optional[SessionUser]) -> bool:
    return user is not None and user.role in REVIEWER_ROLES


def can_see(resource: Optional[Owned], user: Optional[SessionUser]) -> bool:
    """管理员与教师可见全部；学生只能看到自己创建的记录。"""

    if is_reviewer(user):
        return True
    if resource is None or user is None:
        return False
    return resource.owner_id == user.id


def can_edit(resource: Optional[Owned], user: Optional[SessionUser]) -> bool:
    return can_see(resource, user)


def can_close(experiment: Optional[Experiment], user: Optional[SessionUser]) -> bool:
    """仅管理员/教师可关闭，且实验必须尚未关闭（关闭不可撤销）。"""

    return is_reviewer(user) and experiment is not None and not experiment.closed


def can_delete(user: Optional[SessionUser]) -> bool:
    """删除只看角色，忽略归属。"""

    return is_admin(user)


def require(allowed: bool, message: str) -> None:
    """谓词为假时抛出 ``PermissionDenied``。"""

    if not allowed:
        logger.warning("Permission denied: %s", message)
        raise PermissionDenied(message)
