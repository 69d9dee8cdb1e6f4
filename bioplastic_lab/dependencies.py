"""FastAPI 依赖注入工具。"""

from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from bioplastic_lab.config import get_settings
from bioplastic_lab.db import get_db
from bioplastic_lab.models.enums import UserRole
from bioplastic_lab.schemas.records import SessionUser
from bioplastic_lab.services.notebook import Notebook
from bioplastic_lab.services.store import SqlStore
from bioplastic_lab.services.users import SessionContext, UserDirectory


def get_store(db: Session = Depends(get_db)) -> SqlStore:
    return SqlStore(db)


def get_directory(store: SqlStore = Depends(get_store)) -> UserDirectory:
    return UserDirectory(store)


def get_context(directory: UserDirectory = Depends(get_directory)) -> SessionContext:
    """每个请求都重新读取会话，登出后立即生效。"""

    return directory.context()


def get_notebook(
    store: SqlStore = Depends(get_store),
    context: SessionContext = Depends(get_context),
) -> Notebook:
    return Notebook(store, context, get_settings())


def require_user(context: SessionContext = Depends(get_context)) -> SessionUser:
    if context.user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="请先登录",
        )
    return context.user


def require_admin(current_user: SessionUser = Depends(require_user)) -> SessionUser:
    """要求管理员权限。"""
    if current_user.role != UserRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="需要管理员权限"
        )
    return current_user
