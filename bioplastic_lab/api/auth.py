"""登录/登出 API。会话在本实例内持久保存，直到显式登出。"""

from fastapi import APIRouter, Depends, Form

from bioplastic_lab.dependencies import get_directory, require_user
from bioplastic_lab.schemas.records import SessionUser
from bioplastic_lab.services.users import UserDirectory

router = APIRouter()


@router.post("/login", response_model=SessionUser)
def login(
    email: str = Form(...),
    password: str = Form(...),
    directory: UserDirectory = Depends(get_directory),
):
    """邮箱 + 密码登录，写入当前会话；失败时返回 401。"""
    return directory.login(email, password)


@router.post("/logout")
def logout(directory: UserDirectory = Depends(get_directory)) -> dict[str, str]:
    directory.logout()
    return {"status": "logged_out"}


@router.get("/me", response_model=SessionUser)
def me(current_user: SessionUser = Depends(require_user)):
    """获取当前登录用户信息。"""
    return current_user
