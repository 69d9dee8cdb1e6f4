"""用户管理 API（仅管理员）。"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from bioplastic_lab.dependencies import get_notebook, require_admin
from bioplastic_lab.schemas.records import SessionUser
from bioplastic_lab.schemas.requests import UserCreate, UserResponse, UserUpdate
from bioplastic_lab.services.notebook import Notebook

router = APIRouter()


@router.get("/", response_model=List[UserResponse])
def list_users(
    notebook: Notebook = Depends(get_notebook),
    admin: SessionUser = Depends(require_admin),
):
    return notebook.list_users()


@router.post("/", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    payload: UserCreate,
    notebook: Notebook = Depends(get_notebook),
    admin: SessionUser = Depends(require_admin),
):
    """创建用户；邮箱忽略大小写重复时返回 400。"""
    return notebook.add_user(**payload.model_dump())


@router.patch("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: str,
    payload: UserUpdate,
    notebook: Notebook = Depends(get_notebook),
    admin: SessionUser = Depends(require_admin),
):
    """修改角色、启用状态等字段。"""
    user = notebook.update_user(user_id, payload.model_dump(exclude_unset=True))
    if user is None:
        raise HTTPException(status_code=404, detail="用户不存在")
    return user


@router.delete("/{user_id}")
def delete_user(
    user_id: str,
    notebook: Notebook = Depends(get_notebook),
    admin: SessionUser = Depends(require_admin),
) -> dict[str, str]:
    """删除用户；不能删除当前登录的管理员（400）。"""
    if not notebook.delete_user(user_id):
        raise HTTPException(status_code=404, detail="用户不存在")
    return {"status": "deleted"}
