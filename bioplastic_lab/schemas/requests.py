"""HTTP 请求/响应模型。"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from bioplastic_lab.models.enums import HeatingLight, UserRole
from bioplastic_lab.schemas.records import Experiment, Practice, Reagents


class UserCreate(BaseModel):
    name: str
    email: str
    password: str
    role: UserRole = UserRole.STUDENT
    active: bool = True


class UserUpdate(BaseModel):
    """只包含显式传入的字段，未传字段保持不变。"""

    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    role: Optional[UserRole] = None
    active: Optional[bool] = None


class UserResponse(BaseModel):
    id: str
    name: str
    email: str
    role: UserRole
    active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ExperimentCreate(BaseModel):
    """二选一：给出 ``starch_g`` 按比例换算，或直接给出手工填写的 ``reagents``。"""

    starch_g: Optional[float] = None
    reagents: Optional[Reagents] = None
    replicas: int = 1


class ExperimentCreated(BaseModel):
    experiment: Experiment
    practices: List[Practice] = Field(default_factory=list)


class PracticeUpdate(BaseModel):
    heating_notes: Optional[str] = None
    final_notes: Optional[str] = None
    max_temp: Optional[float] = None


class HeatData(BaseModel):
    seconds: int
    max_temp: Optional[float] = None
    heating_notes: str = ""


class HeatingLightResponse(BaseModel):
    seconds: int
    target_seconds: int
    light: HeatingLight
