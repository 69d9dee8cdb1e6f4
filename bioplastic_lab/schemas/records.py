"""Persisted record contracts for the lab notebook.

Every record below is stored as plain JSON under its own key in the key-value
store. All fields use snake_case and are designed for direct serialization via
``model_dump(mode="json")``.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from bioplastic_lab.models.enums import UserRole


class Reagents(BaseModel):
    """The four reagent quantities of one bioplastic batch."""

    model_config = ConfigDict(allow_inf_nan=False)

    starch_g: float = 0
    water_ml: float = 0
    acetic_ml: float = 0
    glycerin_ml: float = 0


class User(BaseModel):
    """Notebook account. Passwords are stored in plaintext (demo grade)."""

    id: str
    name: str
    email: str
    role: UserRole = UserRole.STUDENT
    password: str
    active: bool = True
    created_at: Optional[datetime] = None


class SessionUser(BaseModel):
    """Subset of a user kept as the current session."""

    id: str
    name: str
    email: str
    role: UserRole


class Experiment(BaseModel):
    """One parameterized batch with 1-3 replicate practices."""

    experiment_number: int
    base_reagents: Reagents
    created_at: datetime
    closed: bool = False
    owner_id: Optional[str] = None


class Practice(Reagents):
    """One physical replicate run of an experiment."""

    code: str
    experiment_number: int
    practice_number: int
    date: datetime
    owner_id: Optional[str] = None
    heat_seconds: int = Field(default=0, ge=0)
    heat_minutes: Optional[float] = None
    max_temp: Optional[float] = None
    heating_notes: str = ""
    final_notes: str = ""
    final_photo_data_url: Optional[str] = None
    final_date: Optional[datetime] = None


class AuditEntry(BaseModel):
    """Append-only audit event."""

    id: int
    timestamp: datetime
    action: str
    details: Dict[str, Any] = Field(default_factory=dict)
