"""Notebook facade: the single place where permissions, persistence and audit meet.

Every mutating call follows the same order: evaluate the permission predicate
against the explicit ``SessionContext``, call the repository, then append one
audit entry. Callers never touch ``ExperimentRepository`` directly for writes.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from bioplastic_lab.config import Settings, get_settings
from bioplastic_lab.errors import ValidationFailed
from bioplastic_lab.models.enums import HeatingLight, SearchMode, UserRole
from bioplastic_lab.schemas.records import (
    AuditEntry,
    Experiment,
    Practice,
    Reagents,
    SessionUser,
    User,
)
from bioplastic_lab.services import permissions
from bioplastic_lab.services.audit import AuditTrail
from bioplastic_lab.services.calculator import reagents_from_starch, round2
from bioplastic_lab.services.experiments import ExperimentRepository
from bioplastic_lab.services.export import build_group_csv, export_filename
from bioplastic_lab.services.statistics import ReliabilityReport, heating_light, reliability_report
from bioplastic_lab.services.store import KeyValueStore, StorageKeys
from bioplastic_lab.services.users import SessionContext, UserDirectory
from bioplastic_lab.utils.clock import Clock, local_now

logger = logging.getLogger(__name__)

_DIGITS = re.compile(r"^\d+$")
AUTO_EXPERIMENT_MAX_DIGITS = 3


class Notebook:
    """Lab notebook operations for one caller identity."""

    def __init__(
        self,
        store: KeyValueStore,
        context: SessionContext,
        settings: Optional[Settings] = None,
        clock: Clock = local_now,
    ) -> None:
        self.store = store
        self.context = context
        self.settings = settings or get_settings()
        self.clock = clock
        self.repo = ExperimentRepository(store, clock)
        self.audit = AuditTrail(store, clock)
        self.users = UserDirectory(store, clock)

    @property
    def user(self) -> Optional[SessionUser]:
        return self.context.user

    def _details(
        self,
        experiment_number: Optional[int] = None,
        practice_code: Optional[str] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        details: Dict[str, Any] = {
            "user": self.user.model_dump(mode="json") if self.user else None,
        }
        if experiment_number is not None:
            details["experiment_number"] = experiment_number
        if practice_code is not None:
            details["practice_code"] = practice_code
        if payload is not None:
            details["payload"] = payload
        return details

    def _require_session(self) -> None:
        permissions.require(self.user is not None, "请先登录")

    def get_practice(self, code: str) -> Optional[Practice]:
        practice = self.repo.find_by_code(code)
        if practice is None:
            return None
        permissions.require(permissions.can_see(practice, self.user), "无权查看该练习")
        return practice

    def editable_practice(self, code: str) -> Optional[Practice]:
        """Return the practice after checking ``can_edit``; ``None`` when missing."""

        practice = self.repo.find_by_code(code)
        if practice is None:
            return None
        permissions.require(permissions.can_edit(practice, self.user), "无权编辑该练习")
        return practice

    # === Active practice ===

    @property
    def active_code(self) -> Optional[str]:
        value = self.store.read(StorageKeys.ACTIVE_PRACTICE)
        return value if isinstance(value, str) else None

    def open_practice(self, code: str) -> Optional[Practice]:
        """Make ``code`` the practice currently being worked on."""

        practice = self.get_practice(code)
        if practice is None:
            return None
        self.store.write(StorageKeys.ACTIVE_PRACTICE, practice.code)
        return practice

    def close_practice(self) -> None:
        self.store.remove(StorageKeys.ACTIVE_PRACTICE)

    # === Experiments ===

    def start_experiment(
        self, base: Reagents, replica_count: int
    ) -> Tuple[Experiment, List[Practice]]:
        self._require_session()
        experiment, practices = self.repo.create_experiment(base, replica_count, self.context.user_id)
        self.audit.log(
            "experiment:create",
            self._details(
                experiment_number=experiment.experiment_number,
                payload={"base": base.model_dump(mode="json"), "replicas": replica_count},
            ),
        )
        return experiment, practices

    def start_from_starch(
        self, starch_g: float, replica_count: int
    ) -> Tuple[Experiment, List[Practice]]:
        return self.start_experiment(reagents_from_starch(starch_g), replica_count)

    def get_experiment(self, experiment_number: int) -> Optional[Experiment]:
        experiment = self.repo.get_experiment(experiment_number)
        if experiment is None:
            return None
        permissions.require(permissions.can_see(experiment, self.user), "无权查看该实验")
        return experiment

    def list_experiments(self) -> List[Experiment]:
        return [e for e in self.repo.all_experiments() if permissions.can_see(e, self.user)]

    def close_experiment(self, experiment_number: int) -> Optional[Experiment]:
        experiment = self.repo.get_experiment(experiment_number)
        if experiment is None:
            return None
        permissions.require(
            permissions.can_close(experiment, self.user),
            "仅管理员或教师可关闭未关闭的实验",
        )
        closed = self.repo.close_experiment(experiment_number)
        self.audit.log("experiment:close", self._details(experiment_number=experiment_number))
        return closed

    def delete_experiment(self, experiment_number: int) -> bool:
        permissions.require(permissions.can_delete(self.user), "仅管理员可删除")
        existed = self.repo.get_experiment(experiment_number) is not None
        practice_codes = {p.code for p in self.repo.find_by_experiment(experiment_number)}
        removed = self.repo.delete_experiment(experiment_number)
        if not existed and not removed:
            return False
        if self.active_code in practice_codes:
            self.close_practice()
        self.audit.log(
            "experiment:delete",
            self._details(experiment_number=experiment_number, payload={"practices": removed}),
        )
        return True

    # === Practices ===

    def update_practice(self, code: str, fields: Dict[str, Any]) -> Optional[Practice]:
        if not self.editable_practice(code):
            return None
        updated = self.repo.update_practice(code, fields)
        self.audit.log(
            "practice:update",
            self._details(
                experiment_number=updated.experiment_number,
                practice_code=code,
                payload={"fields": sorted(fields)},
            ),
        )
        return updated

    def save_heat_data(
        self,
        code: str,
        seconds: int,
        max_temp: Optional[float] = None,
        heating_notes: str = "",
    ) -> Optional[Practice]:
        """Persist timer seconds, derived minutes, peak temperature and notes."""

        if seconds < 0:
            raise ValidationFailed("加热时间不能为负数")
        practice = self.editable_practice(code)
        if practice is None:
            return None
        minutes = round2(seconds / 60)
        updated = self.repo.update_practice(
            code,
            {
                "heat_seconds": seconds,
                "heat_minutes": minutes,
                "max_temp": max_temp,
                "heating_notes": heating_notes,
            },
        )
        self.audit.log(
            "practice:save_heat",
            self._details(
                experiment_number=practice.experiment_number,
                practice_code=code,
                payload={
                    "seconds": seconds,
                    "minutes": minutes,
                    "max_temp": max_temp,
                    "notes": heating_notes,
                },
            ),
        )
        return updated

    def attach_photo(
        self, code: str, data_url: str, final_notes: Optional[str] = None
    ) -> Optional[Practice]:
        """Merge a finished photo read into ``code``.

        The read completes after the user may have moved on; the result is
        dropped (``None``) unless ``code`` is still the active practice.
        """

        practice = self.editable_practice(code)
        if practice is None:
            return None
        if self.active_code != code:
            logger.warning(
                "Dropping stale photo for %s; active practice is %s", code, self.active_code
            )
            return None
        fields: Dict[str, Any] = {"final_date": self.clock(), "final_photo_data_url": data_url}
        if final_notes is not None:
            fields["final_notes"] = final_notes
        updated = self.repo.update_practice(code, fields)
        self.audit.log(
            "practice:save_photo",
            self._details(experiment_number=practice.experiment_number, practice_code=code),
        )
        return updated

    def delete_practice(self, code: str) -> bool:
        permissions.require(permissions.can_delete(self.user), "仅管理员可删除")
        practice = self.repo.find_by_code(code)
        if not self.repo.delete_practice(code):
            return False
        if self.active_code == code:
            self.close_practice()
        self.audit.log(
            "practice:delete",
            self._details(experiment_number=practice.experiment_number, practice_code=code),
        )
        return True

    # === Queries ===

    def _visible(self, practices: List[Practice]) -> List[Practice]:
        return [p for p in practices if permissions.can_see(p, self.user)]

    def search(self, query: Optional[str], mode: SearchMode = SearchMode.AUTO) -> Optional[List[Practice]]:
        """Return visible practices matching ``query``; ``None`` for an empty query."""

        term = (query or "").strip()
        if not term:
            return None

        mode = SearchMode(mode)
        if mode == SearchMode.CODE:
            practice = self.repo.find_by_code(term)
            return self._visible([practice] if practice else [])

        if mode == SearchMode.EXP:
            if not _DIGITS.match(term):
                return []
            return self._visible(self.repo.find_by_experiment(int(term)))

        if _DIGITS.match(term) and len(term) <= AUTO_EXPERIMENT_MAX_DIGITS:
            return self._visible(self.repo.find_by_experiment(int(term)))
        practice = self.repo.find_by_code(term)
        return self._visible([practice] if practice else [])

    def list_all(self, mine_only: bool = False) -> List[Practice]:
        practices = self.repo.all_practices()
        if mine_only:
            practices = [p for p in practices if p.owner_id == self.context.user_id]
        practices = self._visible(practices)
        return sorted(practices, key=lambda p: (p.experiment_number, p.practice_number))

    def reliability(self, experiment_number: int) -> ReliabilityReport:
        practices = self._visible(self.repo.find_by_experiment(experiment_number))
        return reliability_report(experiment_number, practices)

    def heating_light(self, seconds: int) -> HeatingLight:
        return heating_light(
            seconds, self.settings.heating_target_seconds, self.settings.heating_tolerance
        )

    def export_csv(self, experiment_number: int) -> Tuple[str, str]:
        """Return ``(filename, csv_text)`` for the visible practices of one experiment."""

        experiment = self.get_experiment(experiment_number)
        practices = self._visible(self.repo.find_by_experiment(experiment_number))
        return (
            export_filename(experiment_number, self.clock().date()),
            build_group_csv(experiment, practices),
        )

    # === Users ===

    def _require_admin(self) -> None:
        permissions.require(permissions.is_admin(self.user), "需要管理员权限")

    def list_users(self) -> List[User]:
        self._require_admin()
        return self.users.list_users()

    def add_user(
        self,
        name: str,
        email: str,
        password: str,
        role: UserRole = UserRole.STUDENT,
        active: bool = True,
    ) -> User:
        self._require_admin()
        user = self.users.add_user(
            name=name, email=email, password=password, role=role, active=active
        )
        self.audit.log(
            "user:create", self._details(payload={"id": user.id, "email": user.email})
        )
        return user

    def update_user(self, user_id: str, fields: Dict[str, Any]) -> Optional[User]:
        self._require_admin()
        user = self.users.update_user(user_id, fields)
        if user is None:
            return None
        # 密码不写入审计
        changed = sorted(f for f in fields if f != "password")
        self.audit.log("user:update", self._details(payload={"id": user_id, "fields": changed}))
        return user

    def delete_user(self, user_id: str) -> bool:
        self._require_admin()
        if user_id == self.context.user_id:
            raise ValidationFailed("不能删除当前登录的管理员")
        if not self.users.delete_user(user_id):
            return False
        self.audit.log("user:delete", self._details(payload={"id": user_id}))
        return True

    # === Audit ===

    def audit_log(self) -> List[AuditEntry]:
        """审计日志包含所有学生的记录，仅管理员与教师可读。"""

        permissions.require(permissions.is_reviewer(self.user), "仅管理员或教师可查看审计日志")
        return self.audit.entries()

    def clear_audit(self) -> None:
        permissions.require(permissions.is_admin(self.user), "仅管理员可清空审计日志")
        self.audit.clear()
        logger.info("Audit log cleared by %s", self.user.email)
