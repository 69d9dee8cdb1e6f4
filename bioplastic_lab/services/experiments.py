"""实验/练习仓储：键值存储上的薄持久化层。

仓储本身不做权限校验，调用方（``Notebook``）必须在每次变更前完成校验。
实验号计数器没有并发控制，只适用于单写入者的场景。
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from bioplastic_lab.errors import ValidationFailed
from bioplastic_lab.schemas.records import Experiment, Practice, Reagents
from bioplastic_lab.services.calculator import build_code
from bioplastic_lab.services.store import (
    KeyValueStore,
    StorageKeys,
    load_records,
    read_int,
    save_records,
)
from bioplastic_lab.utils.clock import Clock, local_now

logger = logging.getLogger(__name__)

MIN_REPLICAS = 1
MAX_REPLICAS = 3

# 创建后不可通过 update_practice 修改的字段
IMMUTABLE_PRACTICE_FIELDS = ("code", "experiment_number", "practice_number", "owner_id")


class ExperimentRepository:
    """封装实验与练习的增删改查。"""

    def __init__(self, store: KeyValueStore, clock: Clock = local_now) -> None:
        self.store = store
        self.clock = clock

    # === 计数器 ===

    def next_experiment_number(self) -> int:
        """读取、自增并写回计数器；删除实验后编号也不会复用。"""

        n = read_int(self.store, StorageKeys.EXPERIMENT_COUNTER) + 1
        self.store.write(StorageKeys.EXPERIMENT_COUNTER, str(n))
        return n

    # === 读取 ===

    def all_experiments(self) -> List[Experiment]:
        return load_records(self.store, StorageKeys.EXPERIMENTS, Experiment)

    def all_practices(self) -> List[Practice]:
        return load_records(self.store, StorageKeys.PRACTICES, Practice)

    def get_experiment(self, experiment_number: int) -> Optional[Experiment]:
        return next(
            (e for e in self.all_experiments() if e.experiment_number == experiment_number),
            None,
        )

    def find_by_code(self, code: str) -> Optional[Practice]:
        return next((p for p in self.all_practices() if p.code == code), None)

    def find_by_experiment(self, experiment_number: int) -> List[Practice]:
        practices = [p for p in self.all_practices() if p.experiment_number == experiment_number]
        return sorted(practices, key=lambda p: p.practice_number)

    # === 写入 ===

    def save_experiment(self, experiment: Experiment) -> Experiment:
        experiments = self.all_experiments()
        for index, existing in enumerate(experiments):
            if existing.experiment_number == experiment.experiment_number:
                experiments[index] = experiment
                break
        else:
            experiments.append(experiment)
        save_records(self.store, StorageKeys.EXPERIMENTS, experiments)
        return experiment

    def save_practice(self, practice: Practice) -> Practice:
        practices = self.all_practices()
        for index, existing in enumerate(practices):
            if existing.code == practice.code:
                practices[index] = practice
                break
        else:
            practices.append(practice)
        save_records(self.store, StorageKeys.PRACTICES, practices)
        return practice

    def create_experiment(
        self, base: Reagents, replica_count: int, owner_id: Optional[str]
    ) -> tuple[Experiment, List[Practice]]:
        """创建实验及其 1..replica_count 个练习，练习复制基础试剂用量。"""

        if not MIN_REPLICAS <= replica_count <= MAX_REPLICAS:
            raise ValidationFailed(
                f"重复次数必须在 {MIN_REPLICAS}-{MAX_REPLICAS} 之间，收到 {replica_count}"
            )

        number = self.next_experiment_number()
        now = self.clock()
        experiment = self.save_experiment(
            Experiment(
                experiment_number=number,
                base_reagents=base,
                created_at=now,
                closed=False,
                owner_id=owner_id,
            )
        )

        practices = self.all_practices()
        created: List[Practice] = []
        for practice_number in range(1, replica_count + 1):
            practice = Practice(
                code=build_code(number, practice_number, now.date()),
                experiment_number=number,
                practice_number=practice_number,
                date=now,
                owner_id=owner_id,
                **base.model_dump(),
            )
            created.append(practice)
        save_records(self.store, StorageKeys.PRACTICES, practices + created)
        logger.info("Created experiment %s with %s practice(s)", number, replica_count)
        return experiment, created

    def update_practice(self, code: str, fields: Dict[str, Any]) -> Optional[Practice]:
        """把字段合并进已存记录（整条记录最后写入者获胜）；不存在时返回 None。"""

        practice = self.find_by_code(code)
        if practice is None:
            return None
        changes = {k: v for k, v in fields.items() if k not in IMMUTABLE_PRACTICE_FIELDS}
        try:
            updated = Practice.model_validate({**practice.model_dump(), **changes})
        except ValidationError as exc:
            raise ValidationFailed(str(exc)) from exc
        return self.save_practice(updated)

    def close_experiment(self, experiment_number: int) -> Optional[Experiment]:
        experiment = self.get_experiment(experiment_number)
        if experiment is None:
            return None
        closed = experiment.model_copy(update={"closed": True})
        logger.info("Closed experiment %s", experiment_number)
        return self.save_experiment(closed)

    def delete_experiment(self, experiment_number: int) -> int:
        """删除实验并级联删除其全部练习，返回删除的练习数。"""

        practices = self.all_practices()
        remaining = [p for p in practices if p.experiment_number != experiment_number]
        save_records(self.store, StorageKeys.PRACTICES, remaining)
        save_records(
            self.store,
            StorageKeys.EXPERIMENTS,
            [e for e in self.all_experiments() if e.experiment_number != experiment_number],
        )
        removed = len(practices) - len(remaining)
        logger.info("Deleted experiment %s and %s practice(s)", experiment_number, removed)
        return removed

    def delete_practice(self, code: str) -> bool:
        practices = self.all_practices()
        remaining = [p for p in practices if p.code != code]
        if len(remaining) == len(practices):
            return False
        save_records(self.store, StorageKeys.PRACTICES, remaining)
        return True
