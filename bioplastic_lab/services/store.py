"""键值存储：笔记本唯一依赖的持久化接口。

接口只有 ``read(key)`` / ``write(key, value)`` / ``remove(key)`` 三个同步操作，
值为可 JSON 序列化的对象。读取边界负责吞掉损坏的 JSON 并当作"不存在"处理。
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterable, List, Optional, Protocol, Type, TypeVar

from pydantic import BaseModel, ValidationError
from sqlalchemy.orm import Session

from bioplastic_lab.models import KeyValueEntry

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)


class StorageKeys:
    """持久化键名。"""

    USERS = "bioplastic_users_v1"
    SESSION = "bioplastic_user"
    EXPERIMENTS = "bioplastic_experiments_v1"
    PRACTICES = "bioplastic_practices_v1"
    EXPERIMENT_COUNTER = "bioplastic_experiment_counter_v1"
    AUDIT_LOG = "audit_log"
    AUDIT_SEQ = "audit_log_seq"
    ACTIVE_PRACTICE = "bioplastic_active_practice"

    ALL = (
        USERS,
        SESSION,
        EXPERIMENTS,
        PRACTICES,
        EXPERIMENT_COUNTER,
        AUDIT_LOG,
        AUDIT_SEQ,
        ACTIVE_PRACTICE,
    )


class KeyValueStore(Protocol):
    def read(self, key: str) -> Optional[Any]: ...

    def write(self, key: str, value: Any) -> None: ...

    def remove(self, key: str) -> None: ...


def _decode(key: str, raw: Optional[str]) -> Optional[Any]:
    if raw is None or raw == "":
        return None
    try:
        return json.loads(raw)
    except ValueError:
        logger.warning("Malformed JSON under key %s, treating as empty", key)
        return None


def read_list(store: KeyValueStore, key: str) -> List[Any]:
    """读取列表类型的键；缺失或类型不符时返回空列表。"""

    value = store.read(key)
    if not isinstance(value, list):
        if value is not None:
            logger.warning("Expected a list under key %s, got %s", key, type(value).__name__)
        return []
    return value


def load_records(store: KeyValueStore, key: str, model: Type[RecordT]) -> List[RecordT]:
    """把列表键解析为 Pydantic 记录，跳过无法校验的条目。"""

    records: List[RecordT] = []
    for item in read_list(store, key):
        try:
            records.append(model.model_validate(item))
        except ValidationError:
            logger.warning("Skipping malformed %s record under key %s", model.__name__, key)
    return records


def save_records(store: KeyValueStore, key: str, records: Iterable[BaseModel]) -> None:
    store.write(key, [record.model_dump(mode="json") for record in records])


def read_int(store: KeyValueStore, key: str) -> int:
    """读取字符串化的整数计数器；无法解析时按 0 处理。"""

    value = store.read(key)
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        logger.warning("Counter under key %s is not an integer: %r", key, value)
        return 0


class MemoryStore:
    """进程内存实现，保存序列化后的文本以保持与持久化实现相同的语义。"""

    def __init__(self, raw: Optional[Dict[str, str]] = None) -> None:
        self.raw: Dict[str, str] = dict(raw or {})

    def read(self, key: str) -> Optional[Any]:
        return _decode(key, self.raw.get(key))

    def write(self, key: str, value: Any) -> None:
        self.raw[key] = json.dumps(value, ensure_ascii=False)

    def remove(self, key: str) -> None:
        self.raw.pop(key, None)


class SqlStore:
    """基于 ``kv_entries`` 表的实现，每次写入单独提交。"""

    def __init__(self, db: Session) -> None:
        self.db = db

    def read(self, key: str) -> Optional[Any]:
        entry = self.db.get(KeyValueEntry, key)
        return _decode(key, entry.value if entry else None)

    def write(self, key: str, value: Any) -> None:
        payload = json.dumps(value, ensure_ascii=False)
        entry = self.db.get(KeyValueEntry, key)
        if entry is None:
            self.db.add(KeyValueEntry(key=key, value=payload))
        else:
            entry.value = payload
        self.db.commit()

    def remove(self, key: str) -> None:
        entry = self.db.get(KeyValueEntry, key)
        if entry is not None:
            self.db.delete(entry)
            self.db.commit()
