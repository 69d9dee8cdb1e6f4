"""审计日志：只追加的事件序列。"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from bioplastic_lab.schemas.records import AuditEntry
from bioplastic_lab.services.store import (
    KeyValueStore,
    StorageKeys,
    load_records,
    read_int,
    read_list,
)
from bioplastic_lab.utils.clock import Clock, local_now


class AuditTrail:
    """按插入顺序保存审计条目。

    条目 id 来自持久化的自增序列，清空日志后也不会复用。
    """

    def __init__(self, store: KeyValueStore, clock: Clock = local_now) -> None:
        self.store = store
        self.clock = clock

    def _next_id(self) -> int:
        n = read_int(self.store, StorageKeys.AUDIT_SEQ) + 1
        self.store.write(StorageKeys.AUDIT_SEQ, str(n))
        return n

    def log(self, action: str, details: Optional[Dict[str, Any]] = None) -> AuditEntry:
        entry = AuditEntry(
            id=self._next_id(),
            timestamp=self.clock(),
            action=action,
            details=details or {},
        )
        raw = read_list(self.store, StorageKeys.AUDIT_LOG)
        raw.append(entry.model_dump(mode="json"))
        self.store.write(StorageKeys.AUDIT_LOG, raw)
        return entry

    def entries(self) -> List[AuditEntry]:
        return load_records(self.store, StorageKeys.AUDIT_LOG, AuditEntry)

    def clear(self) -> None:
        """不可恢复地清空日志；调用方负责校验管理员权限。"""

        self.store.remove(StorageKeys.AUDIT_LOG)
