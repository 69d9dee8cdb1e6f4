"""SQLAlchemy 模型与枚举统一导出。"""

from bioplastic_lab.models.enums import (
    HeatingLight,
    MeasurementKind,
    ReliabilityMetric,
    ReliabilityStatus,
    SearchMode,
    UserRole,
)
from bioplastic_lab.models.kv import KeyValueEntry

__all__ = [
    "HeatingLight",
    "KeyValueEntry",
    "MeasurementKind",
    "ReliabilityMetric",
    "ReliabilityStatus",
    "SearchMode",
    "UserRole",
]
