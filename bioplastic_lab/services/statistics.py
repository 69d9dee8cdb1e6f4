"""重复实验统计与可靠性判定。

双样本（duplicate）无法给出有意义的方差估计，因此使用差异百分比；
三个及以上（triplicate）使用变异系数 CV%。两种指标都与同一阈值比较：
``<= 阈值`` 为 ok，``<= 1.5 × 阈值`` 为 warn，否则为 fail。
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

import numpy as np
from pydantic import BaseModel

from bioplastic_lab.models.enums import (
    HeatingLight,
    MeasurementKind,
    ReliabilityMetric,
    ReliabilityStatus,
)
from bioplastic_lab.schemas.records import Practice

OK_THRESHOLDS = {
    MeasurementKind.TIME: 8.0,
    MeasurementKind.TEMP: 3.0,
}
WARN_FACTOR = 1.5


class Verdict(BaseModel):
    status: ReliabilityStatus
    metric: Optional[ReliabilityMetric] = None
    value: Optional[float] = None


class ReplicateStats(BaseModel):
    n: int = 0
    mean: Optional[float] = None
    sd: Optional[float] = None
    cv: Optional[float] = None
    min: Optional[float] = None
    max: Optional[float] = None
    range: Optional[float] = None


class KindReport(BaseModel):
    stats: ReplicateStats
    verdict: Verdict


class ReliabilityReport(BaseModel):
    """一个实验全部练习的时间（分钟）与温度（°C）可靠性。"""

    experiment_number: int
    time: KindReport
    temp: KindReport


def _to2(value: float) -> float:
    return round(value, 2)


def clean_positives(values: Iterable[object]) -> List[float]:
    """只保留有限的正数；0 表示"尚未记录"而不是真实测量值。"""

    numeric: List[float] = []
    for raw in values:
        if raw is None or isinstance(raw, bool):
            continue
        try:
            numeric.append(float(raw))
        except (TypeError, ValueError):
            continue
    arr = np.asarray(numeric, dtype=float)
    return arr[np.isfinite(arr) & (arr > 0)].tolist()


def mean(values: Sequence[float]) -> float:
    if len(values) == 0:
        return 0.0
    return float(np.mean(np.asarray(values, dtype=float)))


def sample_sd(values: Sequence[float]) -> float:
    """Bessel 校正的样本标准差（ddof=1），少于两个值时为 0。"""

    if len(values) < 2:
        return 0.0
    return float(np.std(np.asarray(values, dtype=float), ddof=1))


def cv_pct(values: Sequence[float]) -> float:
    m = mean(values)
    if not np.isfinite(m) or m == 0:
        return 0.0
    return sample_sd(values) / abs(m) * 100


def diff_pct(a: float, b: float) -> float:
    avg = (a + b) / 2
    if not np.isfinite(avg) or avg == 0:
        return 0.0
    return abs(a - b) / avg * 100


def _grade(value: float, ok_threshold: float) -> ReliabilityStatus:
    if value <= ok_threshold:
        return ReliabilityStatus.OK
    if value <= ok_threshold * WARN_FACTOR:
        return ReliabilityStatus.WARN
    return ReliabilityStatus.FAIL


def classify(kind: MeasurementKind, values: Iterable[object]) -> Verdict:
    """对同一种测量量的重复值给出 ok/warn/fail/na 判定。"""

    valid = clean_positives(values)
    ok_threshold = OK_THRESHOLDS[MeasurementKind(kind)]

    if len(valid) < 2:
        return Verdict(status=ReliabilityStatus.NOT_APPLICABLE)

    if len(valid) == 2:
        value = diff_pct(valid[0], valid[1])
        metric = ReliabilityMetric.DIFF_PCT
    else:
        value = cv_pct(valid)
        metric = ReliabilityMetric.CV_PCT

    return Verdict(status=_grade(value, ok_threshold), metric=metric, value=_to2(value))


def build_stats(values: Iterable[object]) -> ReplicateStats:
    clean = clean_positives(values)
    if not clean:
        return ReplicateStats()
    m = mean(clean)
    s = sample_sd(clean)
    low, high = min(clean), max(clean)
    return ReplicateStats(
        n=len(clean),
        mean=_to2(m),
        sd=_to2(s),
        cv=_to2(s / abs(m) * 100) if m else None,
        min=_to2(low),
        max=_to2(high),
        range=_to2(high - low),
    )


def reliability_report(experiment_number: int, practices: Sequence[Practice]) -> ReliabilityReport:
    """汇总一个实验的加热时间与最高温度。"""

    times = [p.heat_seconds / 60 if p.heat_seconds and p.heat_seconds > 0 else None for p in practices]
    temps = [p.max_temp if p.max_temp and p.max_temp > 0 else None for p in practices]
    return ReliabilityReport(
        experiment_number=experiment_number,
        time=KindReport(stats=build_stats(times), verdict=classify(MeasurementKind.TIME, times)),
        temp=KindReport(stats=build_stats(temps), verdict=classify(MeasurementKind.TEMP, temps)),
    )


def heating_light(seconds: int, target_seconds: Optional[int], tolerance: float = 0.1) -> HeatingLight:
    """加热时长相对目标的信号灯：±容差为绿，±2×容差为黄，其余为红。"""

    if not target_seconds or target_seconds <= 0:
        return HeatingLight.GREEN

    low_green = target_seconds * (1 - tolerance)
    high_green = target_seconds * (1 + tolerance)
    low_yellow = target_seconds * (1 - 2 * tolerance)
    high_yellow = target_seconds * (1 + 2 * tolerance)

    if seconds < low_yellow or seconds > high_yellow:
        return HeatingLight.RED
    if seconds < low_green or seconds > high_green:
        return HeatingLight.YELLOW
    return HeatingLight.GREEN
