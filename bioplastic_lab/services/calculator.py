"""试剂计算与编码生成（纯函数）。"""

from __future__ import annotations

import math
import sys
from datetime import date
from typing import Optional

from bioplastic_lab.errors import ValidationFailed
from bioplastic_lab.schemas.records import Reagents

# 以 10 g 淀粉为基准的配方
BASE_STARCH_G = 10.0
WATER_ML_PER_BASE = 50.0
ACETIC_ML_PER_BASE = 2.5
GLYCERIN_ML_PER_BASE = 2.5


def round2(value: Optional[float]) -> float:
    """保留两位小数，半数远离零舍入。

    先加上一个机器精度的微小量，避免 1.005 这类值因二进制表示被舍到 1.00。
    非有限值（含放大后溢出）抛出 ``ValidationFailed``。
    """

    x = float(value or 0)
    if x < 0:
        return -round2(-x)
    scaled = (x + sys.float_info.epsilon) * 100 + 0.5
    if not math.isfinite(scaled):
        raise ValidationFailed(f"数值超出范围: {value}")
    return math.floor(scaled) / 100


def reagents_from_starch(grams: Optional[float]) -> Reagents:
    """按淀粉质量线性换算其余试剂用量。

    零与负数同样按比例换算，不做截断。
    """

    g = float(grams or 0)
    if not math.isfinite(g):
        raise ValidationFailed(f"淀粉质量必须是有限数值，收到 {grams}")
    factor = g / BASE_STARCH_G
    return Reagents(
        starch_g=round2(g),
        water_ml=round2(WATER_ML_PER_BASE * factor),
        acetic_ml=round2(ACETIC_ML_PER_BASE * factor),
        glycerin_ml=round2(GLYCERIN_ML_PER_BASE * factor),
    )


def format_ddmmyy(day: date) -> str:
    return f"{day.day:02d}{day.month:02d}{day.year % 100:02d}"


def build_code(experiment_number: int, practice_number: int, day: date) -> str:
    """实验号两位 + 练习号两位 + DDMMYY，共 10 个字符，无分隔符。

    实验号超过 99 时不截断，编码随之变长。
    """

    return f"{experiment_number:02d}{practice_number:02d}{format_ddmmyy(day)}"


def heat_minutes(seconds: Optional[int]) -> Optional[float]:
    if not seconds:
        return None
    return round2(seconds / 60)
