"""实验分组的 CSV 导出。"""

from __future__ import annotations

from datetime import date
from typing import Any, Optional, Sequence

from bioplastic_lab.schemas.records import Experiment, Practice
from bioplastic_lab.services.calculator import format_ddmmyy, heat_minutes

CSV_HEADER = (
    "Codigo",
    "NroExperimento",
    "Practica",
    "Fecha",
    "Almidon_g",
    "Agua_mL",
    "AcidoAcetico_mL",
    "Glicerina_mL",
    "Tiempo_s",
    "Tiempo_min",
    "Temp_C",
    "ObsCalentamiento",
    "ObsFinales",
)


def csv_escape(value: Any) -> str:
    """None 输出为空字段，其余一律加双引号并把内部引号加倍。"""

    if value is None:
        return ""
    text = str(value).replace('"', '""')
    return f'"{text}"'


def _fmt(value: Any) -> Any:
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _row(practice: Practice) -> str:
    minutes = practice.heat_minutes
    if minutes is None:
        minutes = heat_minutes(practice.heat_seconds)
    cells = [
        practice.code,
        practice.experiment_number,
        practice.practice_number,
        practice.date.strftime("%Y-%m-%d %H:%M:%S") if practice.date else None,
        _fmt(practice.starch_g),
        _fmt(practice.water_ml),
        _fmt(practice.acetic_ml),
        _fmt(practice.glycerin_ml),
        practice.heat_seconds,
        _fmt(minutes),
        _fmt(practice.max_temp),
        practice.heating_notes,
        practice.final_notes,
    ]
    return ",".join(csv_escape(cell) for cell in cells)


def build_group_csv(experiment: Optional[Experiment], practices: Sequence[Practice]) -> str:
    """首行为基础试剂注释，其后是表头与每个练习一行。"""

    def base(field: str) -> str:
        if experiment is None:
            return ""
        return str(_fmt(getattr(experiment.base_reagents, field)))

    meta = (
        f"# Base: Almidon={base('starch_g')}g, Agua={base('water_ml')}mL, "
        f"Acido={base('acetic_ml')}mL, Glicerina={base('glycerin_ml')}mL"
    )
    lines = [meta, ",".join(CSV_HEADER)]
    lines.extend(_row(p) for p in practices)
    return "\n".join(lines)


def export_filename(experiment_number: int, day: date) -> str:
    return f"exp_{experiment_number:02d}_{format_ddmmyy(day)}.csv"
