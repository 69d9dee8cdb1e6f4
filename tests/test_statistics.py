import math
from datetime import datetime, timezone

import numpy as np
import pytest

from bioplastic_lab.models.enums import (
    HeatingLight,
    MeasurementKind,
    ReliabilityMetric,
    ReliabilityStatus,
)
from bioplastic_lab.schemas.records import Practice
from bioplastic_lab.services.statistics import (
    build_stats,
    classify,
    clean_positives,
    cv_pct,
    diff_pct,
    heating_light,
    mean,
    reliability_report,
    sample_sd,
)


@pytest.mark.parametrize(
    "values, status, value",
    [
        ([10, 10.8], ReliabilityStatus.OK, 7.69),
        ([10, 11], ReliabilityStatus.WARN, 9.52),
        ([10, 12], ReliabilityStatus.FAIL, 18.18),
    ],
)
def test_duplicate_time_uses_percent_difference(values, status, value) -> None:
    verdict = classify(MeasurementKind.TIME, values)
    assert verdict.status == status
    assert verdict.metric == ReliabilityMetric.DIFF_PCT
    assert verdict.value == value


def test_triplicate_uses_cv() -> None:
    same = classify(MeasurementKind.TIME, [10, 10, 10])
    assert same.status == ReliabilityStatus.OK
    assert same.metric == ReliabilityMetric.CV_PCT
    assert same.value == 0

    spread = classify(MeasurementKind.TIME, [10, 10, 20])
    assert spread.status == ReliabilityStatus.FAIL
    assert spread.value == pytest.approx(43.3, abs=0.01)


def test_temperature_threshold_is_tighter() -> None:
    assert classify(MeasurementKind.TEMP, [100, 103]).status == ReliabilityStatus.OK
    assert classify(MeasurementKind.TEMP, [100, 104]).status == ReliabilityStatus.WARN
    assert classify(MeasurementKind.TEMP, [100, 106]).status == ReliabilityStatus.FAIL
    # 同样的数据按时间阈值是 ok
    assert classify(MeasurementKind.TIME, [100, 106]).status == ReliabilityStatus.OK


@pytest.mark.parametrize(
    "values",
    [[], [0, 0, 0], [5], [5, 0, None, math.nan, -1, math.inf]],
)
def test_not_applicable_below_two_valid_values(values) -> None:
    verdict = classify(MeasurementKind.TIME, values)
    assert verdict.status == ReliabilityStatus.NOT_APPLICABLE
    assert verdict.metric is None
    assert verdict.value is None


def test_clean_positives_drops_unrecorded_values() -> None:
    assert clean_positives([0, 1.5, "2", None, "x", -3, math.nan, True]) == [1.5, 2.0]


def test_basic_statistics_edge_cases() -> None:
    assert mean([]) == 0
    assert sample_sd([5]) == 0
    assert sample_sd([2, 4, 4, 4, 5, 5, 7, 9]) == pytest.approx(2.138, abs=1e-3)
    assert cv_pct([]) == 0
    assert diff_pct(0, 0) == 0
    assert diff_pct(10, 12) == pytest.approx(18.1818, abs=1e-4)


def test_build_stats_summary() -> None:
    stats = build_stats([60, 0, 120])
    assert stats.n == 2
    assert stats.mean == 90
    assert stats.sd == 42.43
    assert stats.cv == 47.14
    assert (stats.min, stats.max, stats.range) == (60, 120, 60)

    empty = build_stats([0, None])
    assert empty.n == 0
    assert empty.mean is None


def _practice(number: int, seconds: int, max_temp=None) -> Practice:
    return Practice(
        code=f"01{number:02d}070325",
        experiment_number=1,
        practice_number=number,
        date=datetime(2025, 3, 7, tzinfo=timezone.utc),
        heat_seconds=seconds,
        max_temp=max_temp,
    )


def test_reliability_report_converts_seconds_to_minutes() -> None:
    report = reliability_report(1, [_practice(1, 600, 0), _practice(2, 648), _practice(3, 0)])
    assert report.time.stats.n == 2
    assert report.time.verdict.status == ReliabilityStatus.OK
    assert report.time.verdict.value == 7.69
    assert report.temp.verdict.status == ReliabilityStatus.NOT_APPLICABLE


@pytest.mark.parametrize(
    "seconds, light",
    [
        (600, HeatingLight.GREEN),
        (540, HeatingLight.GREEN),
        (660, HeatingLight.GREEN),
        (539, HeatingLight.YELLOW),
        (700, HeatingLight.YELLOW),
        (480, HeatingLight.YELLOW),
        (479, HeatingLight.RED),
        (721, HeatingLight.RED),
    ],
)
def test_heating_light_bands(seconds, light) -> None:
    assert heating_light(seconds, 600, 0.1) == light


def test_heating_light_without_target_is_green() -> None:
    assert heating_light(5, 0) == HeatingLight.GREEN
    assert heating_light(5, None) == HeatingLight.GREEN


def test_triplicate_cv_matches_bessel_corrected_std() -> None:
    values = [10.0, 10.5, 11.2]
    expected = np.std(values, ddof=1) / np.mean(values) * 100
    assert sample_sd(values) == pytest.approx(np.std(values, ddof=1))
    assert classify(MeasurementKind.TIME, values).value == round(expected, 2)
