import pytest

from bioplastic_lab.errors import ValidationFailed
from bioplastic_lab.services.calculator import reagents_from_starch
from bioplastic_lab.services.experiments import ExperimentRepository
from bioplastic_lab.services.store import StorageKeys, read_int


@pytest.fixture
def repo(store, clock) -> ExperimentRepository:
    return ExperimentRepository(store, clock)


def test_create_experiment_with_three_replicas(repo) -> None:
    base = reagents_from_starch(10)
    experiment, practices = repo.create_experiment(base, 3, "owner-1")

    assert experiment.experiment_number == 1
    assert experiment.closed is False
    assert [p.practice_number for p in practices] == [1, 2, 3]
    assert [p.code for p in practices] == ["0101070325", "0102070325", "0103070325"]
    for practice in practices:
        assert practice.owner_id == "owner-1"
        assert practice.starch_g == 10
        assert practice.water_ml == 50
        assert practice.heat_seconds == 0

    assert repo.find_by_experiment(1) == practices
    assert repo.find_by_code("0102070325") == practices[1]


def test_counter_is_monotonic_and_not_reused(repo) -> None:
    base = reagents_from_starch(5)
    repo.create_experiment(base, 1, None)
    second, _ = repo.create_experiment(base, 1, None)
    assert second.experiment_number == 2

    repo.delete_experiment(2)
    third, practices = repo.create_experiment(base, 1, None)
    assert third.experiment_number == 3
    assert practices[0].code.startswith("0301")


@pytest.mark.parametrize("replicas", [0, 4, -1])
def test_invalid_replica_count_leaves_counter_untouched(repo, store, replicas) -> None:
    with pytest.raises(ValidationFailed):
        repo.create_experiment(reagents_from_starch(10), replicas, None)
    assert read_int(store, StorageKeys.EXPERIMENT_COUNTER) == 0
    assert repo.all_experiments() == []


def test_update_practice_merges_and_ignores_identity_fields(repo) -> None:
    _, practices = repo.create_experiment(reagents_from_starch(10), 2, "owner-1")
    code = practices[0].code

    updated = repo.update_practice(
        code,
        {"final_notes": "flexible", "code": "9999999999", "owner_id": "thief", "practice_number": 7},
    )
    assert updated.code == code
    assert updated.owner_id == "owner-1"
    assert updated.practice_number == 1
    assert updated.final_notes == "flexible"
    assert updated.starch_g == 10
    assert repo.find_by_code(code).final_notes == "flexible"
    assert repo.find_by_code(practices[1].code).final_notes == ""


def test_update_practice_rejects_invalid_values(repo) -> None:
    _, practices = repo.create_experiment(reagents_from_starch(10), 1, None)
    with pytest.raises(ValidationFailed):
        repo.update_practice(practices[0].code, {"heat_seconds": "soon"})


def test_update_missing_practice_returns_none(repo) -> None:
    assert repo.update_practice("0000000000", {"final_notes": "x"}) is None


def test_delete_experiment_cascades_to_its_practices_only(repo) -> None:
    base = reagents_from_starch(10)
    repo.create_experiment(base, 3, None)
    repo.create_experiment(base, 2, None)

    assert repo.delete_experiment(1) == 3
    assert repo.get_experiment(1) is None
    assert repo.find_by_experiment(1) == []
    assert len(repo.find_by_experiment(2)) == 2
    assert repo.delete_experiment(1) == 0


def test_close_experiment_persists(repo) -> None:
    repo.create_experiment(reagents_from_starch(10), 1, None)
    assert repo.close_experiment(1).closed is True
    assert repo.get_experiment(1).closed is True
    assert repo.close_experiment(42) is None


def test_delete_single_practice(repo) -> None:
    _, practices = repo.create_experiment(reagents_from_starch(10), 2, None)
    assert repo.delete_practice(practices[0].code)
    assert not repo.delete_practice(practices[0].code)
    assert [p.practice_number for p in repo.find_by_experiment(1)] == [2]


@pytest.mark.parametrize("fields", [{"heat_seconds": -500}, {"max_temp": float("inf")}])
def test_update_practice_enforces_record_bounds(repo, fields) -> None:
    _, practices = repo.create_experiment(reagents_from_starch(10), 1, None)
    code = practices[0].code
    with pytest.raises(ValidationFailed):
        repo.update_practice(code, fields)
    assert repo.find_by_code(code).heat_seconds == 0
    assert repo.find_by_code(code).max_temp is None
