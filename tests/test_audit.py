from bioplastic_lab.services.audit import AuditTrail
from bioplastic_lab.services.store import MemoryStore, StorageKeys


def test_log_appends_in_insertion_order(store, clock) -> None:
    trail = AuditTrail(store, clock)
    first = trail.log("experiment:create", {"experiment_number": 1})
    second = trail.log("experiment:close", {"experiment_number": 1})

    entries = trail.entries()
    assert [e.action for e in entries] == ["experiment:create", "experiment:close"]
    assert [e.id for e in entries] == [first.id, second.id]
    assert first.id < second.id
    assert entries[0].timestamp == clock()
    assert entries[0].details == {"experiment_number": 1}


def test_reading_is_idempotent(store) -> None:
    trail = AuditTrail(store)
    trail.log("experiment:create")
    assert trail.entries() == trail.entries()


def test_clear_never_reuses_ids(store) -> None:
    trail = AuditTrail(store)
    trail.log("a")
    trail.log("b")
    trail.clear()
    assert trail.entries() == []
    assert trail.log("c").id == 3


def test_corrupted_log_is_treated_as_empty() -> None:
    store = MemoryStore({StorageKeys.AUDIT_LOG: "oops"})
    trail = AuditTrail(store)
    assert trail.entries() == []
    trail.log("experiment:create")
    assert len(trail.entries()) == 1
