import pytest
from types import SimpleNamespace

from daytally.api_service.core.store import MemoryStore
from daytally.shared.paths import activity_path
from daytally.ledger.errors import CapacityExceeded, InvalidInput
from daytally.ledger.models import ActivityDraft, Category
from daytally.ledger.service import LedgerService, check_capacity, parse_duration, validate_draft

DAY = "2024-01-01"


def draft(duration, name="Block", category=Category.WORK):
    return ActivityDraft(name=name, category=category, duration=duration)


def test_load_day_without_data_is_empty(ledger_service, session):
    ledger = ledger_service.load_day(session, DAY)
    assert ledger.records == {}
    assert ledger.total_minutes == 0
    assert ledger.user_id == "user-1"
    assert ledger.day == DAY


def test_add_then_load_round_trip(ledger_service, session):
    ledger = ledger_service.load_day(session, DAY)
    written = ledger_service.add_or_update(session, ledger, draft(90, name="Morning run", category=Category.EXERCISE))

    reloaded = ledger_service.load_day(session, DAY)
    assert list(reloaded.records) == [written.id]
    stored = reloaded.get(written.id)
    assert stored.name == "Morning run"
    assert stored.category == Category.EXERCISE
    assert stored.duration == 90
    assert stored.timestamp == written.timestamp


def test_running_sum_rejects_first_overflow(ledger_service, session):
    durations = [480, 480, 300, 100, 80, 1]
    accepted = 0
    for duration in durations[:-1]:
        ledger = ledger_service.load_day(session, DAY)
        ledger_service.add_or_update(session, ledger, draft(duration))
        accepted += duration
    assert accepted == 1440

    ledger = ledger_service.load_day(session, DAY)
    with pytest.raises(CapacityExceeded) as exc_info:
        ledger_service.add_or_update(session, ledger, draft(durations[-1]))
    assert exc_info.value.remaining_minutes == 0
    assert ledger_service.load_day(session, DAY).total_minutes == 1440


def test_overflow_reports_remaining_minutes(ledger_service, session, store):
    ledger = ledger_service.load_day(session, DAY)
    ledger_service.add_or_update(session, ledger, draft(1000))
    ledger = ledger_service.load_day(session, DAY)
    writes_before = len(store.writes)

    with pytest.raises(CapacityExceeded) as exc_info:
        ledger_service.add_or_update(session, ledger, draft(500))

    assert exc_info.value.remaining_minutes == 440
    assert "You have 440 minutes remaining." in exc_info.value.message
    assert len(store.writes) == writes_before


def test_exactly_full_day_is_accepted(ledger_service, session):
    ledger = ledger_service.load_day(session, DAY)
    ledger_service.add_or_update(session, ledger, draft(1440))
    assert ledger_service.load_day(session, DAY).total_minutes == 1440


def test_edit_does_not_count_record_against_itself(ledger_service, session):
    ledger = ledger_service.load_day(session, DAY)
    ledger_service.add_or_update(session, ledger, draft(1340, name="Rest"))
    ledger = ledger_service.load_day(session, DAY)
    target = ledger_service.add_or_update(session, ledger, draft(100, name="Reading"))
    ledger = ledger_service.load_day(session, DAY)
    assert ledger.total_minutes == 1440

    # 1440 - 100 + 80 fits
    updated = ledger_service.add_or_update(session, ledger, draft(80, name="Reading"), target.id)
    assert updated.id == target.id
    assert ledger_service.load_day(session, DAY).total_minutes == 1420


def test_edit_that_overflows_is_rejected(ledger_service, session):
    ledger = ledger_service.load_day(session, DAY)
    ledger_service.add_or_update(session, ledger, draft(1340, name="Rest"))
    ledger = ledger_service.load_day(session, DAY)
    target = ledger_service.add_or_update(session, ledger, draft(100, name="Reading"))
    ledger = ledger_service.load_day(session, DAY)

    with pytest.raises(CapacityExceeded) as exc_info:
        ledger_service.add_or_update(session, ledger, draft(150, name="Reading"), target.id)

    assert exc_info.value.remaining_minutes == 100
    assert ledger_service.load_day(session, DAY).get(target.id).duration == 100


def test_edit_overwrites_whole_record(ledger_service, session):
    ledger = ledger_service.load_day(session, DAY)
    first = ledger_service.add_or_update(session, ledger, draft(60, name="Gym", category=Category.EXERCISE))
    ledger = ledger_service.load_day(session, DAY)
    ledger_service.add_or_update(session, ledger, draft(45, name="Lunch", category=Category.MEALS), first.id)

    records = ledger_service.load_day(session, DAY).records
    assert list(records) == [first.id]
    assert records[first.id].name == "Lunch"
    assert records[first.id].category == Category.MEALS
    assert records[first.id].duration == 45


def test_unknown_id_takes_create_path(ledger_service, session):
    ledger = ledger_service.load_day(session, DAY)
    ledger_service.add_or_update(session, ledger, draft(1400))
    ledger = ledger_service.load_day(session, DAY)

    with pytest.raises(CapacityExceeded) as exc_info:
        ledger_service.add_or_update(session, ledger, draft(50), "not-there")
    assert exc_info.value.remaining_minutes == 40


def test_generated_ids_do_not_collide(ledger_service, session, monkeypatch):
    monkeypatch.setattr(ledger_service, "_now_ms", lambda: 1704067200000)
    ledger = ledger_service.load_day(session, DAY)
    first = ledger_service.add_or_update(session, ledger, draft(10))
    ledger = ledger_service.load_day(session, DAY)
    second = ledger_service.add_or_update(session, ledger, draft(20))

    assert first.id == "1704067200000"
    assert second.id == "1704067200001"
    assert ledger_service.load_day(session, DAY).total_minutes == 30


def test_delete_is_idempotent(ledger_service, session):
    ledger = ledger_service.load_day(session, DAY)
    keep = ledger_service.add_or_update(session, ledger, draft(30, name="Keep"))
    ledger = ledger_service.load_day(session, DAY)
    drop = ledger_service.add_or_update(session, ledger, draft(40, name="Drop"))

    ledger_service.delete(session, DAY, drop.id)
    once = ledger_service.load_day(session, DAY)
    ledger_service.delete(session, DAY, drop.id)
    twice = ledger_service.load_day(session, DAY)

    assert once.records == twice.records
    assert list(twice.records) == [keep.id]


def test_delete_missing_id_is_a_no_op(ledger_service, session):
    ledger_service.delete(session, DAY, "never-existed")
    assert ledger_service.load_day(session, DAY).records == {}


def test_load_day_skips_malformed_and_coerces_category(ledger_service, session, store):
    store.write(activity_path("user-1", DAY, "a"), {"name": "Chess", "category": "Board games", "duration": 30, "timestamp": 1})
    store.write(activity_path("user-1", DAY, "b"), {"name": "Broken"})
    store.write(activity_path("user-1", DAY, "c"), "not a record")

    ledger = ledger_service.load_day(session, DAY)
    assert list(ledger.records) == ["a"]
    assert ledger.get("a").category == Category.OTHER


def test_load_day_tolerates_id_inside_stored_value(ledger_service, session, store):
    store.write(
        activity_path("user-1", DAY, "a"),
        {"id": "a", "name": "Gym", "category": "Exercise", "duration": 60, "timestamp": 1},
    )
    ledger = ledger_service.load_day(session, DAY)
    assert ledger.get("a").id == "a"
    assert ledger.total_minutes == 60


def test_stored_id_key_never_overrides_path_key(ledger_service, session, store):
    store.write(
        activity_path("user-1", DAY, "a"),
        {"id": "zzz", "name": "Gym", "category": "Exercise", "duration": 60, "timestamp": 1},
    )
    assert list(ledger_service.load_day(session, DAY).records) == ["a"]
    assert ledger_service.load_day(session, DAY).get("a").id == "a"


def test_service_works_with_any_session_shaped_object():
    owner = SimpleNamespace(uid="plain-user", provider_token=None)
    service = LedgerService(MemoryStore())
    ledger = service.load_day(owner, DAY)
    record = service.add_or_update(owner, ledger, draft(90))

    reloaded = service.load_day(owner, DAY)
    assert list(reloaded.records) == [record.id]
    assert reloaded.user_id == "plain-user"


def test_ledgers_are_scoped_per_user(ledger_service, session):
    from daytally.api_service.core.identity import Identity
    from daytally.api_service.core.sessions import SessionRegistry

    other = SessionRegistry().open(Identity(uid="user-2", email="bob@example.com"))
    ledger = ledger_service.load_day(session, DAY)
    ledger_service.add_or_update(session, ledger, draft(60))

    assert ledger_service.load_day(other, DAY).records == {}


@pytest.mark.parametrize("raw", [0, "0", -5, "abc", "", None, "12abc", 1.5, True])
def test_invalid_duration_rejected_before_store_call(raw, store):
    with pytest.raises(InvalidInput):
        validate_draft("Walk", "Exercise", raw)
    assert store.calls == []


def test_empty_name_rejected():
    with pytest.raises(InvalidInput) as exc_info:
        validate_draft("   ", "Work", 30)
    assert exc_info.value.message == "Activity name is required"


def test_unknown_category_rejected():
    with pytest.raises(InvalidInput):
        validate_draft("Walk", "Gardening", 30)


def test_validate_draft_normalises_input():
    result = validate_draft("  Deep work  ", None, " 45 ")
    assert result.name == "Deep work"
    assert result.category == Category.WORK
    assert result.duration == 45


def test_parse_duration_accepts_digit_strings():
    assert parse_duration("120") == 120
    assert parse_duration(1) == 1


def test_check_capacity_boundaries():
    check_capacity(1400, 40)
    check_capacity(1440, 100, previous_duration=100)
    with pytest.raises(CapacityExceeded) as exc_info:
        check_capacity(1400, 41)
    assert exc_info.value.remaining_minutes == 40
