from __future__ import annotations

import pytest

from src.timecard.timecard.attendance.service import AttendanceService
from src.timecard.timecard.core.exceptions import NotFoundError, ValidationError


@pytest.fixture
def svc(attendance_repo, staff_repo):
    return AttendanceService(attendance_repo, staff_repo)


def _shift(svc, auth, staff, at, day="2024-05-10"):
    cin = svc.record_clock(auth, staff_id=staff.staff_id, record_type="clock_in", timestamp=at(f"{day} 09:00"))
    cout = svc.record_clock(auth, staff_id=staff.staff_id, record_type="clock_out", timestamp=at(f"{day} 17:00"))
    return cin.record, cout.record


def test_delete_pair_removes_both_sides_with_history(svc, auth, make_staff, attendance_repo, at):
    staff = make_staff()
    cin, cout = _shift(svc, auth, staff, at)

    deleted = svc.delete_pair(auth, cin.pair_id, reason="duplicate shift", now=at("2024-05-11 10:00"))

    assert deleted == 2
    assert attendance_repo.records == {}
    assert {h.attendance_id for h in attendance_repo.history} == {cin.attendance_id, cout.attendance_id}
    assert all(h.is_deletion for h in attendance_repo.history)
    assert all(h.new_note == "duplicate shift" for h in attendance_repo.history)
    assert all(h.modified_at == at("2024-05-11 10:00") for h in attendance_repo.history)


def test_delete_pair_without_reason_notes_deleted(svc, auth, make_staff, attendance_repo, at):
    staff = make_staff()
    cin, _ = _shift(svc, auth, staff, at)

    svc.delete_pair(auth, cin.pair_id)

    assert {h.new_note for h in attendance_repo.history} == {"deleted"}


def test_delete_pair_twice_is_not_found(svc, auth, make_staff, at):
    staff = make_staff()
    cin, _ = _shift(svc, auth, staff, at)
    svc.delete_pair(auth, cin.pair_id)

    with pytest.raises(NotFoundError):
        svc.delete_pair(auth, cin.pair_id)


def test_delete_pair_leaves_other_pairs(svc, auth, make_staff, attendance_repo, at):
    staff = make_staff()
    cin, _ = _shift(svc, auth, staff, at, day="2024-05-10")
    keep_in, keep_out = _shift(svc, auth, staff, at, day="2024-05-11")

    svc.delete_pair(auth, cin.pair_id)

    assert set(attendance_repo.records) == {keep_in.attendance_id, keep_out.attendance_id}


def test_delete_pair_removes_every_clock_out(svc, auth, make_staff, attendance_repo, at):
    staff = make_staff()
    cin, _ = _shift(svc, auth, staff, at)
    svc.record_clock(auth, staff_id=staff.staff_id, record_type="clock_out", timestamp=at("2024-05-10 17:02"))

    deleted = svc.delete_pair(auth, cin.pair_id)

    assert deleted == 3
    assert attendance_repo.records == {}
    assert len(attendance_repo.history) == 3


def test_delete_orphan_clock_out_is_rejected(svc, auth, make_staff, attendance_repo, at):
    staff = make_staff()
    orphan = svc.record_clock(auth, staff_id=staff.staff_id, record_type="clock_out", timestamp=at("2024-05-10 17:00"))

    with pytest.raises(ValidationError):
        svc.delete_pair(auth, str(orphan.record.attendance_id))
    assert orphan.record.attendance_id in attendance_repo.records
    assert attendance_repo.history == []


def test_delete_other_owners_pair_is_not_found(svc, auth, other_auth, make_staff, attendance_repo, at):
    staff = make_staff(owner_id=1)
    cin, _ = _shift(svc, auth, staff, at)

    with pytest.raises(NotFoundError):
        svc.delete_pair(other_auth, cin.pair_id)
    assert len(attendance_repo.records) == 2


def test_create_pair_shares_generated_pair_id(svc, auth, make_staff, attendance_repo, at):
    staff = make_staff()

    pair = svc.create_pair(
        auth, staff_id=staff.staff_id, clock_in=at("2024-05-10 09:00"), clock_out=at("2024-05-10 17:00")
    )

    assert pair.is_closed
    assert pair.clock_in.pair_id == pair.clock_out.pair_id == pair.pair_id
    assert pair.pair_id != str(pair.clock_in.attendance_id)
    assert all(r.is_manual_entry for r in attendance_repo.records.values())
    assert pair.duration_minutes == 480


def test_create_pair_then_delete(svc, auth, make_staff, attendance_repo, at):
    staff = make_staff()
    pair = svc.create_pair(auth, staff_id=staff.staff_id, clock_in=at("2024-05-10 09:00"))

    assert not pair.is_closed
    assert svc.delete_pair(auth, pair.pair_id) == 1
    assert attendance_repo.records == {}


def test_create_pair_rejects_inverted_times(svc, auth, make_staff, attendance_repo, at):
    staff = make_staff()

    with pytest.raises(ValidationError):
        svc.create_pair(
            auth, staff_id=staff.staff_id, clock_in=at("2024-05-10 17:00"), clock_out=at("2024-05-10 09:00")
        )
    assert attendance_repo.records == {}


def test_delete_pair_accepts_non_text_reason(svc, auth, make_staff, attendance_repo, at):
    staff = make_staff()
    cin, _ = _shift(svc, auth, staff, at)

    svc.delete_pair(auth, cin.pair_id, reason=42)

    assert {h.new_note for h in attendance_repo.history} == {"42"}


def test_delete_pair_losing_a_race_writes_no_history(svc, auth, make_staff, attendance_repo, at, monkeypatch):
    staff = make_staff()
    cin, _ = _shift(svc, auth, staff, at)
    stale = list(attendance_repo.find_by_pair_id(auth.owner_id, cin.pair_id))
    svc.delete_pair(auth, cin.pair_id, reason="first")
    history_before = list(attendance_repo.history)

    # The second caller read the pair before the first delete committed.
    monkeypatch.setattr(attendance_repo, "find_by_pair_id", lambda owner_id, pair_id: stale)

    with pytest.raises(NotFoundError):
        svc.delete_pair(auth, cin.pair_id, reason="second")
    assert attendance_repo.history == history_before


def test_delete_pair_history_uses_values_at_delete_time(svc, auth, make_staff, attendance_repo, at, monkeypatch):
    staff = make_staff()
    cin, _ = _shift(svc, auth, staff, at)
    stale = list(attendance_repo.find_by_pair_id(auth.owner_id, cin.pair_id))
    svc.correct(
        auth,
        staff_id=staff.staff_id,
        pair_id=cin.pair_id,
        date="2024-05-10",
        record_type="clock_in",
        time="08:30",
        reason="came early",
    )
    monkeypatch.setattr(attendance_repo, "find_by_pair_id", lambda owner_id, pair_id: stale)

    svc.delete_pair(auth, cin.pair_id)

    deletion = next(h for h in attendance_repo.history if h.is_deletion and h.attendance_id == cin.attendance_id)
    assert deletion.old_timestamp == at("2024-05-10 08:30")
    assert deletion.old_note == "came early"
