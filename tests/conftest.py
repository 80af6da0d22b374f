from __future__ import annotations

import dataclasses
from datetime import date, datetime
from typing import Iterable, Optional, Sequence

import pytest

from src.timecard.timecard.attendance.model import (
    AttendanceHistory,
    AttendanceRecord,
    Correction,
    HistoryEntry,
    NewRecord,
)
from src.timecard.timecard.auth.context import AuthContext
from src.timecard.timecard.common.datetime_utils import jst_timestamp
from src.timecard.timecard.core.enums import RecordType
from src.timecard.timecard.core.exceptions import NotFoundError
from src.timecard.timecard.qr_links.model import QrLink
from src.timecard.timecard.staff.model import Staff
from src.timecard.timecard.users.model import User
from src.timecard.timecard.work_settings.model import AppliedWorkSetting, SettingDraft, WorkSetting


class InMemoryUsers:
    def __init__(self):
        self.users: dict[int, User] = {}

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self.users.get(user_id)

    def get_by_username(self, username: str) -> Optional[User]:
        return next((u for u in self.users.values() if u.username == username), None)

    def create_user(self, *, full_name: str, username: str, password_hash: str) -> int:
        user_id = len(self.users) + 1
        self.users[user_id] = User(
            user_id=user_id,
            full_name=full_name,
            username=username,
            password_hash=password_hash,
            is_active=True,
        )
        return user_id


class InMemoryStaff:
    def __init__(self):
        self.staff: dict[int, Staff] = {}

    def get_by_id(self, staff_id: int) -> Optional[Staff]:
        return self.staff.get(staff_id)

    def get_by_qr_code(self, qr_code: str) -> Optional[Staff]:
        return next((s for s in self.staff.values() if s.qr_code == qr_code), None)

    def find_by_employee_id(self, employee_id: str) -> Sequence[Staff]:
        return [s for s in self.staff.values() if s.employee_id == employee_id][:2]

    def list_for_owner(self, owner_id: int, *, is_active: Optional[bool] = None) -> Sequence[Staff]:
        out = [
            s
            for s in self.staff.values()
            if s.owner_id == owner_id and (is_active is None or s.is_active == is_active)
        ]
        return sorted(out, key=lambda s: s.staff_id, reverse=True)

    def create_staff(self, *, owner_id, name, employee_id, qr_code, email, tags) -> int:
        staff_id = len(self.staff) + 1
        self.staff[staff_id] = Staff(
            staff_id=staff_id,
            owner_id=owner_id,
            name=name,
            employee_id=employee_id,
            qr_code=qr_code,
            email=email,
            tags=tuple(tags),
        )
        return staff_id

    def update_staff(self, *, staff_id, name, email, tags) -> bool:
        s = self.staff.get(staff_id)
        if not s:
            return False
        self.staff[staff_id] = dataclasses.replace(s, name=name, email=email, tags=tuple(tags))
        return True

    def set_active(self, staff_id: int, *, is_active: bool) -> bool:
        s = self.staff.get(staff_id)
        if not s:
            return False
        self.staff[staff_id] = dataclasses.replace(s, is_active=is_active)
        return True


class InMemoryAttendance:
    def __init__(self):
        self.records: dict[int, AttendanceRecord] = {}
        self.history: list[AttendanceHistory] = []
        self._next_id = 0

    def _new_id(self) -> int:
        self._next_id += 1
        return self._next_id

    def _append_history(self, entry: HistoryEntry) -> None:
        self.history.append(
            AttendanceHistory(
                history_id=len(self.history) + 1,
                attendance_id=entry.attendance_id,
                pair_id=entry.pair_id,
                record_type=entry.record_type,
                old_timestamp=entry.old_timestamp,
                new_timestamp=entry.new_timestamp,
                old_note=entry.old_note,
                new_note=entry.new_note,
                modified_by=entry.modified_by,
                modified_at=entry.modified_at,
            )
        )

    def _store(self, record: NewRecord, *, pair_id: Optional[str] = None) -> AttendanceRecord:
        attendance_id = self._new_id()
        stored = AttendanceRecord(
            attendance_id=attendance_id,
            owner_id=record.owner_id,
            staff_id=record.staff_id,
            record_type=record.record_type,
            timestamp=record.timestamp,
            pair_id=pair_id if pair_id is not None else record.pair_id,
            note=record.note,
            is_manual_entry=record.is_manual_entry,
        )
        self.records[attendance_id] = stored
        return stored

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        return self.records.get(attendance_id)

    def find_by_pair_id(self, owner_id: int, pair_id: str) -> Sequence[AttendanceRecord]:
        out = [r for r in self.records.values() if r.owner_id == owner_id and r.pair_id == pair_id]
        return sorted(out, key=lambda r: (r.timestamp, r.attendance_id))

    def latest_clock_in_before(self, owner_id: int, staff_id: int, before: int) -> Optional[AttendanceRecord]:
        candidates = [
            r
            for r in self.records.values()
            if r.owner_id == owner_id
            and r.staff_id == staff_id
            and r.record_type == RecordType.CLOCK_IN
            and r.timestamp < before
        ]
        return max(candidates, key=lambda r: (r.timestamp, r.attendance_id), default=None)

    def list_between(self, owner_id: int, start: int, end: int, *, staff_id: Optional[int] = None):
        out = [
            r
            for r in self.records.values()
            if r.owner_id == owner_id
            and start <= r.timestamp <= end
            and (staff_id is None or r.staff_id == staff_id)
        ]
        return sorted(out, key=lambda r: (r.timestamp, r.attendance_id))

    def insert_record(self, record: NewRecord, *, self_pair: bool = False, history: Optional[HistoryEntry] = None):
        stored = self._store(record)
        if self_pair:
            stored = dataclasses.replace(stored, pair_id=str(stored.attendance_id))
            self.records[stored.attendance_id] = stored
        if history is not None:
            self._append_history(
                dataclasses.replace(
                    history,
                    attendance_id=stored.attendance_id,
                    pair_id=stored.pair_id,
                    record_type=stored.record_type,
                )
            )
        return stored

    def insert_pair(self, records: Sequence[NewRecord]) -> Sequence[AttendanceRecord]:
        return [self._store(r) for r in records]

    def _current_entry(self, entry: HistoryEntry, attendance_id: int) -> HistoryEntry:
        current = self.records[attendance_id]
        return dataclasses.replace(
            entry,
            attendance_id=current.attendance_id,
            pair_id=current.pair_id,
            record_type=current.record_type,
            old_timestamp=current.timestamp,
            old_note=current.note,
        )

    def apply_correction(self, attendance_id: int, correction: Correction, history: HistoryEntry):
        if attendance_id not in self.records:
            raise NotFoundError("Target record not found")
        self._append_history(self._current_entry(history, attendance_id))
        updated = dataclasses.replace(
            self.records[attendance_id],
            timestamp=correction.timestamp,
            note=correction.note,
            corrected_at=correction.corrected_at,
            correction_reason=correction.correction_reason,
        )
        self.records[attendance_id] = updated
        return updated

    def delete_with_history(self, deletions) -> int:
        if any(attendance_id not in self.records for attendance_id, _ in deletions):
            raise NotFoundError("Attendance pair not found")
        for attendance_id, entry in deletions:
            self._append_history(self._current_entry(entry, attendance_id))
            del self.records[attendance_id]
        return len(deletions)

    def history_for_records(self, attendance_ids: Iterable[int]) -> Sequence[AttendanceHistory]:
        ids = set(attendance_ids)
        return [h for h in self.history if h.attendance_id in ids]


class InMemoryWorkSettings:
    def __init__(self):
        self.settings: dict[int, WorkSetting] = {}
        self.applied: dict[tuple[int, date], AppliedWorkSetting] = {}
        self._next_id = 0

    def list_for_owner(self, owner_id: int) -> Sequence[WorkSetting]:
        return sorted((s for s in self.settings.values() if s.owner_id == owner_id), key=lambda s: s.setting_id)

    def get_by_id(self, setting_id: int) -> Optional[WorkSetting]:
        return self.settings.get(setting_id)

    def get_by_name(self, owner_id: int, name: str) -> Optional[WorkSetting]:
        return next((s for s in self.list_for_owner(owner_id) if s.name == name), None)

    def _clear_default(self, owner_id: int) -> None:
        for s in self.list_for_owner(owner_id):
            self.settings[s.setting_id] = dataclasses.replace(s, is_default=False)

    def create_many(self, owner_id: int, drafts: Sequence[SettingDraft]) -> list[int]:
        if any(d.is_default for d in drafts):
            self._clear_default(owner_id)
        ids = []
        for d in drafts:
            self._next_id += 1
            self.settings[self._next_id] = WorkSetting(
                setting_id=self._next_id,
                owner_id=owner_id,
                name=d.name,
                work_hours=d.work_hours,
                break_hours=d.break_hours,
                is_default=d.is_default,
            )
            ids.append(self._next_id)
        return ids

    def update(self, *, setting_id, name, work_hours, break_hours) -> bool:
        s = self.settings[setting_id]
        self.settings[setting_id] = dataclasses.replace(s, name=name, work_hours=work_hours, break_hours=break_hours)
        return True

    def delete(self, setting_id: int) -> bool:
        if self.settings.pop(setting_id, None) is None:
            return False
        for key in [k for k, a in self.applied.items() if a.setting_id == setting_id]:
            del self.applied[key]
        return True

    def set_default(self, owner_id: int, setting_id: int) -> bool:
        self._clear_default(owner_id)
        self.settings[setting_id] = dataclasses.replace(self.settings[setting_id], is_default=True)
        return True

    def get_applied(self, staff_id: int, work_date: date) -> Optional[AppliedWorkSetting]:
        return self.applied.get((staff_id, work_date))

    def upsert_applied(self, *, owner_id, staff_id, work_date, setting_id, is_auto_assigned=False) -> int:
        existing = self.applied.get((staff_id, work_date))
        applied_id = existing.applied_id if existing else len(self.applied) + 1
        self.applied[(staff_id, work_date)] = AppliedWorkSetting(
            applied_id=applied_id,
            owner_id=owner_id,
            staff_id=staff_id,
            work_date=work_date,
            setting_id=setting_id,
            is_auto_assigned=is_auto_assigned,
        )
        return applied_id

    def clear_applied(self, staff_id: int, work_date: date) -> bool:
        return self.applied.pop((staff_id, work_date), None) is not None

    def list_applied(self, staff_id: int, start: date, end: date) -> Sequence[AppliedWorkSetting]:
        out = [a for (sid, d), a in self.applied.items() if sid == staff_id and start <= d <= end]
        return sorted(out, key=lambda a: a.work_date)


class InMemoryQrLinks:
    def __init__(self):
        self.links: dict[int, QrLink] = {}

    def list_for_owner(self, owner_id: int) -> Sequence[QrLink]:
        return sorted((l for l in self.links.values() if l.owner_id == owner_id), key=lambda l: -l.link_id)

    def get_by_id(self, link_id: int) -> Optional[QrLink]:
        return self.links.get(link_id)

    def get_by_url_id(self, url_id: str) -> Optional[QrLink]:
        return next((l for l in self.links.values() if l.url_id == url_id), None)

    def create(self, *, owner_id, name, url_id, expires_at) -> int:
        link_id = len(self.links) + 1
        self.links[link_id] = QrLink(link_id=link_id, owner_id=owner_id, name=name, url_id=url_id, expires_at=expires_at)
        return link_id

    def regenerate(self, link_id: int, *, url_id: str) -> bool:
        self.links[link_id] = dataclasses.replace(self.links[link_id], url_id=url_id, is_active=True)
        return True

    def set_active(self, link_id: int, *, is_active: bool) -> bool:
        self.links[link_id] = dataclasses.replace(self.links[link_id], is_active=is_active)
        return True

    def delete(self, link_id: int) -> bool:
        return self.links.pop(link_id, None) is not None


@pytest.fixture
def users_repo():
    return InMemoryUsers()


@pytest.fixture
def staff_repo():
    return InMemoryStaff()


@pytest.fixture
def attendance_repo():
    return InMemoryAttendance()


@pytest.fixture
def work_settings_repo():
    return InMemoryWorkSettings()


@pytest.fixture
def qr_links_repo():
    return InMemoryQrLinks()


@pytest.fixture
def container(users_repo, staff_repo, attendance_repo, work_settings_repo, qr_links_repo):
    from src.timecard.timecard.container import wire_container

    return wire_container(
        users_repo=users_repo,
        staff_repo=staff_repo,
        attendance_repo=attendance_repo,
        work_settings_repo=work_settings_repo,
        qr_links_repo=qr_links_repo,
    )


@pytest.fixture
def auth():
    return AuthContext(owner_id=1)


@pytest.fixture
def other_auth():
    return AuthContext(owner_id=2)


@pytest.fixture
def make_staff(staff_repo):
    """Insert a staff member directly into the fake store."""

    def _make(*, owner_id: int = 1, name: str = "Sato", is_active: bool = True, qr_code: Optional[str] = None):
        staff_id = len(staff_repo.staff) + 1
        employee_id = f"EMP{staff_id:08d}"
        staff_repo.staff[staff_id] = Staff(
            staff_id=staff_id,
            owner_id=owner_id,
            name=name,
            employee_id=employee_id,
            qr_code=qr_code or f"{employee_id}_token{staff_id}",
            is_active=is_active,
        )
        return staff_repo.staff[staff_id]

    return _make


@pytest.fixture
def at():
    """JST wall clock 'YYYY-MM-DD HH:MM' -> epoch ms."""

    def _at(value: str) -> int:
        dt = datetime.strptime(value, "%Y-%m-%d %H:%M")
        return jst_timestamp(dt.date(), dt.time())

    return _at


@pytest.fixture
def app(container, monkeypatch):
    from src.timecard.timecard.main import create_app

    monkeypatch.setenv("APP_ENV", "testing")
    flask_app = create_app(container=container)
    flask_app.config["TESTING"] = True
    return flask_app


@pytest.fixture
def client(app):
    return app.test_client()
