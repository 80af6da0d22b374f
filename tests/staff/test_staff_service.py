from __future__ import annotations

import dataclasses

import pytest

from src.timecard.timecard.core.exceptions import NotFoundError, ValidationError
from src.timecard.timecard.staff.service import StaffService, make_employee_id, make_qr_token


@pytest.fixture
def svc(staff_repo):
    return StaffService(staff_repo)


def test_employee_id_uses_last_eight_digits():
    assert make_employee_id(1715300000123) == "EMP00000123"
    assert make_employee_id(1715312345678) == "EMP12345678"


def test_qr_token_format():
    token = make_qr_token("EMP12345678")

    prefix, suffix = token.split("_")
    assert prefix == "EMP12345678"
    assert len(suffix) == 13
    assert suffix.isalnum()


def test_create_staff_assigns_ids_and_cleans_tags(svc, auth):
    staff = svc.create_staff(auth, name="  Tanaka ", tags=["Care", " Care", "", "Night"], now=1715300000123)

    assert staff.name == "Tanaka"
    assert staff.owner_id == auth.owner_id
    assert staff.employee_id == "EMP00000123"
    assert staff.qr_code.startswith("EMP00000123_")
    assert staff.tags == ("Care", "Night")
    assert staff.is_active


def test_create_staff_requires_name(svc, auth):
    with pytest.raises(ValidationError):
        svc.create_staff(auth, name=" ")


def test_get_other_owners_staff_is_not_found(svc, auth, other_auth):
    staff = svc.create_staff(auth, name="Tanaka")

    with pytest.raises(NotFoundError):
        svc.get(other_auth, staff.staff_id)
    with pytest.raises(NotFoundError):
        svc.update_staff(other_auth, staff.staff_id, name="Hijack")


def test_update_staff(svc, auth):
    staff = svc.create_staff(auth, name="Tanaka", tags=["A"])

    updated = svc.update_staff(auth, staff.staff_id, name="Tanaka Jr", tags=["B"], email="t@example.com")

    assert updated.name == "Tanaka Jr"
    assert updated.tags == ("B",)
    assert updated.email == "t@example.com"
    assert updated.qr_code == staff.qr_code


def test_bulk_deactivate_skips_foreign_ids(svc, auth, make_staff):
    mine = make_staff(owner_id=1)
    theirs = make_staff(owner_id=2)

    changed = svc.deactivate(auth, [mine.staff_id, theirs.staff_id, 999])

    assert changed == 1
    assert [s.staff_id for s in svc.list_inactive(auth)] == [mine.staff_id]
    assert svc.list_active(auth) == []

    assert svc.reactivate(auth, [mine.staff_id]) == 1
    assert [s.staff_id for s in svc.list_active(auth)] == [mine.staff_id]


def test_all_tags_sorted_unique(svc, auth, other_auth):
    svc.create_staff(auth, name="A", tags=["night", "care"])
    svc.create_staff(auth, name="B", tags=["care", "floor-2"])
    svc.create_staff(other_auth, name="C", tags=["secret"])

    assert svc.all_tags(auth) == ["care", "floor-2", "night"]


def test_resolve_qr_token_and_employee_fallback(svc, make_staff):
    staff = make_staff(qr_code="EMP00000001_xyz")

    assert svc.resolve_qr_token("EMP00000001_xyz").staff_id == staff.staff_id
    assert svc.resolve_qr_token(staff.employee_id).staff_id == staff.staff_id
    with pytest.raises(NotFoundError):
        svc.resolve_qr_token("")
    with pytest.raises(NotFoundError):
        svc.resolve_qr_token("missing")


def test_employee_id_steps_past_one_taken_by_another_owner(svc, auth, other_auth):
    first = svc.create_staff(auth, name="Tanaka", now=1_700_000_000_000)

    # Same last eight digits a little under 28 hours later.
    second = svc.create_staff(other_auth, name="Suzuki", now=1_700_000_000_000 + 100_000_000)

    assert first.employee_id == "EMP00000000"
    assert second.employee_id == "EMP00000001"


def test_shared_employee_id_resolves_to_nobody(svc, staff_repo, make_staff):
    mine = make_staff(owner_id=1)
    theirs = make_staff(owner_id=2)
    staff_repo.staff[theirs.staff_id] = dataclasses.replace(theirs, employee_id=mine.employee_id)

    with pytest.raises(NotFoundError):
        svc.resolve_qr_token(mine.employee_id)
    assert svc.resolve_qr_token(theirs.qr_code).staff_id == theirs.staff_id


def test_qr_png_is_png(svc, auth):
    staff = svc.create_staff(auth, name="Tanaka")

    png = svc.qr_png(auth, staff.staff_id)

    assert png.startswith(b"\x89PNG")
