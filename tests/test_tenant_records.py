from datetime import date

import pytest

from fedha.core.errors import DuplicateAdmissionNumber, NotAuthorized, NotFound, ValidationError
from fedha.core.permissions import Role
from fedha.models.school import Student
from fedha.services.bookings import GuestInfo, create_booking, create_resource_unit, list_resource_units
from fedha.services.dashboard import get_stats
from fedha.services.rentals import create_lessee, deactivate_lessee, list_lessees
from fedha.services.school import create_student, deactivate_student, list_students
from tests.fixtures_data import BOOKING_SCENARIO, CASHIER, FRONT_DESK, MANAGER, add_member, add_principal, seed_tenant


def _lessee_kwargs(**overrides):
    kwargs = {
        "name": "Baraka Lessee",
        "phone": "0722000000",
        "unit_number": "B4",
        "rent_amount_cents": 1500000,
        "lease_start": date(2025, 1, 1),
    }
    kwargs.update(overrides)
    return kwargs


def _student_kwargs(**overrides):
    kwargs = {
        "admission_number": "adm-010",
        "first_name": "Zawadi",
        "last_name": "Mwangi",
        "class_level": "Grade 4",
        "parent_name": "Halima Mwangi",
        "parent_phone": "0733000000",
        "fee_amount_cents": 2000000,
    }
    kwargs.update(overrides)
    return kwargs


def test_manager_adds_lessee_and_it_counts_as_a_customer(db):
    _, tenant = seed_tenant(db, category="rentals", name="Kilimani Apartments")
    manager = add_principal(db, MANAGER)
    add_member(db, tenant, manager, Role.MANAGER)

    lessee = create_lessee(db, principal_id=manager.id, tenant_id=tenant.id, **_lessee_kwargs(name="  Baraka  "))

    assert lessee.name == "Baraka"
    assert lessee.is_active is True
    assert [row.id for row in list_lessees(db, principal_id=manager.id, tenant_id=tenant.id)] == [lessee.id]
    assert get_stats(db, principal_id=manager.id, tenant_id=tenant.id).customer_count == 1


def test_deactivated_lessee_drops_out_of_lists_and_customer_count(db):
    owner, tenant = seed_tenant(db, category="rentals", name="Kilimani Apartments")
    lessee = create_lessee(db, principal_id=owner.id, tenant_id=tenant.id, **_lessee_kwargs())

    deactivate_lessee(db, principal_id=owner.id, tenant_id=tenant.id, lessee_id=lessee.id)

    assert list_lessees(db, principal_id=owner.id, tenant_id=tenant.id) == []
    assert len(list_lessees(db, principal_id=owner.id, tenant_id=tenant.id, include_inactive=True)) == 1
    assert get_stats(db, principal_id=owner.id, tenant_id=tenant.id).customer_count == 0

    with pytest.raises(NotFound):
        deactivate_lessee(db, principal_id=owner.id, tenant_id=tenant.id, lessee_id=lessee.id + 100)


@pytest.mark.parametrize(
    "overrides",
    [
        {"name": " "},
        {"phone": ""},
        {"unit_number": ""},
        {"rent_amount_cents": 0},
        {"deposit_amount_cents": -1},
        {"lease_end": date(2024, 12, 31)},
    ],
)
def test_invalid_lessee_input(db, overrides):
    owner, tenant = seed_tenant(db, category="rentals", name="Kilimani Apartments")

    with pytest.raises(ValidationError):
        create_lessee(db, principal_id=owner.id, tenant_id=tenant.id, **_lessee_kwargs(**overrides))

    assert list_lessees(db, principal_id=owner.id, tenant_id=tenant.id, include_inactive=True) == []


def test_staff_without_manager_role_cannot_add_records(db):
    _, tenant = seed_tenant(db, category="rentals", name="Kilimani Apartments")
    accountant = add_principal(db, CASHIER)
    add_member(db, tenant, accountant, Role.ACCOUNTANT)

    with pytest.raises(NotAuthorized):
        create_lessee(db, principal_id=accountant.id, tenant_id=tenant.id, **_lessee_kwargs())
    with pytest.raises(NotAuthorized):
        create_student(db, principal_id=accountant.id, tenant_id=tenant.id, **_student_kwargs())


def test_student_admission_numbers_are_unique_per_tenant(db):
    owner, tenant = seed_tenant(db, category="school", name="Baraka Academy")

    student = create_student(db, principal_id=owner.id, tenant_id=tenant.id, **_student_kwargs())
    assert student.admission_number == "ADM-010"

    with pytest.raises(DuplicateAdmissionNumber):
        create_student(
            db, principal_id=owner.id, tenant_id=tenant.id, **_student_kwargs(admission_number=" ADM-010 ")
        )

    assert db.query(Student).filter(Student.tenant_id == tenant.id).count() == 1
    assert get_stats(db, principal_id=owner.id, tenant_id=tenant.id).customer_count == 1


def test_withdrawn_student_is_hidden_from_the_roster(db):
    owner, tenant = seed_tenant(db, category="school", name="Baraka Academy")
    student = create_student(db, principal_id=owner.id, tenant_id=tenant.id, **_student_kwargs())

    deactivate_student(db, principal_id=owner.id, tenant_id=tenant.id, student_id=student.id)

    assert list_students(db, principal_id=owner.id, tenant_id=tenant.id) == []
    assert [s.id for s in list_students(db, principal_id=owner.id, tenant_id=tenant.id, include_inactive=True)] == [
        student.id
    ]


@pytest.mark.parametrize("overrides", [{"first_name": ""}, {"parent_phone": " "}, {"fee_amount_cents": -5}])
def test_invalid_student_input(db, overrides):
    owner, tenant = seed_tenant(db, category="school", name="Baraka Academy")

    with pytest.raises(ValidationError):
        create_student(db, principal_id=owner.id, tenant_id=tenant.id, **_student_kwargs(**overrides))


@pytest.mark.parametrize("kind, initial_status", [("room", "available"), ("Listing", "listed")])
def test_new_resource_unit_starts_free_and_can_be_booked(db, kind, initial_status):
    owner, tenant = seed_tenant(db, category="hotel", name="Lakeview Hotel")
    desk = add_principal(db, FRONT_DESK)
    add_member(db, tenant, desk, Role.FRONT_DESK)

    unit = create_resource_unit(
        db, tenant_id=tenant.id, principal_id=owner.id, kind=kind, label=" Suite 1 ", rate_per_night_cents=2500, capacity=2
    )

    assert unit.label == "Suite 1"
    assert unit.status == initial_status
    assert [u.id for u in list_resource_units(db, tenant_id=tenant.id, principal_id=desk.id)] == [unit.id]

    reservation = create_booking(
        db,
        tenant_id=tenant.id,
        principal_id=desk.id,
        guest=GuestInfo(name=BOOKING_SCENARIO["guest_name"], phone=BOOKING_SCENARIO["guest_phone"]),
        check_in=BOOKING_SCENARIO["check_in"],
        check_out=BOOKING_SCENARIO["check_out"],
        guests_count=1,
        total_amount_cents=BOOKING_SCENARIO["total_amount_cents"],
        resource_unit_id=unit.id,
    )
    assert reservation.resource_unit_id == unit.id


@pytest.mark.parametrize(
    "overrides",
    [{"kind": "villa"}, {"label": ""}, {"rate_per_night_cents": -1}, {"capacity": 0}],
)
def test_invalid_resource_unit_input(db, overrides):
    owner, tenant = seed_tenant(db, category="hotel", name="Lakeview Hotel")
    kwargs = {"kind": "room", "label": "Room 7", "rate_per_night_cents": 2500, "capacity": 2}
    kwargs.update(overrides)

    with pytest.raises(ValidationError):
        create_resource_unit(db, tenant_id=tenant.id, principal_id=owner.id, **kwargs)


def test_front_desk_cannot_add_resource_units(db):
    _, tenant = seed_tenant(db, category="hotel", name="Lakeview Hotel")
    desk = add_principal(db, FRONT_DESK)
    add_member(db, tenant, desk, Role.FRONT_DESK)

    with pytest.raises(NotAuthorized):
        create_resource_unit(
            db, tenant_id=tenant.id, principal_id=desk.id, kind="room", label="Room 9", rate_per_night_cents=2500
        )
