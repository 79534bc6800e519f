"""Test appointment shapes and ordering helpers."""
import pytest
from pydantic import ValidationError as PydanticValidationError

import errors
from models import (
    Appointment,
    AppointmentCreate,
    AppointmentUpdate,
    check_date,
    newest_first,
    validate_appointment,
)


def test_create_applies_defaults_and_trims(jane):
    jane["name"] = "  Jane Doe  "
    jane["phone"] = " 555-0100 "

    appointment = AppointmentCreate.model_validate(jane)

    assert appointment.name == "Jane Doe"
    assert appointment.phone == "555-0100"
    assert appointment.confirmationSent is False
    assert appointment.reviewSent is False
    assert appointment.billupdateflag is False


def test_create_rejects_unknown_fields(jane):
    jane["colour"] = "blue"

    with pytest.raises(PydanticValidationError):
        AppointmentCreate.model_validate(jane)


@pytest.mark.parametrize("field", ["name", "date", "time"])
def test_create_requires_field(jane, field):
    del jane[field]

    with pytest.raises(PydanticValidationError):
        AppointmentCreate.model_validate(jane)


def test_blank_name_is_invalid(jane):
    jane["name"] = "   "

    with pytest.raises(errors.ValidationError) as exc_info:
        validate_appointment(jane)

    assert "name" in exc_info.value.details


def test_service_needs_description_and_cost(jane):
    jane["services"] = [{"description": "Whitening"}]

    with pytest.raises(errors.ValidationError) as exc_info:
        validate_appointment(jane)

    assert "cost" in exc_info.value.details


def test_date_must_be_iso_day(jane):
    jane["date"] = "01/06/2024"

    with pytest.raises(errors.ValidationError):
        validate_appointment(jane)


def test_update_changes_skip_read_only_fields():
    update = AppointmentUpdate.model_validate({
        "id": "abc",
        "createdAt": "2024-06-01T10:00:00Z",
        "reviewSent": True,
    })

    assert update.changes() == {"reviewSent": True}


@pytest.mark.parametrize("value", [None, "", "13-2024-01", "2024-6-1", "2024-06-01\n", "\u0662\u0660\u0662\u0664-\u0660\u0666-\u0660\u0661"])
def test_check_date_rejects_bad_format(value):
    with pytest.raises(errors.InvalidArgument):
        check_date(value)


def test_newest_first_orders_by_date_then_time():
    def make(i, date, time):
        return Appointment(id=str(i), name="x", date=date, time=time)

    ordered = newest_first([
        make(1, "2024-06-01", "09:00"),
        make(2, "2024-06-02", "08:00"),
        make(3, "2024-06-01", "17:30"),
    ])

    assert [a.id for a in ordered] == ["2", "3", "1"]
