"""Tests for search validation, class selection, passenger entry and fare."""

from datetime import date

import pytest

from railbook.booking_flow import (
    ClassSelection,
    PassengerForm,
    TrainSelection,
    calculate_fare,
    parse_journey_date,
    validate_passenger,
    validate_search,
)
from railbook.exceptions import NavigationStateError, ValidationError

TODAY = date(2026, 1, 1)


# ============================================================================
# Search input
# ============================================================================


class TestValidateSearch:
    def test_valid_input_returns_iso_date(self):
        assert validate_search("ILKL", "SBC", "2026-01-15", today=TODAY) == "2026-01-15"

    def test_today_is_allowed(self):
        assert validate_search("ILKL", "SBC", "2026-01-01", today=TODAY) == "2026-01-01"

    @pytest.mark.parametrize("text, expected", [
        ("15/01/2026", "2026-01-15"),
        ("January 15, 2026", "2026-01-15"),
        ("15 January 2026", "2026-01-15"),
    ])
    def test_flexible_date_formats(self, text, expected):
        assert validate_search("ILKL", "SBC", text, today=TODAY) == expected

    @pytest.mark.parametrize("source, destination, journey_date, field", [
        ("", "SBC", "2026-01-15", "source"),
        ("ILKL", "", "2026-01-15", "destination"),
        ("ILKL", "SBC", "", "journey_date"),
        ("ILKL", "SBC", "   ", "journey_date"),
    ])
    def test_missing_fields(self, source, destination, journey_date, field):
        with pytest.raises(ValidationError) as exc:
            validate_search(source, destination, journey_date, today=TODAY)
        assert field in exc.value.field_errors

    def test_same_source_and_destination(self):
        with pytest.raises(ValidationError) as exc:
            validate_search("SBC", "SBC", "2026-01-15", today=TODAY)
        assert "cannot be the same" in exc.value.message

    def test_past_date(self):
        with pytest.raises(ValidationError) as exc:
            validate_search("ILKL", "SBC", "2025-12-31", today=TODAY)
        assert "journey_date" in exc.value.field_errors

    def test_unparseable_date(self):
        with pytest.raises(ValidationError):
            validate_search("ILKL", "SBC", "someday", today=TODAY)


def test_parse_journey_date_rejects_garbage():
    with pytest.raises(ValueError):
        parse_journey_date("garbage")


def test_search_waits_then_returns_matches(flow, sleep):
    result = flow.search("ILKL", "SBC", "2026-03-10", today=TODAY)
    assert sleep.calls == [1.5]
    assert [t.id for t in result.trains] == ["1"]
    assert result.journey_date == "2026-03-10"


def test_search_validation_failure_skips_delay(flow, sleep):
    with pytest.raises(ValidationError):
        flow.search("SBC", "SBC", "2026-03-10", today=TODAY)
    assert sleep.calls == []


# ============================================================================
# Passenger validation
# ============================================================================


@pytest.mark.parametrize("name, age, gender, bad_fields", [
    ("", "30", "male", {"name"}),
    ("   ", "30", "male", {"name"}),
    ("Al", "30", "male", {"name"}),
    (" Al ", "30", "male", {"name"}),
    ("Asha", "0", "female", {"age"}),
    ("Asha", "121", "female", {"age"}),
    ("Asha", "", "female", {"age"}),
    ("Asha", "abc", "female", {"age"}),
    ("Asha", "30", "", {"gender"}),
    ("Asha", "30", "unknown", {"gender"}),
    ("", "", "", {"name", "age", "gender"}),
])
def test_validate_passenger_rejects(name, age, gender, bad_fields):
    assert set(validate_passenger(name, age, gender)) == bad_fields


@pytest.mark.parametrize("age", ["1", "120", 45])
@pytest.mark.parametrize("gender", ["male", "female", "other"])
def test_validate_passenger_accepts(age, gender):
    assert validate_passenger("Ani", age, gender) == {}


@pytest.mark.parametrize("count", range(1, 7))
def test_fare_is_class_fare_times_passengers(ilkal_express, count):
    second_ac = ilkal_express.get_class("2A")
    assert calculate_fare(second_ac, count) == 2800 * count


# ============================================================================
# Passenger form
# ============================================================================


class TestPassengerForm:
    def test_starts_with_one_empty_row(self):
        form = PassengerForm()
        assert len(form) == 1
        assert form.entries[0].name == ""

    def test_add_up_to_six(self):
        form = PassengerForm()
        for _ in range(5):
            form.add_passenger()
        assert len(form) == 6
        with pytest.raises(ValidationError):
            form.add_passenger()
        assert len(form) == 6

    def test_cannot_remove_last_row(self):
        form = PassengerForm()
        with pytest.raises(ValidationError):
            form.remove_passenger(0)
        assert len(form) == 1

    def test_remove_row(self):
        form = PassengerForm()
        form.add_passenger()
        form.update_passenger(1, "name", "Second")
        form.remove_passenger(0)
        assert [e.name for e in form.entries] == ["Second"]

    def test_validation_annotates_only_bad_fields(self):
        form = PassengerForm()
        form.add_passenger()
        for field_name, value in (("name", "Rahul"), ("age", "28"), ("gender", "male")):
            form.update_passenger(0, field_name, value)
        form.update_passenger(1, "name", "Priya")
        form.update_passenger(1, "age", "200")
        form.update_passenger(1, "gender", "female")

        assert form.validate() is False
        assert form.entries[0].errors == {}
        assert set(form.entries[1].errors) == {"age"}
        assert form.field_errors() == {"passengers[1].age": "Enter valid age (1-120)"}

    def test_editing_a_field_clears_its_error(self):
        form = PassengerForm()
        form.validate()
        assert set(form.entries[0].errors) == {"name", "age", "gender"}
        form.update_passenger(0, "age", 30)
        assert set(form.entries[0].errors) == {"name", "gender"}

    def test_unknown_field(self):
        with pytest.raises(ValueError):
            PassengerForm().update_passenger(0, "seat", "1")

    def test_from_rows_trims_and_converts(self):
        form = PassengerForm.from_rows([{"name": "  Rahul Sharma ", "age": 28, "gender": "male"}])
        assert form.validate()
        passenger = form.to_passengers()[0]
        assert passenger.name == "Rahul Sharma"
        assert passenger.age == 28

    def test_from_rows_limits(self):
        with pytest.raises(ValidationError):
            PassengerForm.from_rows([])
        with pytest.raises(ValidationError):
            PassengerForm.from_rows([{"name": "Abc", "age": 30, "gender": "male"}] * 7)


# ============================================================================
# Class selection and submission
# ============================================================================


def valid_form(rows=None) -> PassengerForm:
    return PassengerForm.from_rows(rows or [
        {"name": "Rahul Sharma", "age": 28, "gender": "male"},
        {"name": "Priya Sharma", "age": 26, "gender": "female"},
    ])


class TestSelectClass:
    def test_defaults_to_first_class(self, flow, ilkal_express, bookings):
        selection = flow.select_class(TrainSelection(ilkal_express, "2026-02-01"))
        assert selection.selected_class.code == "1A"
        assert bookings.current_booking.class_code == "1A"
        assert bookings.current_booking.passengers == []

    def test_preselected_class(self, flow, ilkal_express):
        selection = flow.select_class(TrainSelection(ilkal_express, "2026-02-01", selected_class="3A"))
        assert selection.selected_class.code == "3A"

    def test_explicit_class_wins(self, flow, ilkal_express, bookings):
        selection = flow.select_class(TrainSelection(ilkal_express, "2026-02-01", "3A"), "2A")
        assert selection.selected_class.code == "2A"
        assert bookings.current_booking.train_id == "1"
        assert bookings.current_booking.journey_date == "2026-02-01"

    def test_unknown_class_is_a_no_op(self, flow, ilkal_express, bookings):
        assert flow.select_class(TrainSelection(ilkal_express, "2026-02-01"), "SL") is None
        assert bookings.current_booking is None

    def test_sold_out_class_is_refused(self, flow, sold_out_train, bookings):
        with pytest.raises(ValidationError) as exc:
            flow.select_class(TrainSelection(sold_out_train, "2026-02-01"), "2A")
        assert exc.value.field_errors == {"class_code": "No seats available"}
        assert bookings.current_booking is None

        selection = flow.select_class(TrainSelection(sold_out_train, "2026-02-01"), "3A")
        assert selection.selected_class.code == "3A"

    @pytest.mark.parametrize("selection", [None, TrainSelection(None, "2026-02-01")])
    def test_missing_state_redirects(self, flow, selection):
        with pytest.raises(NavigationStateError) as exc:
            flow.select_class(selection)
        assert exc.value.redirect_to == "/search"

    def test_missing_date_redirects(self, flow, ilkal_express):
        with pytest.raises(NavigationStateError):
            flow.select_class(TrainSelection(ilkal_express, None))


class TestSubmitPassengers:
    def test_computes_fare_and_stages_full_draft(self, flow, ilkal_express, bookings):
        selection = flow.select_class(TrainSelection(ilkal_express, "2026-02-01"), "2A")
        state = flow.submit_passengers(selection, valid_form())

        assert state.total_fare == 5600
        assert len(state.passengers) == 2
        draft = bookings.current_booking
        assert draft.is_complete
        assert draft.total_fare == 5600
        assert [p.name for p in draft.passengers] == ["Rahul Sharma", "Priya Sharma"]

    def test_invalid_passenger_blocks_submission(self, flow, ilkal_express, bookings):
        selection = flow.select_class(TrainSelection(ilkal_express, "2026-02-01"), "2A")
        form = valid_form([
            {"name": "Rahul Sharma", "age": 28, "gender": "male"},
            {"name": "Pr", "age": 26, "gender": "female"},
        ])
        with pytest.raises(ValidationError) as exc:
            flow.submit_passengers(selection, form)
        assert exc.value.field_errors == {"passengers[1].name": "Name must be at least 3 characters"}
        assert not bookings.current_booking.is_complete

    def test_missing_class_redirects(self, flow, ilkal_express):
        with pytest.raises(NavigationStateError):
            flow.submit_passengers(ClassSelection(ilkal_express, "2026-02-01", None), valid_form())
        with pytest.raises(NavigationStateError):
            flow.submit_passengers(None, valid_form())
