# tests/test_vehicle_state.py
"""Unit tests for the vehicle state machine (no database)."""

import pytest
from conftest import NOW, day, make_booking, make_vehicle
from fleetpool.exceptions import ConflictError, InputError
from fleetpool.models.enums import MaintenanceKind
from fleetpool.services import vehicle_state
from fleetpool.services.vehicle_state import Available, InUse, Maintenance


def checked_out(**extra):
    v = make_vehicle()
    vehicle_state.apply_checkout(v, "Rossi", NOW, "00007", **extra)
    return v


class TestStatusMapping:
    def test_available_round_trip(self):
        assert vehicle_state.read_status(make_vehicle()) == Available()

    def test_in_use_carries_trip_fields(self):
        v = checked_out(commessa="C-12", expected_return=day(2, 9), booking_id=4)
        assert vehicle_state.read_status(v) == InUse("Rossi", "C-12", "00007", day(2, 9), 4)
        assert v.status == "in_use"

    def test_maintenance_clears_trip_fields(self):
        v = checked_out()
        vehicle_state.write_status(v, Maintenance(MaintenanceKind.REPAIR), NOW)
        assert v.status == "maintenance"
        assert v.maintenance_kind == "repair"
        assert v.driver is None and v.current_trip_id is None
        assert v.is_under_repair and not v.is_under_maintenance


class TestCheckoutPreconditions:
    @pytest.mark.parametrize("kind", list(MaintenanceKind))
    def test_maintenance_blocks_checkout(self, kind):
        v = make_vehicle()
        vehicle_state.start_maintenance(v, kind, NOW)
        with pytest.raises(ConflictError, match="under"):
            vehicle_state.ensure_can_checkout(v, [], NOW, expected_return=day(2))

    def test_in_use_blocks_checkout(self):
        with pytest.raises(ConflictError, match="checked out to Rossi"):
            vehicle_state.ensure_can_checkout(checked_out(), [], NOW)

    def test_free_vehicle_needs_no_return_date(self):
        vehicle_state.ensure_can_checkout(make_vehicle(), [], NOW)

    def test_booking_conflicting_with_expected_return(self):
        v = make_vehicle()
        bookings = [make_booking(1, day(2, 10), day(3, 10), driver="Rossi")]
        with pytest.raises(ConflictError, match="Rossi") as exc:
            vehicle_state.ensure_can_checkout(v, bookings, NOW, expected_return=day(2, 18))
        assert exc.value.reason.booking_id == 1

    def test_return_before_booking_accepted(self):
        v = make_vehicle()
        bookings = [make_booking(1, day(2, 10), day(3, 10))]
        vehicle_state.ensure_can_checkout(v, bookings, NOW, expected_return=day(2, 9))

    def test_expected_return_mandatory_with_upcoming_booking(self):
        v = make_vehicle()
        bookings = [make_booking(1, day(2, 10), day(3, 10), driver="Rossi")]
        with pytest.raises(ConflictError, match="expected return is required"):
            vehicle_state.ensure_can_checkout(v, bookings, NOW)

    def test_fulfilling_the_only_booking_needs_no_return(self):
        v = make_vehicle()
        bookings = [make_booking(1, day(1, 7), day(1, 18))]
        vehicle_state.ensure_can_checkout(v, bookings, NOW, booking_id=1)

    def test_overdue_booking_blocks_unrelated_checkout(self):
        v = make_vehicle()
        bookings = [make_booking(1, day(1, 7), day(1, 18), driver="Bianchi")]
        with pytest.raises(ConflictError, match="Bianchi"):
            vehicle_state.ensure_can_checkout(v, bookings, NOW, expected_return=day(1, 9))

    def test_past_bookings_ignored(self):
        v = make_vehicle()
        bookings = [make_booking(1, day(0, 7), day(0, 18))]
        vehicle_state.ensure_can_checkout(v, bookings, NOW)

    def test_booking_of_other_vehicle_rejected(self):
        v = make_vehicle()
        bookings = [make_booking(1, day(2), day(3), vehicle_id=2)]
        with pytest.raises(InputError):
            vehicle_state.ensure_can_checkout(v, bookings, NOW, booking_id=1)

    def test_expected_return_in_past_rejected(self):
        with pytest.raises(InputError):
            vehicle_state.ensure_can_checkout(make_vehicle(), [], NOW, expected_return=day(1, 7))

    def test_checkout_odometer_cannot_go_backwards(self):
        with pytest.raises(ConflictError):
            vehicle_state.ensure_can_checkout(make_vehicle(km=10000), [], NOW, km=9999)

    def test_apply_checkout_updates_odometer_and_fuel(self):
        v = make_vehicle()
        vehicle_state.apply_checkout(v, "Rossi", NOW, "00001", km=10050, fuel="3/4")
        assert v.km == 10050 and v.fuel == "3/4"


class TestCheckin:
    def test_lower_odometer_rejected(self):
        with pytest.raises(ConflictError, match="below"):
            vehicle_state.ensure_can_checkin(checked_out(), 9999)

    def test_equal_odometer_accepted(self):
        vehicle_state.ensure_can_checkin(checked_out(), 10000)

    def test_not_in_use_rejected(self):
        with pytest.raises(ConflictError):
            vehicle_state.ensure_can_checkin(make_vehicle(), 10100)

    def test_checkin_clears_trip_and_records_missing_items(self):
        v = checked_out(commessa="C-1", expected_return=day(2), booking_id=9)
        checklist = {"libretto": True, "assicurazione": True, "card": True, "telepass": True,
                     "manuale": True, "giubbino": True, "triangolo": False}
        bound = vehicle_state.apply_checkin(v, 10120, NOW, checklist, fuel="1/2")
        assert bound == 9
        assert vehicle_state.read_status(v) == Available()
        assert v.driver is None and v.commessa is None and v.expected_return is None
        assert v.current_booking_id is None and v.current_trip_id is None
        assert v.km == 10120 and v.fuel == "1/2"
        assert v.missing_checklist == ["triangolo"]


class TestMaintenance:
    def test_only_from_available(self):
        with pytest.raises(ConflictError):
            vehicle_state.start_maintenance(checked_out(), MaintenanceKind.SERVICE, NOW)

    def test_cannot_start_twice(self):
        v = make_vehicle()
        vehicle_state.start_maintenance(v, MaintenanceKind.SERVICE, NOW)
        with pytest.raises(ConflictError):
            vehicle_state.start_maintenance(v, MaintenanceKind.REPAIR, NOW)

    def test_wrong_end_action_names_active_flow(self):
        v = make_vehicle()
        vehicle_state.start_maintenance(v, MaintenanceKind.REPAIR, NOW)
        with pytest.raises(ConflictError, match="under repair, not maintenance"):
            vehicle_state.end_maintenance(v, MaintenanceKind.SERVICE, NOW)
        assert v.is_under_repair

    def test_end_when_not_in_maintenance(self):
        with pytest.raises(ConflictError):
            vehicle_state.end_maintenance(make_vehicle(), MaintenanceKind.REPAIR, NOW)

    def test_repair_completion_clears_damage_state(self):
        v = make_vehicle(damages=[{"trip_id": "00003", "description": "scratch"}],
                         damage_photos=["img"], missing_checklist=["triangolo"])
        vehicle_state.start_maintenance(v, MaintenanceKind.REPAIR, NOW)
        vehicle_state.end_maintenance(v, MaintenanceKind.REPAIR, NOW)
        assert v.damages == [] and v.damage_photos == [] and v.missing_checklist == []
        assert v.status == "available" and v.maintenance_kind is None

    def test_service_completion_keeps_damage_state(self):
        v = make_vehicle(damages=[{"trip_id": "00003", "description": "scratch"}],
                         missing_checklist=["triangolo"])
        vehicle_state.start_maintenance(v, MaintenanceKind.SERVICE, NOW)
        vehicle_state.end_maintenance(v, MaintenanceKind.SERVICE, NOW)
        assert len(v.damages) == 1
        assert v.missing_checklist == ["triangolo"]
        assert v.status == "available"
