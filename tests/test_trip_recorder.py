# tests/test_trip_recorder.py
"""Trip log revision, deletion and history grouping."""

import pytest
from pydantic import ValidationError
from conftest import NOW, SIGNATURE, day
from fleetpool.exceptions import ConflictError, NotFoundError
from fleetpool.models.enums import MaintenanceKind
from fleetpool.models.trip_log import TripLog
from fleetpool.schemas.trip_log import CheckinForm, CheckoutForm, LogRevision
from fleetpool.services import trip_recorder, vehicle_service
from fleetpool.services.movement_service import handle_checkin, handle_checkout

ALL_PRESENT = {"libretto": True, "assicurazione": True, "card": True, "telepass": True,
               "manuale": True, "giubbino": True, "triangolo": True}


async def closed_trip(db, vehicle, driver="Verdi", km=10150, damages="dent on rear door"):
    out = await handle_checkout(db, vehicle.id, CheckoutForm(driver=driver, signature=SIGNATURE,
                                                             checklist=ALL_PRESENT), now=NOW)
    back = await handle_checkin(db, vehicle.id, CheckinForm(km=km, signature=SIGNATURE, damages=damages,
                                                            checklist=ALL_PRESENT), now=day(1, 18))
    return out["log"], back["log"]


class TestRevision:
    @pytest.mark.asyncio
    async def test_latest_entry_reconciles_vehicle(self, db, vehicle):
        _, checkin = await closed_trip(db, vehicle)

        revision = LogRevision(signature=SIGNATURE, km=10120, fuel="1/2", damages="dent on rear bumper",
                               checklist=dict(ALL_PRESENT, manuale=False))
        entry = trip_recorder.revise_log_entry(db, checkin.id, revision, now=day(2))

        assert entry.revised_at == day(2)
        db.refresh(vehicle)
        assert vehicle.km == 10120 and vehicle.fuel == "1/2"
        assert vehicle.damages == [{"trip_id": "00001", "description": "dent on rear bumper"}]
        assert vehicle.missing_checklist == ["manuale"]
        assert entry.damage_snapshot == vehicle.damages

    @pytest.mark.asyncio
    async def test_older_entry_leaves_vehicle_alone(self, db, vehicle):
        checkout, _ = await closed_trip(db, vehicle)

        trip_recorder.revise_log_entry(db, checkout.id, LogRevision(signature=SIGNATURE, km=9990, notes="typo"),
                                       now=day(2))

        db.refresh(vehicle)
        assert vehicle.km == 10150
        assert db.query(TripLog).filter(TripLog.id == checkout.id).one().km == 9990

    @pytest.mark.asyncio
    async def test_checkout_km_cannot_exceed_checkin(self, db, vehicle):
        checkout, _ = await closed_trip(db, vehicle)
        with pytest.raises(ConflictError):
            trip_recorder.revise_log_entry(db, checkout.id, LogRevision(signature=SIGNATURE, km=10200))

    @pytest.mark.asyncio
    async def test_checkin_km_cannot_drop_below_checkout(self, db, vehicle):
        _, checkin = await closed_trip(db, vehicle)
        with pytest.raises(ConflictError):
            trip_recorder.revise_log_entry(db, checkin.id, LogRevision(signature=SIGNATURE, km=9000))
        db.refresh(vehicle)
        assert vehicle.km == 10150

    @pytest.mark.asyncio
    async def test_open_checkout_cannot_drop_below_previous_checkin(self, db, vehicle):
        await closed_trip(db, vehicle, km=12000)
        out = await handle_checkout(db, vehicle.id, CheckoutForm(driver="Gialli", signature=SIGNATURE),
                                    now=day(2, 8))

        with pytest.raises(ConflictError, match="12000"):
            trip_recorder.revise_log_entry(db, out["log"].id, LogRevision(signature=SIGNATURE, km=5000), now=day(2, 9))

        db.refresh(vehicle)
        assert vehicle.km == 12000
        with pytest.raises(ConflictError):
            await handle_checkin(db, vehicle.id, CheckinForm(km=6000, signature=SIGNATURE), now=day(2, 18))

    @pytest.mark.asyncio
    async def test_open_checkout_may_move_up_from_previous_checkin(self, db, vehicle):
        await closed_trip(db, vehicle, km=12000)
        out = await handle_checkout(db, vehicle.id, CheckoutForm(driver="Gialli", signature=SIGNATURE),
                                    now=day(2, 8))
        trip_recorder.revise_log_entry(db, out["log"].id, LogRevision(signature=SIGNATURE, km=12005), now=day(2, 9))
        db.refresh(vehicle)
        assert vehicle.km == 12005

    @pytest.mark.asyncio
    async def test_revision_after_repair_does_not_restore_damage(self, db, vehicle):
        _, checkin = await closed_trip(db, vehicle, damages="dent")
        vehicle_service.start_maintenance(db, vehicle.id, MaintenanceKind.REPAIR, now=day(2))
        vehicle_service.end_maintenance(db, vehicle.id, MaintenanceKind.REPAIR, now=day(3))

        revision = LogRevision(signature=SIGNATURE, damages="dent (typo fixed)",
                               checklist=dict(ALL_PRESENT, triangolo=False))
        entry = trip_recorder.revise_log_entry(db, checkin.id, revision, now=day(4))

        assert entry.damages == "dent (typo fixed)"
        db.refresh(vehicle)
        assert vehicle.damages == [] and vehicle.missing_checklist == []
        assert vehicle.repaired_at == day(3)

    def test_signature_is_mandatory(self):
        with pytest.raises(ValidationError):
            LogRevision(signature="  ", km=100)

    def test_unknown_entry(self, db):
        with pytest.raises(NotFoundError):
            trip_recorder.revise_log_entry(db, 404, LogRevision(signature=SIGNATURE))


class TestDeletion:
    @pytest.mark.asyncio
    async def test_delete_checkin_reopens_trip_in_history(self, db, vehicle):
        _, checkin = await closed_trip(db, vehicle)
        trip_recorder.delete_log_entry(db, checkin.id)

        trips = trip_recorder.list_trips(db)
        assert trips[0]["trip_id"] == "00001" and trips[0]["is_open"] is True
        db.refresh(vehicle)
        assert vehicle.status == "available"

    @pytest.mark.asyncio
    async def test_delete_trip_removes_both_entries(self, db, vehicle):
        await closed_trip(db, vehicle)
        assert trip_recorder.delete_trip(db, "00001") == 2
        assert db.query(TripLog).count() == 0
        db.refresh(vehicle)
        assert vehicle.km == 10150

    def test_delete_unknown_trip(self, db):
        with pytest.raises(NotFoundError):
            trip_recorder.delete_trip(db, "99999")


class TestHistory:
    @pytest.mark.asyncio
    async def test_trips_grouped_newest_first_with_legacy(self, db, vehicle):
        db.add(TripLog(trip_id=None, movement="checkout", vehicle_id=vehicle.id, vehicle_model=vehicle.model,
                       plate=vehicle.plate, driver="Neri", event_time=day(-10, 9), km=9000))
        db.commit()
        await closed_trip(db, vehicle)

        trips = trip_recorder.list_trips(db)
        assert [t["trip_id"] for t in trips] == ["00001", trip_recorder.LEGACY_TRIP]
        closed = trips[0]
        assert closed["is_open"] is False
        assert [e.movement for e in closed["logs"]] == ["checkout", "checkin"]
        assert closed["started_at"] == NOW and closed["driver"] == "Verdi"
        assert trips[1]["is_open"] is True

    @pytest.mark.asyncio
    async def test_search_matches_driver_case_insensitively(self, db, vehicle):
        await closed_trip(db, vehicle, driver="Verdi")
        assert len(trip_recorder.list_logs(db, search="verdi")) == 2
        assert trip_recorder.list_logs(db, search="ab123") != []
        assert trip_recorder.list_logs(db, search="nobody") == []

    @pytest.mark.asyncio
    async def test_checkout_entry_keeps_expected_return(self, db, vehicle):
        await handle_checkout(db, vehicle.id, CheckoutForm(driver="Verdi", signature=SIGNATURE,
                                                           expected_return=day(3, 12)), now=NOW)
        entry = trip_recorder.latest_entry_for_vehicle(db, vehicle.id)
        assert entry.movement == "checkout" and entry.expected_return == day(3, 12)
        assert entry.checklist == {k: False for k in ALL_PRESENT}
