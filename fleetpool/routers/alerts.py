# fleetpool/routers/alerts.py
"""Operator alerts: fallback trip ids and half-finished movements to reconcile."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Optional
from fleetpool.database import get_db
from fleetpool.schemas.alert import AlertOut
from fleetpool.services import alert_service

router = APIRouter()


@router.get("/alerts", response_model=list[AlertOut], summary="Alerts, newest first")
def list_alerts(
    alert_type: Optional[str] = None,
    vehicle_id: Optional[int] = None,
    is_resolved: Optional[int] = 0,
    limit: int = 50,
    db: Session = Depends(get_db)
):
    """alert_type is degraded_trip_id or partial_completion. Open alerts only unless is_resolved is given."""
    return alert_service.list_alerts(db, alert_type=alert_type, vehicle_id=vehicle_id,
                                     is_resolved=is_resolved, limit=limit)


@router.put("/alerts/{alert_id}/resolve", response_model=AlertOut, summary="Mark an alert as reconciled")
def resolve(alert_id: int, db: Session = Depends(get_db)):
    return alert_service.resolve_alert(db, alert_service.get_alert(db, alert_id))
