# fleetpool/services/alert_service.py
"""
Operator alerts.
movement_service raises one when a checkout gets a fallback trip id or a flow
stops half-way. Alerts stay open until the operator resolves them.
"""

from datetime import datetime
from typing import Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from fleetpool.database import commit
from fleetpool.exceptions import NotFoundError
from fleetpool.models.alert import Alert
from fleetpool.utils.logger import get_logger
from fleetpool.utils.time_utils import utcnow

logger = get_logger(__name__)

DEGRADED_TRIP_ID = "degraded_trip_id"
PARTIAL_COMPLETION = "partial_completion"


async def create_alert(db: Session, alert_type: str, description: str,
                       vehicle_id: Optional[int] = None, trip_id: Optional[str] = None,
                       now: Optional[datetime] = None) -> bool:
    """
    Persist an alert in its own commit. Returns False if the store is down:
    the condition is still in the log, and the caller carries on with its warning.
    """
    logger.warning(f"[ALERT][{alert_type.upper()}] {description}")
    try:
        db.add(Alert(alert_type=alert_type, vehicle_id=vehicle_id, trip_id=trip_id,
                     description=description, is_resolved=0, triggered_at=now or utcnow()))
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"[ALERT] could not persist {alert_type} alert: {e}", exc_info=True)
        return False
    return True


def list_alerts(db: Session, alert_type: Optional[str] = None, vehicle_id: Optional[int] = None,
                is_resolved: Optional[int] = None, limit: int = 50) -> list[Alert]:
    q = db.query(Alert)
    if alert_type:
        q = q.filter(Alert.alert_type == alert_type)
    if vehicle_id is not None:
        q = q.filter(Alert.vehicle_id == vehicle_id)
    if is_resolved is not None:
        q = q.filter(Alert.is_resolved == is_resolved)
    return q.order_by(Alert.triggered_at.desc(), Alert.id.desc()).limit(limit).all()


def get_alert(db: Session, alert_id: int) -> Alert:
    alert = db.query(Alert).filter(Alert.id == alert_id).first()
    if not alert:
        raise NotFoundError(f"Alert {alert_id} not found")
    return alert


def resolve_alert(db: Session, alert: Alert, now: Optional[datetime] = None) -> Alert:
    alert.is_resolved = 1
    alert.resolved_at = now or utcnow()
    commit(db, "alert resolution")
    logger.info(f"[ALERT] {alert.id} ({alert.alert_type}) resolved")
    return alert
