# fleetpool/routers/health.py
"""
System health check endpoint.
Reports DB connectivity, the last trip id minted and alerts still open.
"""

from fastapi import APIRouter, Depends
from sqlalchemy import func, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from fleetpool.database import get_db
from fleetpool.models.alert import Alert
from fleetpool.services.sequence_service import current_value, format_trip_id
from fleetpool.utils.logger import get_logger
from fleetpool.utils.time_utils import utcnow

logger = get_logger(__name__)

router = APIRouter()


@router.get("/health", summary="System health check")
def health_check(db: Session = Depends(get_db)):
    result = {
        "status": "ok",
        "timestamp": utcnow().isoformat(),
        "database": "unknown",
        "last_trip_id": None,
        "open_alerts": {},
    }

    try:
        db.execute(text("SELECT 1"))
        result["database"] = "ok"
        result["last_trip_id"] = format_trip_id(current_value(db))
        rows = (
            db.query(Alert.alert_type, func.count(Alert.id))
            .filter(Alert.is_resolved == 0)
            .group_by(Alert.alert_type)
            .all()
        )
        result["open_alerts"] = {alert_type: count for alert_type, count in rows}
    except SQLAlchemyError as e:
        logger.error(f"[HEALTH] database check failed: {e}")
        result["database"] = f"error: {e}"
        result["status"] = "degraded"
        return result

    if result["open_alerts"]:
        result["status"] = "attention"
    return result
