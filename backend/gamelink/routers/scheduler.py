"""Cron-triggered status transitions."""
import logging
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from gamelink.database import get_db
from gamelink.schemas.scheduler import HealthOut, SchedulerRunOut
from gamelink.security import require_cron_secret
from gamelink.services import scheduler

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get(
    "/status-transitions",
    response_model=SchedulerRunOut,
    responses={207: {"model": SchedulerRunOut, "description": "Some transitions failed"}},
    dependencies=[Depends(require_cron_secret)],
)
def run_status_transitions(db: Session = Depends(get_db)):
    """Start due events and complete ended ones. 207 when any event failed."""
    result = scheduler.process_scheduled_status_transitions(db)
    if not result["success"]:
        return JSONResponse(status_code=207, content=SchedulerRunOut(**result).model_dump())
    return result


@router.post("/status-transitions", response_model=HealthOut)
def scheduler_health(db: Session = Depends(get_db)):
    health = scheduler.health_check(db)
    if not health["healthy"]:
        return JSONResponse(status_code=503, content=health)
    return health
