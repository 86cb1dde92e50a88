"""Maintenance routes, protected by the cron secret."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from gamelink.database import get_db
from gamelink.schemas.scheduler import OrganizerFixOut
from gamelink.security import require_cron_secret
from gamelink.services import event_service

router = APIRouter(dependencies=[Depends(require_cron_secret)])


@router.post("/fix-organizers", response_model=OrganizerFixOut)
def fix_organizers(db: Session = Depends(get_db)):
    """Add the missing organizer participant row to every affected event."""
    return event_service.fix_missing_organizers(db)
