"""Event history API route."""
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from gamelink.database import get_db
from gamelink.schemas.history import HistoryOut
from gamelink.services import statistics_service

router = APIRouter()


@router.get("", response_model=HistoryOut)
def get_history(fid: Optional[int] = Query(None), db: Session = Depends(get_db)):
    """The caller's participations with statistics, trends and achievements."""
    return statistics_service.get_history(db, fid)
