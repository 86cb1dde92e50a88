"""Profile API routes."""
import logging
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from gamelink.database import get_db
from gamelink.models.profile import Profile
from gamelink.schemas.profile import ProfileOut, ProfileUpdate, ProfileUpsert
from gamelink.services import profile_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=ProfileOut)
def upsert_profile(payload: ProfileUpsert, db: Session = Depends(get_db)):
    """Create or refresh a profile from Farcaster sign-in data."""
    return profile_service.upsert_profile(db, payload.fid, payload.model_dump(exclude={"fid"}))


@router.get("/", response_model=list[ProfileOut])
def list_profiles(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    return db.query(Profile).order_by(Profile.fid).offset(offset).limit(limit).all()


@router.get("/{fid}", response_model=ProfileOut)
def get_profile(fid: int, db: Session = Depends(get_db)):
    profile = profile_service.get_profile_by_fid(db, fid)
    if not profile:
        raise HTTPException(status_code=404, detail="User profile not found")
    return profile


@router.patch("/{fid}", response_model=ProfileOut)
def update_profile(fid: int, payload: ProfileUpdate, db: Session = Depends(get_db)):
    """Partial update; absent fields are left alone."""
    profile = profile_service.require_profile(db, fid)
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(profile, field, value)
    db.commit()
    db.refresh(profile)
    logger.info("Updated profile for FID %s", fid)
    return profile
