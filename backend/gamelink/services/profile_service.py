"""Profile lookups shared by every route that acts on behalf of a user."""
import logging
from typing import Any, Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from gamelink.models.profile import Profile

logger = logging.getLogger(__name__)


def get_profile_by_fid(db: Session, fid: int) -> Optional[Profile]:
    return db.query(Profile).filter(Profile.fid == fid).first()


def require_profile(db: Session, fid: Optional[int]) -> Profile:
    """Resolve the caller's FID to a profile: 401 when absent, 404 when unknown."""
    if fid is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User FID is required")
    profile = get_profile_by_fid(db, fid)
    if not profile:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User profile not found")
    return profile


def upsert_profile(db: Session, fid: int, fields: dict[str, Any]) -> Profile:
    """Create or refresh the profile for ``fid`` from Farcaster sign-in data."""
    profile = get_profile_by_fid(db, fid)
    if profile:
        for name, value in fields.items():
            if value is not None:
                setattr(profile, name, value)
        logger.info("Updated profile for FID %s", fid)
    else:
        profile = Profile(fid=fid, **fields)
        db.add(profile)
        logger.info("Created profile for FID %s", fid)
    db.commit()
    db.refresh(profile)
    return profile
