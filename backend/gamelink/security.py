"""Bearer-secret guard for cron and admin endpoints."""
import hmac
import logging
from typing import Optional

from fastapi import Header, HTTPException, status

from gamelink.config import settings

logger = logging.getLogger(__name__)


def require_cron_secret(authorization: Optional[str] = Header(None)) -> None:
    """Reject requests without ``Bearer <CRON_SECRET>``. A blank secret disables the check."""
    if not settings.CRON_SECRET:
        return
    expected = f"Bearer {settings.CRON_SECRET}"
    if not authorization or not hmac.compare_digest(authorization, expected):
        logger.warning("Rejected request with missing or invalid cron secret")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
