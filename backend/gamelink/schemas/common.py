"""Shared schema types."""
from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator

from gamelink.timeutils import as_utc

# SQLite hands back naive values; responses always carry UTC
UTCDatetime = Annotated[datetime, AfterValidator(as_utc)]
