"""Profile ORM model: a Farcaster identity mapped to an internal id."""
import uuid
from sqlalchemy import Column, String, Integer, Text, DateTime
from sqlalchemy.sql import func
from gamelink.database import Base


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    fid = Column(Integer, nullable=False, unique=True, index=True)
    username = Column(String(100), nullable=False)
    display_name = Column(String(150), nullable=True)
    pfp_url = Column(String(500), nullable=True)
    bio = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    @property
    def name(self) -> str:
        """Best human-readable label for notifications."""
        return self.display_name or self.username or f"User {self.fid}"
