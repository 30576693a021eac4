from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.orm import relationship

from travel_journal.models.database import Base


def utcnow():
    return datetime.now(timezone.utc)


def isoformat_utc(value: datetime | None) -> str | None:
    # SQLite hands back naive datetimes; everything we store is UTC
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String(120), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password = Column(String(255), nullable=False)  # werkzeug hash, never the raw password
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    # One user → many stories
    stories = relationship("TravelStory", back_populates="owner", cascade="all, delete-orphan")

    def to_dict(self) -> dict:
        return {
            "fullName": self.full_name,
            "email": self.email,
            "createdAt": isoformat_utc(self.created_at),
        }
