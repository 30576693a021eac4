# travel_journal/models/story.py
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.ext.orderinglist import ordering_list
from sqlalchemy.orm import relationship

from travel_journal.models.database import Base
from travel_journal.models.user import isoformat_utc, utcnow


class TravelStory(Base):
    __tablename__ = "travel_stories"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    story = Column(Text, nullable=False)
    is_favourite = Column(Boolean, default=False, nullable=False)
    image_url = Column(String(1024), nullable=False)
    visited_date = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Many stories → one owner (User)
    owner = relationship("User", back_populates="stories")

    locations = relationship(
        "StoryLocation",
        order_by="StoryLocation.position",
        collection_class=ordering_list("position"),
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def visited_location(self) -> list[str]:
        return [location.name for location in self.locations]

    @visited_location.setter
    def visited_location(self, names: list[str]) -> None:
        self.locations = [StoryLocation(name=name, position=i) for i, name in enumerate(names)]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "story": self.story,
            "visitedLocation": self.visited_location,
            "isFavourites": self.is_favourite,
            "userId": self.user_id,
            "createdAt": isoformat_utc(self.created_at),
            "imageUrl": self.image_url,
            "visitedDate": isoformat_utc(self.visited_date),
        }


class StoryLocation(Base):
    __tablename__ = "story_locations"

    id = Column(Integer, primary_key=True)
    story_id = Column(Integer, ForeignKey("travel_stories.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    name = Column(String(255), nullable=False)
