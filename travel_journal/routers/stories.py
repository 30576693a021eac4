"""Travel story endpoints.

Every query here is filtered on the authenticated user's id, so one user can
never read or touch another user's stories. Lists come back favourites first.
"""
import logging
from datetime import datetime, timezone
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import or_

from travel_journal.core.config import get_settings
from travel_journal.core.errors import BadRequestError, NotFoundError
from travel_journal.core.storage import filename_from_url, get_image_store
from travel_journal.models.story import StoryLocation, TravelStory
from travel_journal.routers.auth import CurrentUserId, DBSession

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Travel Stories"])

AUTH_RESPONSES = {
    401: {"description": "Token is missing"},
    403: {"description": "Token is invalid, expired, or its user no longer exists"},
}
NOT_FOUND_RESPONSE = {404: {"description": "Travel Story not found"}}


class StoryRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str | None = None
    story: str | None = None
    visited_location: list[str] | None = Field(default=None, alias="visitedLocation", examples=[["Lisbon", "Porto"]])
    image_url: str | None = Field(default=None, alias="imageUrl")
    visited_date: int | str | None = Field(
        default=None,
        alias="visitedDate",
        description="Milliseconds since the Unix epoch",
        examples=[1736676000000],
    )


class FavouriteRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # type is checked in the handler; "true" and 1 are refused
    is_favourite: Any = Field(default=None, alias="isFavourites")


def parse_epoch_millis(value) -> datetime:
    """Turn epoch milliseconds (int or numeric string) into an aware UTC datetime."""
    if isinstance(value, bool):
        raise ValueError("not a timestamp")
    millis = float(str(value).strip())
    return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)


def validate_story(payload: StoryRequest, require_image: bool) -> datetime:
    if (
        not (payload.title or "").strip()
        or not (payload.story or "").strip()
        or payload.visited_location is None
        or payload.visited_date in (None, "")
        or (require_image and not (payload.image_url or "").strip())
    ):
        raise BadRequestError("Fill in all required fields")

    try:
        return parse_epoch_millis(payload.visited_date)
    except (ValueError, OverflowError, OSError):
        raise BadRequestError("Invalid visitedDate")


def owned_stories(db, user_id: int):
    return db.query(TravelStory).filter(TravelStory.user_id == user_id)


def favourites_first(query):
    return query.order_by(
        TravelStory.is_favourite.desc(),
        TravelStory.created_at.desc(),
        TravelStory.id.desc(),
    )


def get_owned_story(db, story_id: int, user_id: int) -> TravelStory:
    travel_story = owned_stories(db, user_id).filter(TravelStory.id == story_id).first()
    if not travel_story:
        raise NotFoundError("Travel Story not found")
    return travel_story


@router.post(
    "/add-travel-story",
    status_code=201,
    summary="Add a travel story",
    responses={400: {"description": "A required field is missing"}, **AUTH_RESPONSES},
)
def add_travel_story(user_id: CurrentUserId, db: DBSession, payload: StoryRequest | None = None):
    payload = payload or StoryRequest()
    visited_date = validate_story(payload, require_image=True)

    travel_story = TravelStory(
        title=payload.title,
        story=payload.story,
        visited_date=visited_date,
        image_url=payload.image_url,
        user_id=user_id,
    )
    travel_story.visited_location = payload.visited_location
    db.add(travel_story)
    db.commit()
    db.refresh(travel_story)

    return {"error": False, "story": travel_story.to_dict(), "message": "Added Successfully"}


@router.get("/get-all-stories", summary="List your travel stories", responses=AUTH_RESPONSES)
def get_all_stories(user_id: CurrentUserId, db: DBSession):
    stories = favourites_first(owned_stories(db, user_id)).all()
    return {"error": False, "stories": [s.to_dict() for s in stories], "message": "Success"}


@router.put(
    "/edit-story/{story_id}",
    summary="Edit a travel story",
    description="A blank imageUrl puts the placeholder image back on the story.",
    responses={400: {"description": "A required field is missing"}, **AUTH_RESPONSES, **NOT_FOUND_RESPONSE},
)
def edit_story(story_id: int, user_id: CurrentUserId, db: DBSession, payload: StoryRequest | None = None):
    payload = payload or StoryRequest()
    visited_date = validate_story(payload, require_image=False)
    travel_story = get_owned_story(db, story_id, user_id)

    travel_story.title = payload.title
    travel_story.story = payload.story
    travel_story.visited_date = visited_date
    travel_story.visited_location = payload.visited_location
    travel_story.image_url = (payload.image_url or "").strip() or get_settings().placeholder_image_url
    db.commit()
    db.refresh(travel_story)

    return {"error": False, "story": travel_story.to_dict(), "message": "Updated Successfully"}


@router.delete(
    "/delete-story/{story_id}",
    summary="Delete a travel story and its image",
    responses={**AUTH_RESPONSES, **NOT_FOUND_RESPONSE},
)
def delete_story(story_id: int, user_id: CurrentUserId, db: DBSession, store=Depends(get_image_store)):
    travel_story = get_owned_story(db, story_id, user_id)
    image_url = travel_story.image_url

    db.delete(travel_story)
    db.commit()
    logger.info("User %s deleted story %s", user_id, story_id)

    filename = filename_from_url(image_url)
    try:
        if not store.delete(filename):
            logger.warning("Image %s for story %s was already gone", filename, story_id)
    except Exception:
        # the record is already committed, a leftover file is only logged
        logger.exception("Failed to delete image file %s", filename)

    return {"error": False, "message": "Travel Story deleted successfully"}


@router.put(
    "/update-is-favourite/{story_id}",
    summary="Mark or unmark a story as favourite",
    responses={400: {"description": "isFavourites is not a boolean"}, **AUTH_RESPONSES, **NOT_FOUND_RESPONSE},
)
def update_is_favourite(
    story_id: int, user_id: CurrentUserId, db: DBSession, payload: FavouriteRequest | None = None
):
    if payload is None or not isinstance(payload.is_favourite, bool):
        raise BadRequestError("isFavourites is missing")

    travel_story = get_owned_story(db, story_id, user_id)
    travel_story.is_favourite = payload.is_favourite
    db.commit()

    return {"error": False, "isFavourites": travel_story.is_favourite, "message": "Favourites list updated"}


@router.post(
    "/search",
    summary="Search your stories",
    description="Case-insensitive match on title, story text and visited locations.",
    responses={400: {"description": "query is missing"}, **AUTH_RESPONSES},
)
def search_stories(user_id: CurrentUserId, db: DBSession, query: Annotated[str | None, Query()] = None):
    term = (query or "").strip()
    if not term:
        raise BadRequestError("Query required")

    matches = owned_stories(db, user_id).filter(
        or_(
            TravelStory.title.icontains(term, autoescape=True),
            TravelStory.story.icontains(term, autoescape=True),
            TravelStory.locations.any(StoryLocation.name.icontains(term, autoescape=True)),
        )
    )
    stories = favourites_first(matches).all()
    return {"error": False, "stories": [s.to_dict() for s in stories], "message": "Travel Stories"}


@router.get(
    "/travel-stories/filter",
    summary="Stories visited within a date range",
    description="Both bounds are epoch milliseconds and inclusive.",
    responses={400: {"description": "startDate or endDate missing or not a timestamp"}, **AUTH_RESPONSES},
)
def filter_stories(
    user_id: CurrentUserId,
    db: DBSession,
    start_date: Annotated[str | None, Query(alias="startDate")] = None,
    end_date: Annotated[str | None, Query(alias="endDate")] = None,
):
    try:
        start = parse_epoch_millis(start_date) if start_date else None
        end = parse_epoch_millis(end_date) if end_date else None
    except (ValueError, OverflowError, OSError):
        start = end = None
    if start is None or end is None:
        raise BadRequestError("startDate and endDate are required")

    in_range = owned_stories(db, user_id).filter(
        TravelStory.visited_date >= start,
        TravelStory.visited_date <= end,
    )
    stories = favourites_first(in_range).all()
    return {"error": False, "stories": [s.to_dict() for s in stories], "message": "Filtered Stories"}
