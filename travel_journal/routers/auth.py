import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from travel_journal.core.errors import BadRequestError, ForbiddenError, UnauthorizedError
from travel_journal.core.security import InvalidToken, create_access_token, decode_access_token, hash_password, verify_password
from travel_journal.models.database import get_db
from travel_journal.models.user import User

logger = logging.getLogger(__name__)

router = APIRouter(tags=["User"])

bearer_scheme = HTTPBearer(auto_error=False)


class CreateAccountRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    full_name: str | None = Field(default=None, alias="fullName", examples=["johndoe"])
    email: str | None = Field(default=None, examples=["johndoe@example.com"])
    password: str | None = Field(default=None, examples=["password123"])


class LoginRequest(BaseModel):
    email: str | None = None
    password: str | None = None


def normalize_email(email: str) -> str:
    return email.strip().lower()


DBSession = Annotated[Session, Depends(get_db)]


# --- user id carried by the bearer token ---
def get_token_user_id(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> int:
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError()
    try:
        return decode_access_token(credentials.credentials)
    except InvalidToken:
        raise ForbiddenError()


# --- the user behind the token; a token for a deleted user is no longer valid ---
def get_current_user(user_id: Annotated[int, Depends(get_token_user_id)], db: DBSession) -> User:
    user = db.get(User, user_id)
    if not user:
        raise ForbiddenError()
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]


def get_current_user_id(user: CurrentUser) -> int:
    return user.id


CurrentUserId = Annotated[int, Depends(get_current_user_id)]


@router.post(
    "/create-account",
    summary="Create a new user account",
    responses={400: {"description": "Missing fields or the email is already registered"}},
)
def create_account(db: DBSession, payload: CreateAccountRequest | None = None):
    payload = payload or CreateAccountRequest()
    if not (payload.full_name or "").strip() or not (payload.email or "").strip() or not payload.password:
        raise BadRequestError("Please fill in all fields")

    email = normalize_email(payload.email)

    # Check if user exists
    if db.query(User).filter(User.email == email).first():
        raise BadRequestError("User already exists")

    user = User(full_name=payload.full_name.strip(), email=email, password=hash_password(payload.password))
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # someone registered the same email between our check and the insert
        db.rollback()
        raise BadRequestError("User already exists")
    db.refresh(user)

    logger.info("Created account %s", user.id)
    return {
        "error": False,
        "user": user.to_dict(),
        "accessToken": create_access_token(user.id),
        "message": "User created successfully",
    }


@router.post(
    "/login",
    summary="Log in with email and password",
    responses={400: {"description": "Missing fields, unknown email or wrong password"}},
)
def login(db: DBSession, payload: LoginRequest | None = None):
    payload = payload or LoginRequest()
    if not (payload.email or "").strip() or not payload.password:
        raise BadRequestError("Send an email and a password")

    user = db.query(User).filter(User.email == normalize_email(payload.email)).first()
    if not user:
        raise BadRequestError("User not found")

    if not verify_password(payload.password, user.password):
        logger.info("Rejected login for user %s", user.id)
        raise BadRequestError("Invalid Credentials")

    logger.info("User %s logged in", user.id)
    return {
        "error": False,
        "user": user.to_dict(),
        "accessToken": create_access_token(user.id),
        "message": "Login successful",
    }


@router.get(
    "/get-user",
    summary="Fetch the authenticated user",
    responses={
        401: {"description": "Token is missing"},
        403: {"description": "Token is invalid, expired, or its user no longer exists"},
    },
)
def get_user(user: CurrentUser):
    return {"error": False, "user": user.to_dict(), "message": "User found"}
