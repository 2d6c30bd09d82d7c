import logging

from fastapi import APIRouter, Depends, HTTPException, status

from expense_sheets.core.security import (
    create_access_token,
    get_current_user_id,
    get_password_hash,
    verify_google_id_token,
    verify_password,
)
from expense_sheets.db import dynamo
from expense_sheets.models.user import GoogleLogin, UserCreate, UserInDB, UserLogin, UserPublic

router = APIRouter()
logger = logging.getLogger(__name__)


def _token_response(user: dict) -> dict:
    access_token = create_access_token(data={"sub": user["user_id"]})
    return {
        "access_token": access_token,
        "token_type": "bearer",
        "user": UserPublic(**user).model_dump(),
    }


@router.post("/register", response_model=UserPublic, status_code=status.HTTP_201_CREATED)
def register(user: UserCreate):
    existing = dynamo.get_user_by_email(user.email)
    if existing:
        raise HTTPException(status_code=400, detail="User already exists")

    user_db = UserInDB(
        email=user.email,
        name=user.name or user.email.split("@")[0],
        password_hash=get_password_hash(user.password),
    )
    if not dynamo.put_user(user_db.model_dump()):
        raise HTTPException(status_code=500, detail="Error saving user")

    logger.info(f"Registered user {user_db.user_id}")
    return UserPublic(**user_db.model_dump())


@router.post("/login")
def login(login_data: UserLogin):
    user = dynamo.get_user_by_email(login_data.email)
    if not user:
        logger.warning(f"User not found: {login_data.email}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    if not verify_password(login_data.password, user.get("password_hash")):
        logger.warning(f"Invalid password for user: {login_data.email}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    logger.info(f"Login successful for user: {login_data.email}")
    return _token_response(user)


@router.post("/google")
def google_login(payload: GoogleLogin):
    """
    Exchange a Google ID token for an API token. The account is matched by
    email and created on first sign-in.
    """
    claims = verify_google_id_token(payload.id_token)
    email = claims["email"]

    user = dynamo.get_user_by_email(email)
    if user is None:
        user_db = UserInDB(
            email=email,
            name=claims.get("name") or email.split("@")[0],
            google_id=claims.get("sub"),
            picture=claims.get("picture"),
        )
        if not dynamo.put_user(user_db.model_dump()):
            raise HTTPException(status_code=500, detail="Error saving user")
        user = user_db.model_dump()
        logger.info(f"Created user {user['user_id']} from Google sign-in")
    elif not user.get("google_id"):
        user = dynamo.update_user(
            user["user_id"], {"google_id": claims.get("sub"), "picture": claims.get("picture")}
        ) or user

    return _token_response(user)


@router.get("/me", response_model=UserPublic)
def get_current_user(user_id: str = Depends(get_current_user_id)):
    """Get current user profile"""
    user = dynamo.get_user_by_id(user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return UserPublic(**user)
