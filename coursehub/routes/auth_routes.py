import logging

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from coursehub.auth import jwt_handler
from coursehub.auth.dependencies import get_current_user, get_db
from coursehub.models.user import User
from coursehub.services.user_directory import UserDirectory

router = APIRouter(tags=["auth"])

logger = logging.getLogger(__name__)


class LoginRequest(BaseModel):
    login: str
    password: str

    @field_validator("login")
    @classmethod
    def validate_login(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("Login is required.")
        return normalized


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


@router.post("/login", response_model=TokenResponse)
def login(data: LoginRequest, db: Session = Depends(get_db)):
    try:
        user = UserDirectory(db).authenticate(data.login, data.password)
    except SQLAlchemyError as exc:
        logger.exception("Login lookup failed")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database unavailable. Verify DATABASE_URL.",
        ) from exc

    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid login or password.")

    token = jwt_handler.create_access_token(subject=str(user.id))
    return TokenResponse(access_token=token)


@router.get("/me")
def me(current_user: User = Depends(get_current_user)):
    return {
        "id": current_user.id,
        "name": current_user.name,
        "email": current_user.email,
        "role": current_user.role.name,
    }
