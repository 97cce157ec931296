import logging
import re

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from coursehub.auth import jwt_handler
from coursehub.auth.authorization import AuthorizationEngine, UnsupportedRoleError
from coursehub.auth.dependencies import get_current_user, get_db
from coursehub.auth.role_graph import RoleGraph
from coursehub.models.institution import Institution
from coursehub.models.role import Role
from coursehub.models.user import User
from coursehub.services.user_directory import UserDirectory, UserNotFoundError

router = APIRouter(tags=['users'])

logger = logging.getLogger(__name__)

NAME_PATTERN = re.compile(r'^[a-z]+$')
EMAIL_PATTERN = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')
MIN_PASSWORD_LENGTH = 6
MAX_FULL_NAME_LENGTH = 50
DATABASE_UNAVAILABLE = 'Database unavailable. Verify DATABASE_URL.'


class CreateUserRequest(BaseModel):
    name: str
    full_name: str
    email: str
    password: str
    role_id: int
    institution_id: int | None = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        if not NAME_PATTERN.match(value):
            raise ValueError('Name must be in lowercase.')
        return value

    @field_validator('full_name')
    @classmethod
    def validate_full_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Full name is required.')
        if len(normalized) > MAX_FULL_NAME_LENGTH:
            raise ValueError(f'Full name must be {MAX_FULL_NAME_LENGTH} characters or fewer.')
        return normalized

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        normalized = value.strip()
        if not EMAIL_PATTERN.match(normalized):
            raise ValueError('Email is invalid.')
        return normalized

    @field_validator('password')
    @classmethod
    def validate_password(cls, value: str) -> str:
        if len(value) < MIN_PASSWORD_LENGTH:
            raise ValueError(f'Password must be at least {MIN_PASSWORD_LENGTH} characters.')
        return value


class ReferenceResponse(BaseModel):
    id: int | None = None
    name: str | None = None


class UserResponse(BaseModel):
    id: int
    name: str
    email: str
    full_name: str
    email_on_review: bool
    email_on_submission: bool
    email_on_review_of_review: bool
    role: ReferenceResponse
    parent: ReferenceResponse
    institution: ReferenceResponse


class ImpersonationResponse(BaseModel):
    access_token: str
    token_type: str = 'bearer'
    impersonated_user_id: int


class InstructorResponse(BaseModel):
    user_id: int
    instructor_id: int | None


def _reference(record) -> ReferenceResponse:
    if record is None:
        return ReferenceResponse()
    return ReferenceResponse(id=record.id, name=record.name)


def serialize_user(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        name=user.name,
        email=user.email,
        full_name=user.full_name,
        email_on_review=user.email_on_review,
        email_on_submission=user.email_on_submission,
        email_on_review_of_review=user.email_on_review_of_review,
        role=_reference(user.role),
        parent=_reference(user.parent),
        institution=_reference(user.institution),
    )


def load_user(user_id: int, db: Session) -> User:
    try:
        return UserDirectory(db).find_by_id_or_name(user_id=user_id)
    except UserNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='User not found.') from exc


@router.get('/search', response_model=list[UserResponse])
def search_users(
    name: str = Query(default=''),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        users = UserDirectory(db).search_visible_by_name(current_user, name)
    except SQLAlchemyError as exc:
        logger.exception('User search failed')
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=DATABASE_UNAVAILABLE) from exc

    return [serialize_user(user) for user in users]


@router.post('', response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    data: CreateUserRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        role = db.get(Role, data.role_id)
        if role is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Role not found.')

        visible_roles = RoleGraph(db).subordinate_roles_and_self(current_user.role)
        if role not in visible_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail='Users can only be created with a role at or below your own.',
            )

        if UserDirectory(db).find_by_name(data.name):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail='Name has already been taken.')

        institution_id = data.institution_id or current_user.institution_id
        if data.institution_id is not None and db.get(Institution, data.institution_id) is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Institution not found.')

        user = User(
            name=data.name,
            full_name=data.full_name,
            email=data.email,
            password=data.password,
            role_id=role.id,
            institution_id=institution_id,
            parent_id=current_user.id,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
    except IntegrityError as exc:
        db.rollback()
        logger.info('User creation conflicted for name %r', data.name)
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail='Name has already been taken.') from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('User creation failed')
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=DATABASE_UNAVAILABLE) from exc

    return serialize_user(user)


@router.get('/{user_id}', response_model=UserResponse)
def get_user(user_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    del current_user
    return serialize_user(load_user(user_id, db))


@router.post('/{user_id}/impersonate', response_model=ImpersonationResponse)
def impersonate_user(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    target = load_user(user_id, db)

    if not AuthorizationEngine.for_session(db).can_impersonate(current_user, target):
        logger.info('User %s was denied impersonation of user %s', current_user.id, target.id)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail='You do not have permission to impersonate this user.',
        )

    token = jwt_handler.create_access_token(subject=str(target.id), impersonator=str(current_user.id))
    return ImpersonationResponse(access_token=token, impersonated_user_id=target.id)


@router.get('/{user_id}/instructor', response_model=InstructorResponse)
def get_instructor(user_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    del current_user
    user = load_user(user_id, db)

    try:
        instructor_id = AuthorizationEngine.for_session(db).instructor_id(user)
    except UnsupportedRoleError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    return InstructorResponse(user_id=user.id, instructor_id=instructor_id)
