import itertools
import os
import string

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

os.environ.setdefault('DATABASE_URL', 'sqlite://')
os.environ.setdefault('BCRYPT_ROUNDS', '4')

from coursehub.database import Base, enable_sqlite_foreign_keys  # noqa: E402
from coursehub.models import Assignment, Course, Participant, Role, RoleKind, TaMapping, User  # noqa: E402
from coursehub.models.role import ROLE_NAMES  # noqa: E402


def _short_name(index: int) -> str:
    letters = string.ascii_lowercase
    return f'user{letters[(index - 1) // 26]}{letters[(index - 1) % 26]}'


@pytest.fixture
def db():
    engine = create_engine('sqlite:///:memory:')
    enable_sqlite_foreign_keys(engine)
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def roles(db):
    """Every role kind, each delegated from the next role up in rank."""
    created = {}
    parent = None
    for kind in sorted(RoleKind, reverse=True):
        role = Role(name=ROLE_NAMES[kind], parent=parent)
        db.add(role)
        created[kind] = role
        parent = role
    db.commit()
    return created


@pytest.fixture
def make_user(db, roles):
    counter = itertools.count(1)

    def _make_user(kind: RoleKind, name: str | None = None, full_name: str | None = None, **kwargs) -> User:
        index = next(counter)
        name = name or _short_name(index)
        user = User(
            name=name,
            full_name=full_name or f'{kind.name.title()} {index}',
            email=kwargs.pop('email', f'{name}@example.edu'),
            role=roles[kind],
            **kwargs,
        )
        db.add(user)
        db.commit()
        return user

    return _make_user


@pytest.fixture
def make_course(db):
    def _make_course(instructor: User, tas=(), students=(), name: str = 'CSC 517') -> Course:
        course = Course(name=name, instructor_id=instructor.id)
        db.add(course)
        db.flush()

        assignment = Assignment(name=f'{name} Program 1', course_id=course.id)
        db.add(assignment)
        db.flush()

        for ta in tas:
            db.add(TaMapping(ta_id=ta.id, course_id=course.id))
        for student in students:
            db.add(Participant(user_id=student.id, assignment_id=assignment.id))
        db.commit()
        return course

    return _make_course
