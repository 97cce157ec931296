import pytest
from fastapi import HTTPException
from pydantic import ValidationError

from coursehub.auth import jwt_handler
from coursehub.models.role import RoleKind
from coursehub.routes.user_routes import (
    CreateUserRequest,
    create_user,
    get_instructor,
    get_user,
    impersonate_user,
    search_users,
)


def _create_request(**overrides) -> CreateUserRequest:
    fields = {
        'name': 'newbie',
        'full_name': 'New Student',
        'email': 'newbie@example.edu',
        'password': 'secret1',
        'role_id': 1,
    }
    fields.update(overrides)
    return CreateUserRequest(**fields)


@pytest.mark.parametrize(
    'overrides',
    [
        {'name': 'NewBie'},
        {'name': 'new_bie'},
        {'email': 'not-an-email'},
        {'password': 'short'},
        {'full_name': 'x' * 51},
    ],
)
def test_create_user_request_rejects_invalid_fields(overrides) -> None:
    with pytest.raises(ValidationError):
        _create_request(**overrides)


def test_create_user_sets_requester_as_parent(db, roles, make_user) -> None:
    instructor = make_user(RoleKind.INSTRUCTOR, name='ivy')

    response = create_user(_create_request(role_id=roles[RoleKind.STUDENT].id), current_user=instructor, db=db)

    assert response.name == 'newbie'
    assert response.role.name == 'Student'
    assert response.parent.id == instructor.id
    assert response.institution.id is None
    assert response.institution.name is None


def test_create_user_rejects_more_senior_role(db, roles, make_user) -> None:
    instructor = make_user(RoleKind.INSTRUCTOR)

    with pytest.raises(HTTPException) as exception_info:
        create_user(_create_request(role_id=roles[RoleKind.ADMINISTRATOR].id), current_user=instructor, db=db)

    assert exception_info.value.status_code == 403


def test_create_user_rejects_taken_name(db, roles, make_user) -> None:
    instructor = make_user(RoleKind.INSTRUCTOR)
    make_user(RoleKind.STUDENT, name='newbie')

    with pytest.raises(HTTPException) as exception_info:
        create_user(_create_request(role_id=roles[RoleKind.STUDENT].id), current_user=instructor, db=db)

    assert exception_info.value.status_code == 409


def test_get_user_returns_404_for_missing_user(db, make_user) -> None:
    requester = make_user(RoleKind.ADMINISTRATOR)

    with pytest.raises(HTTPException) as exception_info:
        get_user(user_id=999, db=db, current_user=requester)

    assert exception_info.value.status_code == 404


def test_search_users_uses_requester_visibility(db, make_user) -> None:
    ta = make_user(RoleKind.TEACHING_ASSISTANT, full_name='Terry Assistant')
    student = make_user(RoleKind.STUDENT, full_name='Terry Student')
    make_user(RoleKind.INSTRUCTOR, full_name='Terry Instructor')

    results = search_users(name='terry', current_user=ta, db=db)

    assert [result.id for result in results] == [ta.id, student.id]


def test_impersonate_user_issues_token_for_target(db, make_user, make_course) -> None:
    instructor = make_user(RoleKind.INSTRUCTOR)
    student = make_user(RoleKind.STUDENT)
    make_course(instructor, students=[student])

    response = impersonate_user(user_id=student.id, current_user=instructor, db=db)
    payload = jwt_handler.decode_access_token(response.access_token)

    assert response.impersonated_user_id == student.id
    assert payload['sub'] == str(student.id)
    assert payload['impersonator'] == str(instructor.id)


def test_impersonate_user_denies_unrelated_instructor(db, make_user) -> None:
    instructor = make_user(RoleKind.INSTRUCTOR)
    student = make_user(RoleKind.STUDENT)

    with pytest.raises(HTTPException) as exception_info:
        impersonate_user(user_id=student.id, current_user=instructor, db=db)

    assert exception_info.value.status_code == 403


def test_get_instructor_for_ta_returns_course_instructor(db, make_user, make_course) -> None:
    instructor = make_user(RoleKind.INSTRUCTOR)
    ta = make_user(RoleKind.TEACHING_ASSISTANT)
    make_course(instructor, tas=[ta])

    response = get_instructor(user_id=ta.id, db=db, current_user=instructor)

    assert response.instructor_id == instructor.id


def test_get_instructor_for_student_is_unprocessable(db, make_user) -> None:
    student = make_user(RoleKind.STUDENT)

    with pytest.raises(HTTPException) as exception_info:
        get_instructor(user_id=student.id, db=db, current_user=student)

    assert exception_info.value.status_code == 422
    assert exception_info.value.detail == 'Unknown role: Student'


def test_create_user_rejects_unknown_institution(db, roles, make_user) -> None:
    instructor = make_user(RoleKind.INSTRUCTOR)

    with pytest.raises(HTTPException) as exception_info:
        create_user(
            _create_request(role_id=roles[RoleKind.STUDENT].id, institution_id=4242),
            current_user=instructor,
            db=db,
        )

    assert exception_info.value.status_code == 400
    assert exception_info.value.detail == 'Institution not found.'


def test_create_user_returns_409_when_name_is_taken_concurrently(
    db,
    roles,
    make_user,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    instructor = make_user(RoleKind.INSTRUCTOR)
    make_user(RoleKind.STUDENT, name='newbie')
    monkeypatch.setattr('coursehub.routes.user_routes.UserDirectory.find_by_name', lambda _self, _name: [])

    with pytest.raises(HTTPException) as exception_info:
        create_user(_create_request(role_id=roles[RoleKind.STUDENT].id), current_user=instructor, db=db)

    assert exception_info.value.status_code == 409
    assert exception_info.value.detail == 'Name has already been taken.'
