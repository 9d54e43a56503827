import pytest
from django.db import DatabaseError
from django.http import Http404
from rest_framework.exceptions import NotAuthenticated, PermissionDenied, ValidationError

from apps.common.exceptions import (
    AlreadyEnrolled,
    ProfileNotFound,
    StoreError,
    ValidationFailed,
    api_exception_handler,
)
from apps.common.permissions import (
    Caller,
    require_owner_or_admin,
    require_role,
    require_student_profile,
    require_workshop_manager,
    resolve_caller,
)
from apps.common.utils import apply_patch, build_patch, sanitize_text
from apps.users.models import Role
from apps.workshops.models import Workshop


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("  Danza  ", "Danza"),
        ("<script>alert(1)</script>", "scriptalert(1)/script"),
        ("javascript:void(0)", "void(0)"),
        ('img onerror="x"', 'img "x"'),
    ],
)
def test_sanitize_text(raw, expected):
    assert sanitize_text(raw) == expected


def test_sanitize_text_keeps_non_strings():
    assert sanitize_text(None) is None
    assert sanitize_text(3) == 3


def test_build_patch_keeps_allowed_and_explicit_none():
    patch = build_patch({"name": "A", "semester": None, "role": "admin"}, ("name", "semester"))

    assert patch == {"name": "A", "semester": None}


def test_build_patch_without_patchable_fields():
    with pytest.raises(ValidationFailed):
        build_patch({"role": "admin"}, ("name",))


@pytest.mark.django_db
def test_apply_patch_updates_only_given_fields(make_workshop):
    workshop = make_workshop(name="Coro", location="Aula 1", max_capacity=10)
    before = workshop.updated_at

    updated = apply_patch(Workshop.objects.filter(pk=workshop.pk), {"location": "Aula 2"})

    workshop.refresh_from_db()
    assert updated == 1
    assert workshop.location == "Aula 2"
    assert workshop.name == "Coro"
    assert workshop.updated_at >= before


# -----------------------------------------------------------------------------------------------------------------------
# 권한 확인
# -----------------------------------------------------------------------------------------------------------------------

STUDENT = Caller(user_id=1, role=Role.STUDENT, student_id=10)
ADMIN = Caller(user_id=2, role=Role.ADMIN)
INSTRUCTOR = Caller(user_id=3, role=Role.INSTRUCTOR, instructor_id=7)


def test_require_role():
    assert require_role(ADMIN, Role.ADMIN) is ADMIN
    with pytest.raises(PermissionDenied):
        require_role(STUDENT, Role.ADMIN)
    with pytest.raises(NotAuthenticated):
        require_role(None, Role.ADMIN)


def test_require_student_profile():
    assert require_student_profile(STUDENT) == 10
    with pytest.raises(ProfileNotFound):
        require_student_profile(Caller(user_id=4, role=Role.STUDENT))
    with pytest.raises(PermissionDenied):
        require_student_profile(INSTRUCTOR)


def test_require_owner_or_admin():
    assert require_owner_or_admin(STUDENT, 10) is STUDENT
    assert require_owner_or_admin(ADMIN, 10) is ADMIN
    with pytest.raises(PermissionDenied):
        require_owner_or_admin(STUDENT, 11)


def test_require_workshop_manager():
    assigned = Workshop(name="Coro", instructor_id=7)
    unassigned = Workshop(name="Teatro", instructor_id=None)

    assert require_workshop_manager(INSTRUCTOR, assigned) is INSTRUCTOR
    assert require_workshop_manager(ADMIN, unassigned) is ADMIN
    with pytest.raises(PermissionDenied):
        require_workshop_manager(INSTRUCTOR, unassigned)
    with pytest.raises(PermissionDenied):
        require_workshop_manager(STUDENT, assigned)


@pytest.mark.django_db
def test_resolve_caller(student, instructor):
    caller = resolve_caller(student.user)
    assert caller == Caller(user_id=student.user_id, role=Role.STUDENT, student_id=student.pk)

    caller = resolve_caller(instructor.user)
    assert caller.instructor_id == instructor.pk
    assert caller.student_id is None


# -----------------------------------------------------------------------------------------------------------------------
# 예외 핸들러
# -----------------------------------------------------------------------------------------------------------------------


def test_handler_renders_reason_and_message():
    response = api_exception_handler(AlreadyEnrolled(), {"view": None})

    assert response.status_code == 400
    assert response.data == {"reason": "already-enrolled", "message": AlreadyEnrolled.default_detail}


def test_handler_converts_database_error_to_store_error():
    response = api_exception_handler(DatabaseError("connection refused"), {"view": None})

    assert response.status_code == 500
    assert response.data["reason"] == StoreError.default_code
    assert "connection refused" not in response.data["message"]


def test_handler_includes_field_errors():
    response = api_exception_handler(ValidationError({"comment": ["너무 깁니다."]}), {"view": None})

    assert response.status_code == 400
    assert response.data["reason"] == "invalid"
    assert response.data["message"] == "너무 깁니다."
    assert response.data["errors"] == {"comment": ["너무 깁니다."]}


def test_handler_maps_django_404():
    response = api_exception_handler(Http404(), {"view": None})

    assert response.status_code == 404
    assert response.data["reason"] == "not_found"


def test_handler_ignores_unknown_exceptions():
    assert api_exception_handler(ValueError("boom"), {"view": None}) is None
