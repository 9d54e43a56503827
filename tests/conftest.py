import itertools

import pytest
from rest_framework.test import APIClient

from apps.registrations.services import EnrollmentService
from apps.users.models import Instructor, Role, Student, User
from apps.workshops.models import Category, Workshop

_sequence = itertools.count(1)


@pytest.fixture
def make_user(db):
    def _make_user(role=Role.STUDENT, **kwargs):
        number = next(_sequence)
        kwargs.setdefault("email", f"user{number}@example.com")
        kwargs.setdefault("name", f"User {number}")
        kwargs.setdefault("password", "Workshop1234")
        if role == Role.ADMIN:
            kwargs.setdefault("is_staff", True)
        return User.objects.create_user(role=role, **kwargs)

    return _make_user


@pytest.fixture
def make_student(make_user):
    def _make_student(first_name="Ana", last_name="Lopez", **kwargs):
        number = next(_sequence)
        user = make_user(role=Role.STUDENT, email=kwargs.pop("email", f"student{number}@example.com"))
        kwargs.setdefault("control_number", f"C{number:05d}")
        return Student.objects.create(user=user, first_name=first_name, last_name=last_name, **kwargs)

    return _make_student


@pytest.fixture
def make_workshop(db):
    def _make_workshop(**kwargs):
        number = next(_sequence)
        kwargs.setdefault("name", f"Workshop {number}")
        kwargs.setdefault("category", Category.CULTURAL)
        kwargs.setdefault("max_capacity", 25)
        return Workshop.objects.create(**kwargs)

    return _make_workshop


@pytest.fixture
def student(make_student):
    return make_student()


@pytest.fixture
def other_student(make_student):
    return make_student(first_name="Luis", last_name="Perez")


@pytest.fixture
def instructor(make_user):
    user = make_user(role=Role.INSTRUCTOR, name="Carla Ruiz")
    return Instructor.objects.create(user=user, specialty="Danza")


@pytest.fixture
def admin_user(make_user):
    return make_user(role=Role.ADMIN, name="Admin")


@pytest.fixture
def workshop(make_workshop):
    return make_workshop(name="Danza folklorica", max_capacity=2)


@pytest.fixture
def service():
    return EnrollmentService()


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def client_for():
    """주어진 User로 인증된 APIClient를 생성"""

    def _client_for(user):
        client = APIClient()
        client.force_authenticate(user=user)
        return client

    return _client_for
