import pytest

from apps.registrations.models import Enrollment, EnrollmentStatus

pytestmark = pytest.mark.django_db


def enroll_url(workshop_id):
    return f"/api/workshops/{workshop_id}/enrollment/"


def test_seats_is_public(api_client, workshop):
    response = api_client.get(f"/api/workshops/{workshop.pk}/seats/")

    assert response.status_code == 200
    assert response.data == {"workshop_id": workshop.pk, "remaining_seats": workshop.max_capacity}


def test_seats_of_missing_workshop(api_client):
    response = api_client.get("/api/workshops/999999/seats/")

    assert response.status_code == 404
    assert response.data["reason"] == "workshop-not-found-or-inactive"


def test_student_enrolls(client_for, student, workshop):
    response = client_for(student.user).post(enroll_url(workshop.pk), {"comment": "<b>잘 부탁드립니다</b>"})

    assert response.status_code == 201
    assert response.data["status"] == EnrollmentStatus.ACTIVE
    assert response.data["workshop"] == workshop.pk
    assert response.data["comment"] == "b잘 부탁드립니다/b"


def test_enroll_requires_login(api_client, workshop):
    response = api_client.post(enroll_url(workshop.pk))

    assert response.status_code == 401


def test_enroll_requires_student_role(client_for, instructor, workshop):
    response = client_for(instructor.user).post(enroll_url(workshop.pk))

    assert response.status_code == 403


def test_enroll_without_profile(client_for, make_user, workshop):
    response = client_for(make_user()).post(enroll_url(workshop.pk))

    assert response.status_code == 404
    assert response.data["reason"] == "profile-not-found"


def test_enroll_twice_returns_already_enrolled(client_for, student, make_workshop):
    client = client_for(student.user)
    client.post(enroll_url(make_workshop().pk))

    response = client.post(enroll_url(make_workshop().pk))

    assert response.status_code == 400
    assert response.data["reason"] == "already-enrolled"
    assert response.data["message"]


def test_enroll_full_workshop(client_for, make_student, make_workshop):
    workshop = make_workshop(max_capacity=1)
    client_for(make_student().user).post(enroll_url(workshop.pk))

    response = client_for(make_student().user).post(enroll_url(workshop.pk))

    assert response.status_code == 400
    assert response.data["reason"] == "full"


def test_enroll_comment_too_long(client_for, student, workshop):
    response = client_for(student.user).post(enroll_url(workshop.pk), {"comment": "a" * 501})

    assert response.status_code == 400
    assert response.data["reason"] == "invalid"
    assert "comment" in response.data["errors"]


def test_eligibility(client_for, student, workshop):
    response = client_for(student.user).get(f"/api/workshops/{workshop.pk}/eligibility/")

    assert response.status_code == 200
    assert response.data["eligible"] is True
    assert response.data["remaining_seats"] == workshop.max_capacity


def test_my_enrollments_empty_list(client_for, student):
    response = client_for(student.user).get("/api/students/me/enrollments/")

    assert response.status_code == 200
    assert response.data == []


def test_my_active_enrollment(client_for, student, workshop):
    client = client_for(student.user)

    response = client.get("/api/students/me/enrollments/active/")
    assert response.status_code == 404
    assert response.data["reason"] == "enrollment-not-found"

    client.post(enroll_url(workshop.pk))
    response = client.get("/api/students/me/enrollments/active/")
    assert response.status_code == 200
    assert response.data["workshop_name"] == workshop.name
    assert response.data["instructor_name"] == "미배정"


def test_cancel_own_enrollment(client_for, student, workshop):
    client = client_for(student.user)
    enrollment_id = client.post(enroll_url(workshop.pk)).data["id"]

    response = client.delete(f"/api/enrollments/{enrollment_id}/", {"reason": "시간이 겹침"}, format="json")

    assert response.status_code == 200
    assert response.data["status"] == EnrollmentStatus.CANCELLED
    assert response.data["comment"] == "취소: 시간이 겹침"

    response = client.delete(f"/api/enrollments/{enrollment_id}/")
    assert response.status_code == 404
    assert response.data["reason"] == "enrollment-not-found"

    history = client.get("/api/students/me/enrollments/history/")
    assert [row["status"] for row in history.data] == [EnrollmentStatus.CANCELLED]


def test_cancel_other_students_enrollment_is_forbidden(client_for, student, other_student, workshop):
    enrollment_id = client_for(student.user).post(enroll_url(workshop.pk)).data["id"]

    response = client_for(other_student.user).delete(f"/api/enrollments/{enrollment_id}/")

    assert response.status_code == 403
    assert Enrollment.objects.get(pk=enrollment_id).status == EnrollmentStatus.ACTIVE


def test_admin_cancels_any_enrollment(client_for, admin_user, student, workshop):
    enrollment_id = client_for(student.user).post(enroll_url(workshop.pk)).data["id"]

    response = client_for(admin_user).delete(f"/api/enrollments/{enrollment_id}/")

    assert response.status_code == 200
    assert response.data["status"] == EnrollmentStatus.CANCELLED


def test_admin_enrollment_search(client_for, admin_user, make_student, workshop):
    client_for(make_student(first_name="Maria").user).post(enroll_url(workshop.pk))
    client_for(make_student(first_name="Jose").user).post(enroll_url(workshop.pk))

    response = client_for(admin_user).get("/api/enrollments/", {"search": "maria"})

    assert response.status_code == 200
    assert response.data["count"] == 1
    assert response.data["results"][0]["student_name"].startswith("Maria")


def test_enrollment_search_validation(client_for, admin_user):
    response = client_for(admin_user).get("/api/enrollments/", {"search": "a", "limit": 500})

    assert response.status_code == 400
    assert set(response.data["errors"]) == {"search", "limit"}


def test_enrollment_list_is_admin_only(client_for, student):
    response = client_for(student.user).get("/api/enrollments/")

    assert response.status_code == 403


def test_instructor_stats_are_scoped(client_for, instructor, make_student, make_workshop):
    assigned = make_workshop(instructor=instructor)
    other = make_workshop()
    client_for(make_student().user).post(enroll_url(assigned.pk))
    client_for(make_student().user).post(enroll_url(other.pk))

    response = client_for(instructor.user).get("/api/enrollments/stats/")

    assert response.status_code == 200
    assert response.data["total"] == 1


def test_report_for_admin(client_for, admin_user, student, workshop):
    client_for(student.user).post(enroll_url(workshop.pk))

    response = client_for(admin_user).get("/api/enrollments/report/")

    assert response.status_code == 200
    assert response.data[0]["workshop_id"] == workshop.pk
    assert response.data[0]["enrolled"] == 1
