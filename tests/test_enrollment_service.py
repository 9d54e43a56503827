import pytest
from django.db import IntegrityError, transaction
from rest_framework.exceptions import PermissionDenied

from apps.common.exceptions import (
    AlreadyEnrolled,
    EnrollmentNotFound,
    ProfileNotFound,
    WorkshopFull,
    WorkshopNotFound,
)
from apps.common.permissions import Caller
from apps.registrations.models import Enrollment, EnrollmentStatus
from apps.registrations.services import EnrollmentService
from apps.users.models import Role

pytestmark = pytest.mark.django_db


def test_enroll_creates_active_enrollment(service, student, workshop):
    enrollment = service.enroll(student.pk, workshop.pk, comment="첫 신청")

    assert enrollment.status == EnrollmentStatus.ACTIVE
    assert enrollment.comment == "첫 신청"
    assert service.remaining_seats(workshop.pk) == workshop.max_capacity - 1


def test_enroll_blank_comment_is_stored_as_null(service, student, workshop):
    enrollment = service.enroll(student.pk, workshop.pk, comment="")

    assert enrollment.comment is None


def test_enroll_rejects_second_active_enrollment(service, student, make_workshop):
    first = make_workshop()
    second = make_workshop()
    service.enroll(student.pk, first.pk)

    with pytest.raises(AlreadyEnrolled):
        service.enroll(student.pk, second.pk)

    assert Enrollment.objects.filter(student=student, status=EnrollmentStatus.ACTIVE).count() == 1
    assert service.remaining_seats(second.pk) == second.max_capacity


def test_enroll_rejects_full_workshop(service, make_student, workshop):
    for _ in range(workshop.max_capacity):
        service.enroll(make_student().pk, workshop.pk)

    with pytest.raises(WorkshopFull):
        service.enroll(make_student().pk, workshop.pk)

    assert service.remaining_seats(workshop.pk) == 0


def test_enroll_rejects_inactive_workshop(service, student, make_workshop):
    inactive = make_workshop(is_active=False)

    with pytest.raises(WorkshopNotFound):
        service.enroll(student.pk, inactive.pk)


def test_enroll_rejects_missing_workshop(service, student):
    with pytest.raises(WorkshopNotFound):
        service.enroll(student.pk, 999999)


def test_enroll_rejects_missing_profile(service, workshop):
    with pytest.raises(ProfileNotFound):
        service.enroll(999999, workshop.pk)


def test_cancel_frees_seat(service, student, workshop):
    enrollment = service.enroll(student.pk, workshop.pk)
    before = service.remaining_seats(workshop.pk)

    cancelled = service.cancel(enrollment.pk)

    assert cancelled.status == EnrollmentStatus.CANCELLED
    assert service.remaining_seats(workshop.pk) == before + 1


def test_cancel_twice_is_rejected(service, student, workshop):
    enrollment = service.enroll(student.pk, workshop.pk)
    service.cancel(enrollment.pk)

    with pytest.raises(EnrollmentNotFound):
        service.cancel(enrollment.pk)

    assert service.remaining_seats(workshop.pk) == workshop.max_capacity


def test_cancel_missing_enrollment(service):
    with pytest.raises(EnrollmentNotFound):
        service.cancel(999999)


def test_cancel_appends_reason_to_comment(service, student, workshop):
    enrollment = service.enroll(student.pk, workshop.pk, comment="오후 반 희망")

    cancelled = service.cancel(enrollment.pk, reason_text="일정 변경")

    assert cancelled.comment == "오후 반 희망 | 취소: 일정 변경"


def test_cancel_without_reason_uses_default_note(service, student, workshop):
    enrollment = service.enroll(student.pk, workshop.pk)

    cancelled = service.cancel(enrollment.pk)

    assert cancelled.comment == EnrollmentService.DEFAULT_CANCEL_NOTE


def test_cancel_by_other_student_is_denied(service, student, other_student, workshop):
    enrollment = service.enroll(student.pk, workshop.pk)
    caller = Caller(user_id=other_student.user_id, role=Role.STUDENT, student_id=other_student.pk)

    with pytest.raises(PermissionDenied):
        service.cancel(enrollment.pk, caller=caller)

    enrollment.refresh_from_db()
    assert enrollment.status == EnrollmentStatus.ACTIVE


def test_student_can_enroll_again_after_cancel(service, student, make_workshop):
    first = make_workshop()
    second = make_workshop()
    enrollment = service.enroll(student.pk, first.pk)
    service.cancel(enrollment.pk)

    again = service.enroll(student.pk, second.pk)

    assert again.pk != enrollment.pk
    assert Enrollment.objects.filter(student=student).count() == 2


def test_remaining_seats_follows_enroll_cancel_sequence(service, make_student, make_workshop):
    workshop = make_workshop(max_capacity=3)
    a, b, c = make_student(), make_student(), make_student()

    first = service.enroll(a.pk, workshop.pk)
    service.enroll(b.pk, workshop.pk)
    service.cancel(first.pk)
    service.enroll(c.pk, workshop.pk)

    active = Enrollment.objects.filter(workshop=workshop, status=EnrollmentStatus.ACTIVE).count()
    assert active == 2
    assert service.remaining_seats(workshop.pk) == workshop.max_capacity - active == 1


def test_remaining_seats_of_inactive_workshop(service, make_workshop):
    inactive = make_workshop(is_active=False, max_capacity=10)

    assert service.remaining_seats(inactive.pk) == 10


def test_remaining_seats_of_missing_workshop(service):
    with pytest.raises(WorkshopNotFound):
        service.remaining_seats(999999)


def test_eligibility_verdicts(service, make_student, make_workshop):
    workshop = make_workshop(max_capacity=1)
    inactive = make_workshop(is_active=False)
    first, second = make_student(), make_student()

    verdict = service.check_eligibility(first.pk, workshop.pk)
    assert verdict.eligible is True
    assert verdict.remaining_seats == 1

    enrollment = service.enroll(first.pk, workshop.pk)

    verdict = service.check_eligibility(first.pk, workshop.pk)
    assert verdict.reason == "already-enrolled"
    assert verdict.active_enrollment_id == enrollment.pk

    verdict = service.check_eligibility(second.pk, workshop.pk)
    assert verdict.eligible is False
    assert verdict.reason == "full"
    assert verdict.remaining_seats == 0

    verdict = service.check_eligibility(second.pk, inactive.pk)
    assert verdict.reason == "workshop-not-found-or-inactive"


def test_eligibility_does_not_change_data(service, student, other_student, workshop):
    enrollment = service.enroll(other_student.pk, workshop.pk)
    snapshot = list(Enrollment.objects.order_by("pk").values("pk", "status", "comment", "updated_at"))

    for _ in range(3):
        service.check_eligibility(student.pk, workshop.pk)
        service.check_eligibility(other_student.pk, workshop.pk)

    assert list(Enrollment.objects.order_by("pk").values("pk", "status", "comment", "updated_at")) == snapshot
    assert service.get_active_enrollment(other_student.pk).pk == enrollment.pk


def test_partial_unique_index_allows_one_active_per_student(student, make_workshop):
    first = make_workshop()
    second = make_workshop()
    Enrollment.objects.create(student=student, workshop=first, status=EnrollmentStatus.ACTIVE)
    Enrollment.objects.create(student=student, workshop=second, status=EnrollmentStatus.CANCELLED)

    with pytest.raises(IntegrityError):
        with transaction.atomic():
            Enrollment.objects.create(student=student, workshop=second, status=EnrollmentStatus.ACTIVE)


def test_history_includes_cancelled(service, student, make_workshop):
    first = service.enroll(student.pk, make_workshop().pk)
    service.cancel(first.pk)
    second = service.enroll(student.pk, make_workshop().pk)

    history = service.history(student.pk)

    assert [enrollment.pk for enrollment in history] == [second.pk, first.pk]
    assert service.get_active_enrollment(student.pk).pk == second.pk


def test_list_enrollments_search_and_pagination(service, make_student, make_workshop):
    workshop = make_workshop(name="Ajedrez", max_capacity=10)
    service.enroll(make_student(first_name="Maria").pk, workshop.pk)
    service.enroll(make_student(first_name="Mario").pk, workshop.pk)
    service.enroll(make_student(first_name="Jose").pk, workshop.pk)

    page = service.list_enrollments(search="mari")
    assert page.total == 2

    page = service.list_enrollments(workshop_id=workshop.pk, limit=2, offset=2)
    assert page.total == 3
    assert len(page.items) == 1

    assert service.list_enrollments(search="ajedrez").total == 3


def test_stats_and_report(service, make_student, make_workshop, instructor):
    assigned = make_workshop(max_capacity=4, instructor=instructor)
    other = make_workshop(max_capacity=10)
    first = service.enroll(make_student().pk, assigned.pk)
    service.enroll(make_student().pk, assigned.pk)
    service.enroll(make_student().pk, other.pk)
    service.cancel(first.pk)

    stats = service.stats()
    assert stats["total"] == 3
    assert stats["active"] == 2
    assert stats["cancelled"] == 1
    assert stats["last_7_days"] == 3

    scoped = service.stats(instructor_id=instructor.pk)
    assert scoped["total"] == 2
    assert scoped["active"] == 1

    report = {row["workshop_id"]: row for row in service.report_by_workshop()}
    assert report[assigned.pk]["enrolled"] == 1
    assert report[assigned.pk]["cancelled"] == 1
    assert report[assigned.pk]["remaining_seats"] == 3
    assert report[assigned.pk]["occupancy_percent"] == 25.0
    assert report[other.pk]["instructor_name"] == "미배정"


def test_list_enrollments_loads_instructor_with_rows(
    service, make_student, make_workshop, instructor, django_assert_num_queries
):
    workshop = make_workshop(instructor=instructor, max_capacity=5)
    for _ in range(3):
        service.enroll(make_student().pk, workshop.pk)

    page = service.list_enrollments(workshop_id=workshop.pk)

    with django_assert_num_queries(0):
        names = {enrollment.workshop.instructor_name for enrollment in page.items}
    assert names == {instructor.user.name}
