import logging
from dataclasses import dataclass, field
from datetime import timedelta

from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import Count, Q
from django.utils import timezone

from apps.common.exceptions import (
    AlreadyEnrolled,
    EnrollmentNotFound,
    ProfileNotFound,
    StoreError,
    WorkshopFull,
    WorkshopNotFound,
)
from apps.common.permissions import require_owner_or_admin
from apps.users.models import Student
from apps.workshops.models import Workshop

from .models import Enrollment, EnrollmentStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Eligibility:
    """수강 신청 가능 여부 판정 결과"""

    eligible: bool
    reason: str
    message: str
    remaining_seats: int = None
    active_enrollment_id: int = None


@dataclass
class EnrollmentPage:
    items: list = field(default_factory=list)
    total: int = 0
    limit: int = 20
    offset: int = 0


class EnrollmentService:
    """수강 신청 생성/취소와 조회를 담당하는 서비스.

    - 학생당 active 신청은 1건, 워크숍의 active 신청 수는 최대 인원을 넘지 않음.
    - 잔여 좌석은 저장하지 않고 매번 active 신청 수로 다시 계산.
    - 재시도는 하지 않음. 트랜잭션이 실패하면 전부 롤백되고 호출자가 다시 요청.

    Args:
        using (str): 사용할 데이터베이스 연결 alias. 프로세스 시작 시 한 번 주입됨.
    """

    COMMENT_SEPARATOR = " | "
    CANCEL_NOTE = "취소: {reason}"
    DEFAULT_CANCEL_NOTE = "사용자 요청으로 취소"

    def __init__(self, using="default"):
        self.using = using

    def _enrollments(self):
        return Enrollment.objects.using(self.using)

    def _workshops(self):
        return Workshop.objects.using(self.using)

    def _active_count(self, workshop_id):
        return self._enrollments().filter(workshop_id=workshop_id, status=EnrollmentStatus.ACTIVE).count()

    def _active_enrollment_id(self, student_id):
        return (
            self._enrollments()
            .filter(student_id=student_id, status=EnrollmentStatus.ACTIVE)
            .values_list("id", flat=True)
            .first()
        )

    # -------------------------------------------------------------------------------------------------------------------
    # 조회 (부수 효과 없음)
    # -------------------------------------------------------------------------------------------------------------------

    def remaining_seats(self, workshop_id):
        """워크숍의 잔여 좌석 수 (최대 인원 - active 신청 수).

        Raises:
            WorkshopNotFound: 워크숍이 존재하지 않는 경우.
        """
        capacity = self._workshops().filter(pk=workshop_id).values_list("max_capacity", flat=True).first()
        if capacity is None:
            raise WorkshopNotFound()
        return capacity - self._active_count(workshop_id)

    def check_eligibility(self, student_id, workshop_id):
        """수강 신청 전 사전 확인.

        다른 워크숍에 active 신청이 있는지, 워크숍이 활성 상태인지, 잔여 좌석이 있는지 순서로 확인.
        저장된 데이터는 바꾸지 않으므로 몇 번을 호출해도 안전함.

        Args:
            student_id (int): 학생 프로필 식별자.
            workshop_id (int): 워크숍 식별자.

        Returns:
            Eligibility: 신청 가능 여부와 reason 코드, 잔여 좌석.
        """
        active_id = self._active_enrollment_id(student_id)
        if active_id is not None:
            return Eligibility(
                eligible=False,
                reason=AlreadyEnrolled.default_code,
                message=AlreadyEnrolled.default_detail,
                active_enrollment_id=active_id,
            )

        capacity = (
            self._workshops().filter(pk=workshop_id, is_active=True).values_list("max_capacity", flat=True).first()
        )
        if capacity is None:
            return Eligibility(
                eligible=False,
                reason=WorkshopNotFound.default_code,
                message=WorkshopNotFound.default_detail,
            )

        remaining = capacity - self._active_count(workshop_id)
        if remaining <= 0:
            return Eligibility(
                eligible=False,
                reason=WorkshopFull.default_code,
                message=WorkshopFull.default_detail,
                remaining_seats=0,
            )

        return Eligibility(eligible=True, reason="eligible", message="수강 신청이 가능합니다.", remaining_seats=remaining)

    def get_enrollment(self, enrollment_id):
        enrollment = self._enrollments().select_related("student", "workshop").filter(pk=enrollment_id).first()
        if enrollment is None:
            raise EnrollmentNotFound()
        return enrollment

    def get_active_enrollment(self, student_id):
        return (
            self._enrollments()
            .select_related("workshop__instructor__user")
            .filter(student_id=student_id, status=EnrollmentStatus.ACTIVE)
            .first()
        )

    def history(self, student_id):
        """학생의 전체 수강 신청 이력 (최신순)"""
        return list(
            self._enrollments()
            .select_related("workshop__instructor__user")
            .filter(student_id=student_id)
            .order_by("-created_at", "-id")
        )

    def list_enrollments(self, student_id=None, workshop_id=None, search=None, status=None, limit=20, offset=0):
        """수강 신청 목록 조회.

        search는 학생 이름, 학번, 워크숍명에 대한 부분 일치(대소문자 무시) 검색.

        Returns:
            EnrollmentPage: 현재 페이지의 신청 목록과 전체 개수.
        """
        queryset = self._enrollments().select_related("student", "workshop__instructor__user")

        if student_id is not None:
            queryset = queryset.filter(student_id=student_id)
        if workshop_id is not None:
            queryset = queryset.filter(workshop_id=workshop_id)
        if status:
            queryset = queryset.filter(status=status)
        if search:
            queryset = queryset.filter(
                Q(student__first_name__icontains=search)
                | Q(student__last_name__icontains=search)
                | Q(student__second_last_name__icontains=search)
                | Q(student__control_number__icontains=search)
                | Q(workshop__name__icontains=search)
            )

        queryset = queryset.order_by("-created_at", "-id")
        return EnrollmentPage(
            items=list(queryset[offset : offset + limit]),
            total=queryset.count(),
            limit=limit,
            offset=offset,
        )

    def stats(self, workshop_id=None, instructor_id=None):
        """상태별, 기간별 수강 신청 통계"""
        queryset = self._enrollments()
        if workshop_id is not None:
            queryset = queryset.filter(workshop_id=workshop_id)
        if instructor_id is not None:
            queryset = queryset.filter(workshop__instructor_id=instructor_id)

        now = timezone.now()
        return queryset.aggregate(
            total=Count("id"),
            active=Count("id", filter=Q(status=EnrollmentStatus.ACTIVE)),
            inactive=Count("id", filter=Q(status=EnrollmentStatus.INACTIVE)),
            cancelled=Count("id", filter=Q(status=EnrollmentStatus.CANCELLED)),
            last_7_days=Count("id", filter=Q(created_at__gte=now - timedelta(days=7))),
            last_30_days=Count("id", filter=Q(created_at__gte=now - timedelta(days=30))),
            unique_students=Count("student", distinct=True),
        )

    def report_by_workshop(self):
        """활성 워크숍별 수강 현황 (카테고리별, 점유율 높은 순)"""
        workshops = (
            self._workshops()
            .active()
            .select_related("instructor__user")
            .annotate(
                active_count=Count("enrollments", filter=Q(enrollments__status=EnrollmentStatus.ACTIVE)),
                cancelled_count=Count("enrollments", filter=Q(enrollments__status=EnrollmentStatus.CANCELLED)),
            )
        )

        report = [
            {
                "workshop_id": workshop.pk,
                "workshop_name": workshop.name,
                "category": workshop.category,
                "max_capacity": workshop.max_capacity,
                "enrolled": workshop.active_count,
                "cancelled": workshop.cancelled_count,
                "remaining_seats": workshop.max_capacity - workshop.active_count,
                "occupancy_percent": round(workshop.active_count * 100 / workshop.max_capacity, 2),
                "instructor_name": workshop.instructor_name,
            }
            for workshop in workshops
        ]
        report.sort(key=lambda row: (row["category"], -row["occupancy_percent"]))
        return report

    # -------------------------------------------------------------------------------------------------------------------
    # 변경 (트랜잭션)
    # -------------------------------------------------------------------------------------------------------------------

    def enroll(self, student_id, workshop_id, comment=None):
        """수강 신청 생성.

        사전 확인 결과를 믿지 않고 하나의 트랜잭션 안에서 다시 확인함.
        학생 행 -> 워크숍 행 순서로 SELECT ... FOR UPDATE 잠금을 걸기 때문에
        같은 워크숍의 마지막 좌석에 대한 동시 요청은 직렬화되어 하나만 성공함.

        Args:
            student_id (int): 학생 프로필 식별자.
            workshop_id (int): 워크숍 식별자.
            comment (str, optional): 신청 메모.

        Returns:
            Enrollment: 생성된 active 상태의 수강 신청.

        Raises:
            ProfileNotFound: 학생 프로필이 없는 경우.
            AlreadyEnrolled: 이미 active 신청이 있는 경우.
            WorkshopNotFound: 워크숍이 없거나 비활성 상태인 경우.
            WorkshopFull: 잔여 좌석이 없는 경우.
            StoreError: DB 호출 자체가 실패한 경우.
        """
        try:
            with transaction.atomic(using=self.using):
                student = Student.objects.using(self.using).select_for_update().filter(pk=student_id).first()
                if student is None:
                    raise ProfileNotFound()

                if self._active_enrollment_id(student_id) is not None:
                    raise AlreadyEnrolled()

                workshop = self._workshops().select_for_update().filter(pk=workshop_id, is_active=True).first()
                if workshop is None:
                    raise WorkshopNotFound()

                if workshop.max_capacity - self._active_count(workshop.pk) <= 0:
                    raise WorkshopFull()

                enrollment = self._enrollments().create(
                    student=student,
                    workshop=workshop,
                    status=EnrollmentStatus.ACTIVE,
                    comment=comment or None,
                )
        except IntegrityError as exc:
            # 부분 유니크 인덱스(학생당 active 1건)에 걸린 경우
            if self._active_enrollment_id(student_id) is not None:
                raise AlreadyEnrolled() from exc
            raise StoreError() from exc
        except DatabaseError as exc:
            raise StoreError() from exc

        logger.info("enrollment %s created: student=%s workshop=%s", enrollment.pk, student_id, workshop_id)
        return enrollment

    def cancel(self, enrollment_id, reason_text=None, caller=None):
        """active 신청을 cancelled로 변경.

        기존 comment는 덮어쓰지 않고 취소 사유를 " | "로 이어 붙임.
        이미 취소된 신청을 다시 취소하면 성공으로 처리하지 않고 EnrollmentNotFound를 발생시킴.
        좌석은 active 신청 수로 계산하므로 별도로 돌려줄 필요 없음.

        Args:
            enrollment_id (int): 수강 신청 식별자.
            reason_text (str, optional): 취소 사유.
            caller (Caller, optional): 주어지면 본인 또는 관리자인지 확인.

        Returns:
            Enrollment: 취소된 수강 신청.
        """
        try:
            with transaction.atomic(using=self.using):
                enrollment = self._enrollments().select_for_update().filter(pk=enrollment_id).first()
                if enrollment is None:
                    raise EnrollmentNotFound()

                if caller is not None:
                    require_owner_or_admin(caller, enrollment.student_id)

                if enrollment.status != EnrollmentStatus.ACTIVE:
                    raise EnrollmentNotFound()

                note = self.CANCEL_NOTE.format(reason=reason_text) if reason_text else self.DEFAULT_CANCEL_NOTE
                enrollment.status = EnrollmentStatus.CANCELLED
                enrollment.comment = self.append_comment(enrollment.comment, note)
                enrollment.save(using=self.using, update_fields=["status", "comment", "updated_at"])
        except DatabaseError as exc:
            raise StoreError() from exc

        logger.info("enrollment %s cancelled", enrollment_id)
        return enrollment

    @classmethod
    def append_comment(cls, comment, note):
        if not comment:
            return note
        return f"{comment}{cls.COMMENT_SEPARATOR}{note}"
