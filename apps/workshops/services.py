import logging

from django.db import DatabaseError, transaction
from django.db.models import Count, Q, Sum

from apps.common.exceptions import (
    CapacityBelowEnrolled,
    StoreError,
    WorkshopHasActiveEnrollments,
    WorkshopNotFound,
)
from apps.common.utils import apply_patch, build_patch
from apps.registrations.models import Enrollment, EnrollmentStatus

from .models import Category, Workshop

logger = logging.getLogger(__name__)

# 부분 수정(PATCH)으로 바꿀 수 있는 필드
PATCHABLE_FIELDS = (
    "name",
    "description",
    "category",
    "max_capacity",
    "schedule",
    "location",
    "is_active",
    "instructor",
)

# 배정된 강사가 바꿀 수 있는 필드
INSTRUCTOR_PATCHABLE_FIELDS = ("description", "schedule", "location")


def list_workshops(category=None, search=None, is_active=True, limit=50, offset=0, using="default"):
    """워크숍 목록 (수강 인원, 잔여 좌석 포함)"""
    queryset = Workshop.objects.using(using).select_related("instructor__user").with_seats()
    if category:
        queryset = queryset.filter(category=category)
    if is_active is not None:
        queryset = queryset.filter(is_active=is_active)
    if search:
        queryset = queryset.filter(Q(name__icontains=search) | Q(description__icontains=search))
    return list(queryset.order_by("category", "name")[offset : offset + limit])


def get_workshop(workshop_id, using="default"):
    workshop = (
        Workshop.objects.using(using).select_related("instructor__user").with_seats().filter(pk=workshop_id).first()
    )
    if workshop is None:
        raise WorkshopNotFound()
    return workshop


def available_for_student(student_id, using="default"):
    """학생이 신청할 수 있는 워크숍 (활성, 잔여 좌석 있음, 이미 신청하지 않음)"""
    enrolled = Enrollment.objects.using(using).filter(student_id=student_id, status=EnrollmentStatus.ACTIVE)
    return list(
        Workshop.objects.using(using)
        .active()
        .exclude(pk__in=enrolled.values("workshop_id"))
        .select_related("instructor__user")
        .with_seats()
        .filter(remaining_seats__gt=0)
        .order_by("category", "name")
    )


def create_workshop(data, using="default"):
    workshop = Workshop.objects.using(using).create(**data)
    logger.info("workshop %s created: %s", workshop.pk, workshop.name)
    return get_workshop(workshop.pk, using=using)


def update_workshop(workshop_id, data, allowed_fields=PATCHABLE_FIELDS, using="default"):
    """patch로 워크숍 정보를 수정.

    max_capacity를 바꾸는 경우 워크숍 행을 잠근 뒤 현재 active 신청 수보다 작아지지 않는지 확인.
    수강 신청과 같은 행 잠금을 사용하므로 확인과 수정 사이에 좌석이 채워지지 않음.

    Args:
        workshop_id (int): 워크숍 식별자.
        data (dict): 검증이 끝난 요청 데이터.
        allowed_fields (tuple): 호출자가 수정할 수 있는 필드.

    Returns:
        Workshop: 수정된 워크숍 (좌석 정보 포함).
    """
    patch = build_patch(data, allowed_fields)
    if "instructor" in patch:
        instructor = patch.pop("instructor")
        patch["instructor_id"] = instructor.pk if instructor is not None else None

    try:
        with transaction.atomic(using=using):
            workshop = Workshop.objects.using(using).select_for_update().filter(pk=workshop_id).first()
            if workshop is None:
                raise WorkshopNotFound()

            if "max_capacity" in patch:
                enrolled = Enrollment.objects.using(using).filter(
                    workshop_id=workshop_id, status=EnrollmentStatus.ACTIVE
                ).count()
                if patch["max_capacity"] < enrolled:
                    raise CapacityBelowEnrolled()

            # 비활성화는 deactivate_workshop과 같은 규칙을 따름
            if patch.get("is_active") is False:
                if Enrollment.objects.using(using).filter(
                    workshop_id=workshop_id, status=EnrollmentStatus.ACTIVE
                ).exists():
                    raise WorkshopHasActiveEnrollments()

            apply_patch(Workshop.objects.using(using).filter(pk=workshop_id), patch)
    except DatabaseError as exc:
        raise StoreError() from exc

    logger.info("workshop %s updated: %s", workshop_id, ", ".join(sorted(patch)))
    return get_workshop(workshop_id, using=using)


def deactivate_workshop(workshop_id, using="default"):
    """워크숍 비활성화 (soft delete).

    active 신청이 남아 있으면 비활성화하지 않음. 기존 신청 행은 그대로 유지.
    """
    try:
        with transaction.atomic(using=using):
            workshop = Workshop.objects.using(using).select_for_update().filter(pk=workshop_id).first()
            if workshop is None:
                raise WorkshopNotFound()

            if Enrollment.objects.using(using).filter(workshop_id=workshop_id, status=EnrollmentStatus.ACTIVE).exists():
                raise WorkshopHasActiveEnrollments()

            apply_patch(Workshop.objects.using(using).filter(pk=workshop_id), {"is_active": False})
    except DatabaseError as exc:
        raise StoreError() from exc

    logger.info("workshop %s deactivated", workshop_id)
    return get_workshop(workshop_id, using=using)


def roster(workshop_id, search=None, limit=50, offset=0, using="default"):
    """워크숍에 수강 중인 학생 목록 (성, 이름 순)"""
    queryset = (
        Enrollment.objects.using(using)
        .select_related("student__user")
        .filter(workshop_id=workshop_id, status=EnrollmentStatus.ACTIVE)
    )
    if search:
        queryset = queryset.filter(
            Q(student__first_name__icontains=search)
            | Q(student__last_name__icontains=search)
            | Q(student__second_last_name__icontains=search)
            | Q(student__control_number__icontains=search)
        )
    queryset = queryset.order_by("student__last_name", "student__second_last_name", "student__first_name")
    return list(queryset[offset : offset + limit])


def stats(using="default"):
    """워크숍 통계 (전체/활성/카테고리별 개수, 총 좌석, 수강 인원)"""
    workshops = Workshop.objects.using(using)
    totals = workshops.aggregate(
        total=Count("id"),
        active=Count("id", filter=Q(is_active=True)),
        inactive=Count("id", filter=Q(is_active=False)),
        total_capacity=Sum("max_capacity"),
    )
    totals["total_capacity"] = totals["total_capacity"] or 0
    totals["total_enrolled"] = (
        Enrollment.objects.using(using).filter(status=EnrollmentStatus.ACTIVE).count()
    )

    by_category = []
    for value, label in Category.choices:
        active_in_category = workshops.active().filter(category=value)
        capacity = active_in_category.aggregate(total=Sum("max_capacity"))["total"] or 0
        enrolled = Enrollment.objects.using(using).filter(
            workshop__category=value, workshop__is_active=True, status=EnrollmentStatus.ACTIVE
        ).count()
        by_category.append(
            {
                "category": value,
                "label": label,
                "workshops": active_in_category.count(),
                "total_capacity": capacity,
                "total_enrolled": enrolled,
            }
        )
    totals["by_category"] = by_category
    return totals
