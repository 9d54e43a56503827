from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Count, ExpressionWrapper, F, Q

from apps.common.models import BaseModel
from apps.users.models import Instructor


class Category(models.TextChoices):
    CULTURAL = "cultural", "Cultural"
    SPORTS = "sports", "Sports"
    CIVIC = "civic", "Civic"


class WorkshopQuerySet(models.QuerySet):
    def active(self):
        return self.filter(is_active=True)

    def with_seats(self):
        """현재 수강 인원(enrolled_count)과 잔여 좌석(remaining_seats)을 함께 조회"""
        return self.annotate(
            enrolled_count=Count("enrollments", filter=Q(enrollments__status="active")),
        ).annotate(
            remaining_seats=ExpressionWrapper(F("max_capacity") - F("enrolled_count"), output_field=models.IntegerField()),
        )


class Workshop(BaseModel):
    """워크숍 모델.

    관리자가 생성하며 비활성화는 수강 중인 학생이 없을 때만 가능.
    잔여 좌석은 저장하지 않고 항상 active 상태의 수강 신청 수로 계산.
    """

    name = models.CharField(max_length=100)  # 워크숍명
    description = models.TextField(blank=True, default="")
    category = models.CharField(max_length=20, choices=Category.choices)
    max_capacity = models.PositiveIntegerField(default=25, validators=[MinValueValidator(1)])  # 최대 수강 인원
    schedule = models.CharField(max_length=100, blank=True, default="")  # 수업 시간
    location = models.CharField(max_length=100, blank=True, default="")  # 장소
    is_active = models.BooleanField(default=True)
    instructor = models.ForeignKey(Instructor, on_delete=models.SET_NULL, null=True, blank=True)

    objects = WorkshopQuerySet.as_manager()

    class Meta:
        db_table = "workshop"
        ordering = ("category", "name")
        constraints = [
            models.CheckConstraint(condition=models.Q(max_capacity__gt=0), name="workshop_max_capacity_positive"),
        ]

    def __str__(self):
        return self.name

    @property
    def instructor_name(self):
        if self.instructor_id is None:
            return "미배정"
        return self.instructor.user.name
