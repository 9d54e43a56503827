from django.db import models

from apps.common.models import BaseModel
from apps.users.models import Student
from apps.workshops.models import Workshop


class EnrollmentStatus(models.TextChoices):
    ACTIVE = "active", "Active"
    CANCELLED = "cancelled", "Cancelled"
    INACTIVE = "inactive", "Inactive"


class Enrollment(BaseModel):
    """수강 신청 모델.

    학생 한 명과 워크숍 하나를 연결하며, 상태는 active -> cancelled 한 방향으로만 바뀜.
    취소된 신청은 되살리지 않고 새 행을 만든다.
    """

    student = models.ForeignKey(Student, on_delete=models.CASCADE, related_name="enrollments")
    workshop = models.ForeignKey(Workshop, on_delete=models.PROTECT, related_name="enrollments")
    status = models.CharField(max_length=20, choices=EnrollmentStatus.choices, default=EnrollmentStatus.ACTIVE)
    comment = models.TextField(null=True, blank=True)

    class Meta:
        db_table = "enrollment"
        ordering = ("-created_at", "-id")
        constraints = [
            # 학생당 active 신청은 최대 1건 (DB 레벨 보장)
            models.UniqueConstraint(
                fields=["student"],
                condition=models.Q(status="active"),
                name="enrollment_one_active_per_student",
            ),
        ]
        indexes = [
            models.Index(fields=["workshop", "status"], name="enrollment_workshop_status_idx"),
        ]

    def __str__(self):
        return f"{self.student} - {self.workshop} ({self.status})"

    @property
    def is_active(self):
        return self.status == EnrollmentStatus.ACTIVE
