from rest_framework import serializers

from apps.common.utils import sanitize_text

from .models import Enrollment, EnrollmentStatus


class EnrollmentSerializer(serializers.ModelSerializer):
    """수강 신청 직렬화 클래스.

    Attributes:
        student_name: 학생 이름 (읽기 전용).
        control_number: 학번 (읽기 전용).
        workshop_name: 워크숍명 (읽기 전용).
    """

    student_name = serializers.CharField(source="student.full_name", read_only=True)
    control_number = serializers.CharField(source="student.control_number", read_only=True)
    workshop_name = serializers.CharField(source="workshop.name", read_only=True)
    workshop_category = serializers.CharField(source="workshop.category", read_only=True)

    class Meta:
        model = Enrollment
        fields = [
            "id",
            "student",
            "student_name",
            "control_number",
            "workshop",
            "workshop_name",
            "workshop_category",
            "status",
            "comment",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class EnrollmentDetailSerializer(serializers.ModelSerializer):
    """학생 본인의 수강 신청 조회를 위한 직렬화 클래스.

    워크숍의 일정, 장소, 담당 강사 정보를 함께 포함.
    """

    workshop_name = serializers.CharField(source="workshop.name", read_only=True)
    workshop_category = serializers.CharField(source="workshop.category", read_only=True)
    schedule = serializers.CharField(source="workshop.schedule", read_only=True)
    location = serializers.CharField(source="workshop.location", read_only=True)
    instructor_name = serializers.CharField(source="workshop.instructor_name", read_only=True)

    class Meta:
        model = Enrollment
        fields = [
            "id",
            "workshop",
            "workshop_name",
            "workshop_category",
            "schedule",
            "location",
            "instructor_name",
            "status",
            "comment",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class EnrollmentCreateSerializer(serializers.Serializer):
    """수강 신청 요청 본문. 클라이언트는 comment만 전송"""

    comment = serializers.CharField(max_length=500, required=False, allow_blank=True, allow_null=True)

    def validate_comment(self, value):
        return sanitize_text(value) or None


class EnrollmentCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=500, required=False, allow_blank=True, allow_null=True)

    def validate_reason(self, value):
        return sanitize_text(value) or None


class EnrollmentListQuerySerializer(serializers.Serializer):
    student = serializers.IntegerField(min_value=1, required=False)
    workshop = serializers.IntegerField(min_value=1, required=False)
    status = serializers.ChoiceField(choices=EnrollmentStatus.choices, required=False)
    search = serializers.CharField(min_length=2, max_length=100, required=False)
    limit = serializers.IntegerField(min_value=1, max_value=100, default=20)
    offset = serializers.IntegerField(min_value=0, default=0)

    def validate_search(self, value):
        return sanitize_text(value)


class EligibilitySerializer(serializers.Serializer):
    eligible = serializers.BooleanField()
    reason = serializers.CharField()
    message = serializers.CharField()
    remaining_seats = serializers.IntegerField(allow_null=True)
    active_enrollment_id = serializers.IntegerField(allow_null=True)


class EnrollmentStatsQuerySerializer(serializers.Serializer):
    workshop = serializers.IntegerField(min_value=1, required=False)
