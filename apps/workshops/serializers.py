from rest_framework import serializers

from apps.common.utils import sanitize_text
from apps.registrations.models import Enrollment
from apps.users.models import Instructor

from .models import Category, Workshop


class InstructorSerializer(serializers.ModelSerializer):
    """강사 정보 Serializer"""

    name = serializers.CharField(source="user.name", read_only=True)
    email = serializers.EmailField(source="user.email", read_only=True)

    class Meta:
        model = Instructor
        fields = ["id", "name", "email", "specialty", "phone"]


class WorkshopSerializer(serializers.ModelSerializer):
    """워크숍 조회 Serializer.

    Attributes:
        enrolled_count: 현재 수강 인원 (with_seats로 조회한 경우).
        remaining_seats: 잔여 좌석 (with_seats로 조회한 경우).
    """

    instructor = InstructorSerializer(read_only=True)
    enrolled_count = serializers.IntegerField(read_only=True)
    remaining_seats = serializers.IntegerField(read_only=True)

    class Meta:
        model = Workshop
        fields = [
            "id",
            "name",
            "description",
            "category",
            "max_capacity",
            "schedule",
            "location",
            "is_active",
            "instructor",
            "enrolled_count",
            "remaining_seats",
            "created_at",
            "updated_at",
        ]


class WorkshopWriteSerializer(serializers.ModelSerializer):
    """워크숍 생성/수정 Serializer. 수정 시 partial=True로 사용"""

    name = serializers.CharField(min_length=3, max_length=100)
    max_capacity = serializers.IntegerField(min_value=1, max_value=500, required=False)
    instructor = serializers.PrimaryKeyRelatedField(queryset=Instructor.objects.all(), allow_null=True, required=False)

    class Meta:
        model = Workshop
        fields = ["name", "description", "category", "max_capacity", "schedule", "location", "is_active", "instructor"]

    def validate_name(self, value):
        return sanitize_text(value)

    def validate_description(self, value):
        if len(value) > 1000:
            raise serializers.ValidationError("설명은 1000자를 넘을 수 없습니다.")
        return sanitize_text(value)

    def validate_schedule(self, value):
        return sanitize_text(value)

    def validate_location(self, value):
        return sanitize_text(value)


class WorkshopListQuerySerializer(serializers.Serializer):
    category = serializers.ChoiceField(choices=Category.choices, required=False)
    # null이면 활성 여부와 관계없이 조회
    is_active = serializers.BooleanField(required=False, allow_null=True, default=True)
    search = serializers.CharField(min_length=2, max_length=100, required=False)
    limit = serializers.IntegerField(min_value=1, max_value=100, default=50)
    offset = serializers.IntegerField(min_value=0, default=0)

    def validate_search(self, value):
        return sanitize_text(value)


class RosterQuerySerializer(serializers.Serializer):
    search = serializers.CharField(min_length=2, max_length=100, required=False)
    limit = serializers.IntegerField(min_value=1, max_value=100, default=50)
    offset = serializers.IntegerField(min_value=0, default=0)

    def validate_search(self, value):
        return sanitize_text(value)


class SeatsSerializer(serializers.Serializer):
    workshop_id = serializers.IntegerField()
    remaining_seats = serializers.IntegerField()


class RosterEntrySerializer(serializers.ModelSerializer):
    """워크숍 수강생 명단 Serializer"""

    student_id = serializers.IntegerField(source="student.id", read_only=True)
    full_name = serializers.CharField(source="student.full_name", read_only=True)
    control_number = serializers.CharField(source="student.control_number", read_only=True)
    group = serializers.CharField(source="student.group", read_only=True)
    semester = serializers.IntegerField(source="student.semester", read_only=True)
    phone = serializers.CharField(source="student.phone", read_only=True)
    email = serializers.EmailField(source="student.user.email", read_only=True)

    class Meta:
        model = Enrollment
        fields = [
            "id",
            "student_id",
            "full_name",
            "control_number",
            "group",
            "semester",
            "phone",
            "email",
            "comment",
            "created_at",
        ]
