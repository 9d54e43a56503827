from django.db import transaction
from rest_framework import serializers

from apps.common.utils import sanitize_text

from .models import Role, Student, User
from .utils import (
    validate_control_number,
    validate_phone,
    validate_user_email,
    validate_user_password,
)


class StudentSerializer(serializers.ModelSerializer):
    full_name = serializers.CharField(read_only=True)

    class Meta:
        model = Student
        fields = (
            "id",
            "first_name",
            "last_name",
            "second_last_name",
            "full_name",
            "control_number",
            "group",
            "semester",
            "phone",
        )


class UserSerializer(serializers.ModelSerializer):
    student = serializers.SerializerMethodField()
    instructor_id = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ("id", "email", "name", "role", "is_active", "student", "instructor_id")

    def get_student(self, obj):
        """User가 Student와 연결되어 있다면 학생 프로필 반환, 없으면 None"""
        return StudentSerializer(obj.student).data if hasattr(obj, "student") else None

    def get_instructor_id(self, obj):
        """User가 Instructor와 연결되어 있다면 instructor_id 반환, 없으면 None"""
        return obj.instructor.id if hasattr(obj, "instructor") else None


class SignupSerializer(serializers.ModelSerializer):
    """학생 회원가입 Serializer. 계정과 학생 프로필을 함께 생성"""

    first_name = serializers.CharField(max_length=50, write_only=True)
    last_name = serializers.CharField(max_length=50, write_only=True)
    second_last_name = serializers.CharField(max_length=50, write_only=True, required=False, allow_blank=True)
    control_number = serializers.CharField(max_length=20, write_only=True)
    group = serializers.CharField(max_length=20, write_only=True, required=False, allow_blank=True)
    semester = serializers.IntegerField(min_value=1, max_value=12, write_only=True, required=False)
    phone = serializers.CharField(max_length=20, write_only=True, required=False, allow_blank=True)

    PROFILE_FIELDS = ("first_name", "last_name", "second_last_name", "control_number", "group", "semester", "phone")

    class Meta:
        model = User
        fields = (
            "email",
            "password",
            "first_name",
            "last_name",
            "second_last_name",
            "control_number",
            "group",
            "semester",
            "phone",
        )
        extra_kwargs = {"password": {"write_only": True}}

    def validate_email(self, email):
        return validate_user_email(email)

    def validate_password(self, password):
        return validate_user_password(password)

    def validate_control_number(self, control_number):
        return validate_control_number(control_number)

    def validate_phone(self, phone):
        return validate_phone(phone)

    def validate(self, attrs):
        for key in ("first_name", "last_name", "second_last_name", "group"):
            if key in attrs:
                attrs[key] = sanitize_text(attrs[key])
        return attrs

    def create(self, validated_data):
        """
        비밀번호 해쉬화 및 학생 프로필을 생성하는 함수
        """
        profile = {key: validated_data.pop(key) for key in self.PROFILE_FIELDS if key in validated_data}
        password = validated_data.pop("password")

        # 프로필 없이 계정만 생성될 가능성이 있으니 트랜젝션 처리
        with transaction.atomic():
            user = User(
                name=f"{profile['first_name']} {profile['last_name']}",
                role=Role.STUDENT,
                **validated_data,
            )
            user.set_password(password)
            user.save()
            Student.objects.create(user=user, **profile)

        return user


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField()


class UpdateProfileSerializer(serializers.Serializer):
    """마이 페이지 수정 Serializer. 보낸 항목만 수정됨"""

    name = serializers.CharField(max_length=50, required=False)
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True)
    group = serializers.CharField(max_length=20, required=False, allow_blank=True)
    semester = serializers.IntegerField(min_value=1, max_value=12, required=False, allow_null=True)

    def validate_name(self, value):
        return sanitize_text(value)

    def validate_phone(self, value):
        return validate_phone(value)

    def validate_group(self, value):
        return sanitize_text(value)
