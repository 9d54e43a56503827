import re

from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError
from rest_framework import serializers

from apps.users.models import Student, User

CONTROL_NUMBER_PATTERN = re.compile(r"^[A-Za-z0-9-]{4,20}$")


def validate_user_email(email):
    if User.objects.filter(email__iexact=email).exists():
        raise serializers.ValidationError("이미 존재하는 이메일입니다.")
    return email


def validate_user_password(password):
    if not re.search(r"[a-z]", password) or not re.search(r"[A-Z]", password) or not re.search(r"\d", password):
        raise serializers.ValidationError("비밀번호는 8자 이상이며 대문자, 소문자, 숫자를 포함해야 합니다.")

    try:
        validate_password(password)  # 장고의 비밀번호 유효성 검사
    except ValidationError as e:
        raise serializers.ValidationError(", ".join(e.messages))

    return password


def validate_control_number(control_number):
    """학번 형식(영문, 숫자, 하이픈 4~20자)과 중복 여부 확인"""
    if not CONTROL_NUMBER_PATTERN.match(control_number):
        raise serializers.ValidationError("학번은 영문, 숫자, 하이픈으로 이루어진 4~20자여야 합니다.")

    if Student.objects.filter(control_number__iexact=control_number).exists():
        raise serializers.ValidationError("이미 등록된 학번입니다.")

    return control_number.upper()


def validate_phone(phone):
    """전화번호가 숫자인지 확인"""
    if phone and not phone.isdigit():
        raise serializers.ValidationError("전화번호는 숫자만 입력해야 합니다.")
    return phone
