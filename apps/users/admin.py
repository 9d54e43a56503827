from django.contrib import admin
from django.contrib.auth.hashers import make_password
from django.core.exceptions import ValidationError

from apps.common.admin import BaseModelAdmin

from .models import Instructor, Student, User


@admin.register(User)
class UserAdmin(BaseModelAdmin):
    # 표시할 컬럼
    list_display = ("email", "name", "role", "is_staff", "is_active", "is_superuser", "created_at")
    # 검색 기능 설정
    search_fields = ("email", "name")
    # 필터링 조건
    list_filter = ("role", "is_active", "is_staff", "is_superuser")
    exclude = ("groups", "user_permissions", "last_login")

    def get_form(self, request, obj=None, **kwargs):
        form = super().get_form(request, obj, **kwargs)

        # 슈퍼유저가 아닐 경우 아래 두 필드를 비활성화
        if not request.user.is_superuser:
            for field in ("is_superuser", "is_staff"):
                if field in form.base_fields:
                    form.base_fields[field].disabled = True
        return form

    def get_readonly_fields(self, request, obj=None):
        """
        마지막 superuser가 존재하면 해당 필드를 읽기 전용으로 설정
        """
        readonly_fields = super().get_readonly_fields(request, obj)
        if obj and obj.is_superuser and User.objects.filter(is_superuser=True).count() == 1:
            readonly_fields = tuple(readonly_fields) + ("is_superuser",)

        return readonly_fields

    def save_model(self, request, obj, form, change):
        """
        1) 최후의 superuser가 해제되지 않도록 2차 방지
        2) 유저 생성 시 비밀번호 해쉬화
        """
        if change and "is_superuser" in form.changed_data:
            if not obj.is_superuser and User.objects.filter(is_superuser=True).count() == 1:
                raise ValidationError("최소 1명의 superuser는 있어야 합니다.")

        if "password" in form.changed_data:
            obj.password = make_password(obj.password)

        super().save_model(request, obj, form, change)

    def has_delete_permission(self, request, obj=None):
        return request.user.is_superuser  # superuser만 삭제 가능


@admin.register(Student)
class StudentAdmin(BaseModelAdmin):
    list_display = ("control_number", "full_name", "get_user_email", "group", "semester", "created_at")
    search_fields = ("control_number", "first_name", "last_name", "user__email")
    list_filter = ("semester", "group")

    def get_user_email(self, obj):
        return obj.user.email

    get_user_email.short_description = "Email"


@admin.register(Instructor)
class InstructorAdmin(BaseModelAdmin):
    list_display = ("get_user_email", "get_user_name", "specialty", "created_at", "updated_at")
    search_fields = ("user__email", "user__name", "specialty")
    list_filter = ("created_at", "updated_at")

    def get_user_email(self, obj):
        return obj.user.email

    def get_user_name(self, obj):
        return obj.user.name

    get_user_email.short_description = "Email"
    get_user_name.short_description = "Name"
