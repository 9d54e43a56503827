from django.contrib import admin


class BaseModelAdmin(admin.ModelAdmin):
    """is_staff 계정만 접근 가능한 관리자 기본 클래스.

    생성/수정 일시는 상세 화면에서 읽기 전용으로 표시.
    """

    list_per_page = 50
    timestamp_fields = ("created_at", "updated_at")

    def get_readonly_fields(self, request, obj=None):
        readonly_fields = tuple(super().get_readonly_fields(request, obj))
        return readonly_fields + tuple(field for field in self.timestamp_fields if field not in readonly_fields)

    def has_add_permission(self, request):
        return request.user.is_staff

    def has_change_permission(self, request, obj=None):
        return request.user.is_staff

    def has_delete_permission(self, request, obj=None):
        return request.user.is_staff

    def has_module_permission(self, request):
        return request.user.is_staff
