from django.contrib import admin, messages

from apps.common.admin import BaseModelAdmin
from apps.common.exceptions import WorkshopHasActiveEnrollments

from .models import Workshop
from .services import deactivate_workshop


@admin.register(Workshop)
class WorkshopAdmin(BaseModelAdmin):
    list_display = ("name", "category", "max_capacity", "enrolled_count", "instructor", "is_active", "updated_at")
    search_fields = ("name", "description")
    list_filter = ("category", "is_active")

    def get_queryset(self, request):
        return super().get_queryset(request).with_seats()

    def enrolled_count(self, obj):
        return obj.enrolled_count

    enrolled_count.short_description = "Enrolled"

    def delete_model(self, request, obj):
        """워크숍은 삭제하지 않고 비활성화"""
        try:
            deactivate_workshop(obj.pk)
        except WorkshopHasActiveEnrollments as e:
            messages.error(request, f"{obj.name}: {e.detail}")
            return
        messages.success(request, f"{obj.name} 워크숍이 비활성화되었습니다.")

    def delete_queryset(self, request, queryset):
        for obj in queryset:
            self.delete_model(request, obj)
