from django.contrib import admin

from apps.common.admin import BaseModelAdmin

from .models import Enrollment


@admin.register(Enrollment)
class EnrollmentAdmin(BaseModelAdmin):
    """Enrollment 모델 관리자.

    Enrollment 인스턴스의 리스트 뷰에서 표시할 필드와 검색 기능을 정의.
    상태 변경은 좌석 계산과 연결되므로 관리자 화면에서는 읽기 전용으로 둠.
    """

    list_display = ("workshop_name", "student", "status", "created_at", "updated_at")
    search_fields = ("workshop__name", "student__control_number", "student__first_name", "student__last_name")
    list_filter = ("status", "workshop__category")
    readonly_fields = ("student", "workshop", "status", "created_at", "updated_at")

    def workshop_name(self, obj):
        """연결된 워크숍의 이름을 반환.

        Args:
            obj (Enrollment): Enrollment 인스턴스.

        Returns:
            str: 연결된 워크숍의 이름.
        """
        return obj.workshop.name

    workshop_name.short_description = "Workshop"
