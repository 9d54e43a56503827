from django.apps import AppConfig
from django.conf import settings


class RegistrationsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.registrations"

    # 프로세스 시작 시 한 번 만들어 뷰에 주입하는 수강 신청 서비스
    enrollment_service = None

    def ready(self):
        from apps.registrations.services import EnrollmentService

        self.enrollment_service = EnrollmentService(using=getattr(settings, "ENROLLMENT_DB_ALIAS", "default"))
