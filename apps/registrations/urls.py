from django.urls import path

from .views import (
    EnrollmentDetailView,
    EnrollmentListView,
    EnrollmentRegistrationView,
    EnrollmentReportView,
    EnrollmentStatsView,
    MyActiveEnrollmentView,
    MyEnrollmentHistoryView,
    MyEnrollmentListView,
    WorkshopEligibilityView,
    WorkshopSeatsView,
)

urlpatterns = [
    # 잔여 좌석 조회
    path("workshops/<int:workshop_id>/seats/", WorkshopSeatsView.as_view(), name="workshop-seats"),
    # 수강 신청 가능 여부 확인
    path("workshops/<int:workshop_id>/eligibility/", WorkshopEligibilityView.as_view(), name="workshop-eligibility"),
    # 수강 신청
    path("workshops/<int:workshop_id>/enrollment/", EnrollmentRegistrationView.as_view(), name="enrollment-create"),
    # 내 수강 신청
    path("students/me/enrollments/", MyEnrollmentListView.as_view(), name="my-enrollments"),
    path("students/me/enrollments/active/", MyActiveEnrollmentView.as_view(), name="my-enrollment-active"),
    path("students/me/enrollments/history/", MyEnrollmentHistoryView.as_view(), name="my-enrollment-history"),
    # 관리자
    path("enrollments/", EnrollmentListView.as_view(), name="enrollment-list"),
    path("enrollments/stats/", EnrollmentStatsView.as_view(), name="enrollment-stats"),
    path("enrollments/report/", EnrollmentReportView.as_view(), name="enrollment-report"),
    # 상세 조회 / 취소
    path("enrollments/<int:enrollment_id>/", EnrollmentDetailView.as_view(), name="enrollment-detail"),
]
