from django.apps import apps
from drf_spectacular.utils import OpenApiExample, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.common.exceptions import EnrollmentNotFound
from apps.common.permissions import (
    require_owner_or_admin,
    require_role,
    require_student_profile,
    resolve_caller,
)
from apps.users.models import Role
from apps.workshops.serializers import SeatsSerializer

from .serializers import (
    EligibilitySerializer,
    EnrollmentCancelSerializer,
    EnrollmentCreateSerializer,
    EnrollmentDetailSerializer,
    EnrollmentListQuerySerializer,
    EnrollmentSerializer,
    EnrollmentStatsQuerySerializer,
)


class EnrollmentServiceMixin:
    """프로세스 시작 시 만들어진 EnrollmentService를 뷰에 주입"""

    enrollment_service = None

    @property
    def service(self):
        if self.enrollment_service is not None:
            return self.enrollment_service
        return apps.get_app_config("registrations").enrollment_service


class WorkshopSeatsView(EnrollmentServiceMixin, APIView):
    """잔여 좌석 조회 API. 로그인 없이 접근 가능"""

    authentication_classes = ()
    permission_classes = (AllowAny,)

    @extend_schema(
        summary="잔여 좌석 조회",
        description="워크숍의 잔여 좌석 수(최대 인원 - 수강 중인 인원)를 조회합니다.",
        responses={
            200: SeatsSerializer,
            404: OpenApiExample("오류 예시", value={"reason": "workshop-not-found-or-inactive", "message": "..."}),
        },
        tags=["Enrollment"],
    )
    def get(self, request, workshop_id):
        remaining = self.service.remaining_seats(workshop_id)
        serializer = SeatsSerializer({"workshop_id": workshop_id, "remaining_seats": remaining})
        return Response(serializer.data, status=status.HTTP_200_OK)


class WorkshopEligibilityView(EnrollmentServiceMixin, APIView):
    """수강 신청 가능 여부 사전 확인 API"""

    @extend_schema(
        summary="수강 신청 가능 여부 확인",
        description="현재 로그인한 학생이 워크숍에 신청할 수 있는지 확인합니다. 데이터는 변경되지 않습니다.",
        responses={200: EligibilitySerializer},
        tags=["Enrollment"],
    )
    def get(self, request, workshop_id):
        caller = resolve_caller(request.user)
        student_id = require_student_profile(caller)

        verdict = self.service.check_eligibility(student_id, workshop_id)
        serializer = EligibilitySerializer(verdict)
        return Response(serializer.data, status=status.HTTP_200_OK)


class EnrollmentRegistrationView(EnrollmentServiceMixin, APIView):
    """수강 신청 API.

    학생이 워크숍을 신청할 수 있도록 하는 엔드포인트.
    """

    @extend_schema(
        summary="수강 신청",
        description="학생이 워크숍을 신청하는 API입니다. 학생당 하나의 워크숍만 신청할 수 있습니다.",
        request=EnrollmentCreateSerializer,
        responses={
            201: EnrollmentSerializer,
            400: OpenApiExample("오류 예시", value={"reason": "full", "message": "워크숍의 잔여 좌석이 없습니다."}),
            404: OpenApiExample(
                "오류 예시", value={"reason": "workshop-not-found-or-inactive", "message": "워크숍이 존재하지 않거나 비활성화 상태입니다."}
            ),
        },
        tags=["Enrollment"],
    )
    def post(self, request, workshop_id):
        """로그인한 학생의 수강 신청을 처리.

        Args:
            request (Request): 요청 객체.
            workshop_id (int): 신청할 워크숍의 식별자.

        Returns:
            Response: 생성된 수강 신청 정보.
        """
        caller = resolve_caller(request.user)
        student_id = require_student_profile(caller)

        serializer = EnrollmentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        enrollment = self.service.enroll(student_id, workshop_id, comment=serializer.validated_data.get("comment"))
        return Response(EnrollmentSerializer(enrollment).data, status=status.HTTP_201_CREATED)


# -----------------------------------------------------------------------------------------------------------------------
# -----------------------------------------------------------------------------------------------------------------------


class MyEnrollmentListView(EnrollmentServiceMixin, APIView):
    """내 수강 신청 목록 조회 API"""

    @extend_schema(
        summary="내 수강 신청 목록 조회",
        description="현재 로그인한 학생의 수강 신청 목록을 조회합니다. status, limit, offset으로 필터링할 수 있습니다.",
        parameters=[EnrollmentListQuerySerializer],
        responses={200: EnrollmentDetailSerializer(many=True), 404: OpenApiResponse(description="학생 프로필 없음")},
        tags=["Enrollment"],
    )
    def get(self, request):
        caller = resolve_caller(request.user)
        student_id = require_student_profile(caller)

        query = EnrollmentListQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        params = query.validated_data

        page = self.service.list_enrollments(
            student_id=student_id,
            status=params.get("status"),
            limit=params["limit"],
            offset=params["offset"],
        )
        serializer = EnrollmentDetailSerializer(page.items, many=True)
        return Response(serializer.data, status=status.HTTP_200_OK)


class MyActiveEnrollmentView(EnrollmentServiceMixin, APIView):
    """수강 중인 워크숍 조회 API"""

    @extend_schema(
        summary="수강 중인 워크숍 조회",
        description="현재 active 상태인 수강 신청을 조회합니다.",
        responses={
            200: EnrollmentDetailSerializer,
            404: OpenApiExample("오류 예시", value={"reason": "enrollment-not-found", "message": "수강 중인 워크숍이 없습니다."}),
        },
        tags=["Enrollment"],
    )
    def get(self, request):
        caller = resolve_caller(request.user)
        student_id = require_student_profile(caller)

        enrollment = self.service.get_active_enrollment(student_id)
        if enrollment is None:
            raise EnrollmentNotFound("수강 중인 워크숍이 없습니다.")
        return Response(EnrollmentDetailSerializer(enrollment).data, status=status.HTTP_200_OK)


class MyEnrollmentHistoryView(EnrollmentServiceMixin, APIView):
    """수강 신청 이력 조회 API"""

    @extend_schema(
        summary="수강 신청 이력 조회",
        description="취소된 신청을 포함한 전체 수강 신청 이력을 최신순으로 조회합니다.",
        responses={200: EnrollmentDetailSerializer(many=True)},
        tags=["Enrollment"],
    )
    def get(self, request):
        caller = resolve_caller(request.user)
        student_id = require_student_profile(caller)

        serializer = EnrollmentDetailSerializer(self.service.history(student_id), many=True)
        return Response(serializer.data, status=status.HTTP_200_OK)


# -----------------------------------------------------------------------------------------------------------------------
# -----------------------------------------------------------------------------------------------------------------------


class EnrollmentListView(EnrollmentServiceMixin, APIView):
    """관리자용 수강 신청 검색 API"""

    @extend_schema(
        summary="수강 신청 검색",
        description="학생 이름, 학번, 워크숍명으로 수강 신청을 검색합니다. 관리자만 사용할 수 있습니다.",
        parameters=[EnrollmentListQuerySerializer],
        responses={200: EnrollmentSerializer(many=True)},
        tags=["Enrollment"],
    )
    def get(self, request):
        require_role(resolve_caller(request.user), Role.ADMIN)

        query = EnrollmentListQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        params = query.validated_data

        page = self.service.list_enrollments(
            student_id=params.get("student"),
            workshop_id=params.get("workshop"),
            search=params.get("search"),
            status=params.get("status"),
            limit=params["limit"],
            offset=params["offset"],
        )
        return Response(
            {
                "count": page.total,
                "limit": page.limit,
                "offset": page.offset,
                "results": EnrollmentSerializer(page.items, many=True).data,
            },
            status=status.HTTP_200_OK,
        )


class EnrollmentDetailView(EnrollmentServiceMixin, APIView):
    """수강 신청 상세 조회 및 취소 API.

    본인 또는 관리자만 접근 가능.
    """

    @extend_schema(
        summary="수강 신청 상세 조회",
        responses={200: EnrollmentSerializer, 404: OpenApiResponse(description="수강 신청 없음")},
        tags=["Enrollment"],
    )
    def get(self, request, enrollment_id):
        caller = resolve_caller(request.user)

        enrollment = self.service.get_enrollment(enrollment_id)
        require_owner_or_admin(caller, enrollment.student_id)
        return Response(EnrollmentSerializer(enrollment).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="수강 신청 취소",
        description="active 상태의 수강 신청을 취소합니다. 이미 취소된 신청은 404를 반환합니다.",
        request=EnrollmentCancelSerializer,
        responses={
            200: EnrollmentSerializer,
            404: OpenApiExample("오류 예시", value={"reason": "enrollment-not-found", "message": "..."}),
        },
        tags=["Enrollment"],
    )
    def delete(self, request, enrollment_id):
        """수강 신청을 취소.

        Args:
            request (Request): 요청 객체. 본문에 선택적으로 reason(취소 사유) 포함.
            enrollment_id (int): 취소할 수강 신청의 식별자.

        Returns:
            Response: 취소된 수강 신청 정보.
        """
        caller = resolve_caller(request.user)

        serializer = EnrollmentCancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        enrollment = self.service.cancel(
            enrollment_id, reason_text=serializer.validated_data.get("reason"), caller=caller
        )
        return Response(EnrollmentSerializer(enrollment).data, status=status.HTTP_200_OK)


class EnrollmentStatsView(EnrollmentServiceMixin, APIView):
    """수강 신청 통계 API.

    강사는 자신이 담당한 워크숍의 통계만 조회됨.
    """

    @extend_schema(
        summary="수강 신청 통계",
        parameters=[EnrollmentStatsQuerySerializer],
        responses={200: OpenApiResponse(description="상태별, 기간별 수강 신청 수")},
        tags=["Enrollment"],
    )
    def get(self, request):
        caller = require_role(resolve_caller(request.user), Role.ADMIN, Role.INSTRUCTOR)

        query = EnrollmentStatsQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        if not caller.is_admin and caller.instructor_id is None:
            raise PermissionDenied("강사 프로필이 없습니다.")

        instructor_id = None if caller.is_admin else caller.instructor_id
        data = self.service.stats(workshop_id=query.validated_data.get("workshop"), instructor_id=instructor_id)
        return Response(data, status=status.HTTP_200_OK)


class EnrollmentReportView(EnrollmentServiceMixin, APIView):
    """워크숍별 수강 현황 리포트 API (관리자 전용)"""

    @extend_schema(
        summary="워크숍별 수강 현황",
        description="활성 워크숍별 최대 인원, 수강 인원, 취소 수, 잔여 좌석, 점유율을 조회합니다.",
        responses={200: OpenApiResponse(description="워크숍별 리포트 목록")},
        tags=["Enrollment"],
    )
    def get(self, request):
        require_role(resolve_caller(request.user), Role.ADMIN)
        return Response(self.service.report_by_workshop(), status=status.HTTP_200_OK)
