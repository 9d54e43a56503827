from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.common.permissions import (
    require_role,
    require_student_profile,
    require_workshop_manager,
    resolve_caller,
)
from apps.users.models import Role

from . import services
from .serializers import (
    RosterEntrySerializer,
    RosterQuerySerializer,
    WorkshopListQuerySerializer,
    WorkshopSerializer,
    WorkshopWriteSerializer,
)


class PublicReadMixin:
    """GET 요청은 인증 없이 허용하고 나머지 메서드는 기본 인증/권한을 적용"""

    def get_authenticators(self):
        if not hasattr(self, "request") or self.request is None:
            return super().get_authenticators()
        if self.request.method == "GET":
            return []  # GET 요청은 인증하지 않음
        return super().get_authenticators()

    def get_permissions(self):
        if self.request.method == "GET":
            return [AllowAny()]  # GET 요청은 모든 사용자 허용
        return super().get_permissions()


class WorkshopListView(PublicReadMixin, APIView):
    """워크숍 목록 조회 및 생성 API.

    GET 요청은 활성 워크숍 목록을 조회하며, POST 요청은 관리자가 워크숍을 생성.
    """

    @extend_schema(
        summary="워크숍 목록 조회",
        description=(
            "워크숍 목록을 카테고리, 검색어, 활성 여부(기본값 활성, null이면 전체)로 조회합니다. "
            "각 워크숍의 잔여 좌석이 포함됩니다."
        ),
        parameters=[WorkshopListQuerySerializer],
        responses={200: WorkshopSerializer(many=True)},
        tags=["Workshop"],
    )
    def get(self, request):
        query = WorkshopListQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        params = query.validated_data

        workshops = services.list_workshops(
            category=params.get("category"),
            search=params.get("search"),
            is_active=params["is_active"],
            limit=params["limit"],
            offset=params["offset"],
        )
        return Response(WorkshopSerializer(workshops, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="워크숍 생성",
        description="관리자가 새 워크숍을 생성합니다.",
        request=WorkshopWriteSerializer,
        responses={201: WorkshopSerializer},
        tags=["Workshop"],
    )
    def post(self, request):
        require_role(resolve_caller(request.user), Role.ADMIN)

        serializer = WorkshopWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        workshop = services.create_workshop(serializer.validated_data)
        return Response(WorkshopSerializer(workshop).data, status=status.HTTP_201_CREATED)


class WorkshopDetailView(PublicReadMixin, APIView):
    """워크숍 상세 조회, 수정, 비활성화 API"""

    @extend_schema(
        summary="워크숍 상세 조회",
        responses={200: WorkshopSerializer, 404: OpenApiResponse(description="워크숍 없음")},
        tags=["Workshop"],
    )
    def get(self, request, workshop_id):
        workshop = services.get_workshop(workshop_id)
        return Response(WorkshopSerializer(workshop).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="워크숍 수정",
        description=(
            "워크숍 정보를 부분 수정합니다. 관리자는 모든 항목을, 배정된 강사는 설명, 일정, 장소만 수정할 수 있습니다. "
            "최대 인원은 현재 수강 인원보다 작게 바꿀 수 없습니다."
        ),
        request=WorkshopWriteSerializer,
        responses={200: WorkshopSerializer},
        tags=["Workshop"],
    )
    def patch(self, request, workshop_id):
        caller = resolve_caller(request.user)
        workshop = services.get_workshop(workshop_id)
        require_workshop_manager(caller, workshop)

        serializer = WorkshopWriteSerializer(workshop, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        allowed_fields = services.PATCHABLE_FIELDS if caller.is_admin else services.INSTRUCTOR_PATCHABLE_FIELDS
        workshop = services.update_workshop(workshop_id, serializer.validated_data, allowed_fields=allowed_fields)
        return Response(WorkshopSerializer(workshop).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="워크숍 비활성화",
        description="워크숍을 비활성화합니다. 수강 중인 학생이 있으면 비활성화할 수 없습니다.",
        responses={200: WorkshopSerializer},
        tags=["Workshop"],
    )
    def delete(self, request, workshop_id):
        require_role(resolve_caller(request.user), Role.ADMIN)

        workshop = services.deactivate_workshop(workshop_id)
        return Response(WorkshopSerializer(workshop).data, status=status.HTTP_200_OK)


# -----------------------------------------------------------------------------------------------------------------------
# -----------------------------------------------------------------------------------------------------------------------


class AvailableWorkshopListView(APIView):
    """신청 가능한 워크숍 목록 API (학생 전용)"""

    @extend_schema(
        summary="신청 가능한 워크숍 조회",
        description="잔여 좌석이 있고 아직 신청하지 않은 활성 워크숍 목록을 조회합니다.",
        responses={200: WorkshopSerializer(many=True)},
        tags=["Workshop"],
    )
    def get(self, request):
        student_id = require_student_profile(resolve_caller(request.user))

        workshops = services.available_for_student(student_id)
        return Response(WorkshopSerializer(workshops, many=True).data, status=status.HTTP_200_OK)


class WorkshopRosterView(APIView):
    """워크숍 수강생 명단 API.

    관리자 또는 워크숍에 배정된 강사만 조회 가능.
    """

    @extend_schema(
        summary="워크숍 수강생 명단",
        parameters=[RosterQuerySerializer],
        responses={200: RosterEntrySerializer(many=True)},
        tags=["Workshop"],
    )
    def get(self, request, workshop_id):
        caller = resolve_caller(request.user)
        workshop = services.get_workshop(workshop_id)
        require_workshop_manager(caller, workshop)

        query = RosterQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        params = query.validated_data

        entries = services.roster(
            workshop_id, search=params.get("search"), limit=params["limit"], offset=params["offset"]
        )
        return Response(RosterEntrySerializer(entries, many=True).data, status=status.HTTP_200_OK)


class WorkshopStatsView(APIView):
    """워크숍 통계 API (관리자, 강사)"""

    @extend_schema(
        summary="워크숍 통계",
        responses={200: OpenApiResponse(description="전체, 카테고리별 워크숍 통계")},
        tags=["Workshop"],
    )
    def get(self, request):
        require_role(resolve_caller(request.user), Role.ADMIN, Role.INSTRUCTOR)
        return Response(services.stats(), status=status.HTTP_200_OK)
