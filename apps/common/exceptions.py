import logging

from django.core.exceptions import PermissionDenied as DjangoPermissionDenied
from django.db import DatabaseError
from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.exceptions import APIException
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class ServiceError(APIException):
    """서비스 계층에서 발생하는 예외의 기본 클래스.

    default_code는 클라이언트가 분기할 수 있는 고정된 reason 코드로 사용.
    """

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "잘못된 요청입니다."
    default_code = "invalid"

    @property
    def reason(self):
        return self.default_code


class ValidationFailed(ServiceError):
    default_detail = "입력값이 올바르지 않습니다."
    default_code = "invalid"


# -----------------------------------------------------------------------------------------------------------------------
# 404
# -----------------------------------------------------------------------------------------------------------------------


class ResourceNotFound(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "요청한 정보를 찾을 수 없습니다."
    default_code = "not-found"


class WorkshopNotFound(ResourceNotFound):
    default_detail = "워크숍이 존재하지 않거나 비활성화 상태입니다."
    default_code = "workshop-not-found-or-inactive"


class EnrollmentNotFound(ResourceNotFound):
    default_detail = "수강 신청 내역이 없거나 이미 취소되었습니다."
    default_code = "enrollment-not-found"


class ProfileNotFound(ResourceNotFound):
    default_detail = "학생 프로필을 찾을 수 없습니다."
    default_code = "profile-not-found"


# -----------------------------------------------------------------------------------------------------------------------
# 비즈니스 규칙 위반 (400)
# -----------------------------------------------------------------------------------------------------------------------


class Conflict(ServiceError):
    default_detail = "요청을 처리할 수 없는 상태입니다."
    default_code = "conflict"


class AlreadyEnrolled(Conflict):
    default_detail = "이미 다른 워크숍에 수강 신청이 되어 있습니다."
    default_code = "already-enrolled"


class WorkshopFull(Conflict):
    default_detail = "워크숍의 잔여 좌석이 없습니다."
    default_code = "full"


class WorkshopHasActiveEnrollments(Conflict):
    default_detail = "수강 중인 학생이 있는 워크숍은 비활성화할 수 없습니다. 먼저 수강 신청을 취소해주세요."
    default_code = "workshop-has-active-enrollments"


class CapacityBelowEnrolled(Conflict):
    default_detail = "최대 인원은 현재 수강 인원보다 작을 수 없습니다."
    default_code = "capacity-below-enrolled"


class StoreError(ServiceError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "일시적인 오류가 발생했습니다. 잠시 후 다시 시도해주세요."
    default_code = "store-error"


def _first_message(detail):
    """중첩된 ErrorDetail 구조에서 첫 번째 메시지를 꺼냄"""
    if isinstance(detail, dict):
        for value in detail.values():
            return _first_message(value)
        return ""
    if isinstance(detail, list):
        return _first_message(detail[0]) if detail else ""
    return str(detail)


def api_exception_handler(exc, context):
    """모든 오류 응답을 {"reason", "message"} 형태로 통일하는 DRF 예외 핸들러.

    - DatabaseError는 StoreError로 변환하고 전체 컨텍스트와 함께 로그를 남김.
    - 필드 검증 오류는 errors 키에 원본 구조를 함께 반환.

    Args:
        exc (Exception): 발생한 예외.
        context (dict): DRF가 전달하는 view, request 정보.

    Returns:
        Response | None: DRF가 처리할 수 없는 예외라면 None.
    """
    if isinstance(exc, DatabaseError):
        view = context.get("view")
        logger.exception("store failure in %s", view.__class__.__name__ if view else "unknown view", exc_info=exc)
        exc = StoreError()
    elif isinstance(exc, StoreError):
        logger.error("store failure: %s", exc.__cause__ or exc, exc_info=exc.__cause__ or exc)
    elif isinstance(exc, Http404):
        exc = exceptions.NotFound()
    elif isinstance(exc, DjangoPermissionDenied):
        exc = exceptions.PermissionDenied()

    response = exception_handler(exc, context)
    if response is None:
        return None

    if isinstance(exc, ServiceError):
        response.data = {"reason": exc.reason, "message": str(exc.detail)}
    elif isinstance(exc, exceptions.ValidationError):
        response.data = {"reason": "invalid", "message": _first_message(exc.detail), "errors": exc.detail}
    else:
        codes = exc.get_codes() if isinstance(exc, APIException) else None
        reason = codes if isinstance(codes, str) else getattr(exc, "default_code", "error")
        response.data = {"reason": reason, "message": _first_message(response.data.get("detail", response.data))}

    return response
