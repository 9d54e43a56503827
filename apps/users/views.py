import logging

from django.conf import settings
from django.contrib.auth import authenticate
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken

from apps.common.utils import apply_patch, build_patch

from .models import Student, User
from .serializers import (
    LoginSerializer,
    SignupSerializer,
    UpdateProfileSerializer,
    UserSerializer,
)

logger = logging.getLogger(__name__)

REFRESH_COOKIE_NAME = "refresh_token"
REFRESH_COOKIE_MAX_AGE = 5 * 60 * 60  # 쿠키 만료 시간 5시간
ACCESS_COOKIE_NAME = "access_token"  # config.authentication.CustomJWTAuthentication이 먼저 확인하는 쿠키


def set_token_cookies(response, refresh):
    """access, refresh 토큰을 httponly 쿠키로 설정"""
    cookies = (
        (ACCESS_COOKIE_NAME, str(refresh.access_token), int(refresh.access_token.lifetime.total_seconds())),
        (REFRESH_COOKIE_NAME, str(refresh), REFRESH_COOKIE_MAX_AGE),
    )
    for name, value, max_age in cookies:
        response.set_cookie(
            name,  # 쿠키 이름
            value=value,  # 쿠키 값
            httponly=True,  # JavaScript에서 쿠키 접근을 막음
            secure=settings.REFRESH_TOKEN_COOKIE_SECURE,  # HTTPS 환경에서만 쿠키를 전송(dev[F], prod[T]로 관리)
            samesite="Lax",  # CSRF 공격 방지
            max_age=max_age,
        )
    return response


class SignUpView(APIView):
    """
    학생 회원가입 API
    """

    authentication_classes = ()
    permission_classes = (AllowAny,)

    @extend_schema(
        summary="회원가입",
        description="회원정보와 학생 프로필을 입력받아 새 학생 계정을 생성",
        request=SignupSerializer,
        tags=["User"],
    )
    def post(self, request):
        serializer = SignupSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()

        logger.info("student account %s created", user.pk)
        return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED)


class LoginView(APIView):
    """
    로그인 API
    """

    authentication_classes = ()
    permission_classes = (AllowAny,)

    @extend_schema(
        summary="로그인", description="이메일과 비밀번호를 받아 로그인합니다", request=LoginSerializer, tags=["User"]
    )
    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = authenticate(
            request, email=serializer.validated_data["email"], password=serializer.validated_data["password"]
        )  # db에 유저가 있는지 검증

        if not user:
            return Response(
                {"reason": "invalid-credentials", "message": "이메일 또는 비밀번호가 올바르지 않습니다."},
                status=status.HTTP_401_UNAUTHORIZED,
            )

        refresh = RefreshToken.for_user(user)
        response = Response(
            {"access": str(refresh.access_token), "user": UserSerializer(user).data}, status=status.HTTP_200_OK
        )
        return set_token_cookies(response, refresh)


class TokenRefreshView(APIView):
    """
    refresh 토큰을 받으면 기존의 refresh token은 blacklist 처리하고
    access와 refresh token을 발급해주는 API
    """

    authentication_classes = ()
    permission_classes = (AllowAny,)

    @extend_schema(summary="토큰 재발급", description="쿠키의 refresh token으로 access token을 재발급합니다", tags=["User"])
    def post(self, request):
        refresh_token = request.COOKIES.get(REFRESH_COOKIE_NAME)
        if not refresh_token:
            return Response(
                {"reason": "token-missing", "message": "Refresh token이 제공되지 않았습니다."},
                status=status.HTTP_401_UNAUTHORIZED,
            )

        try:
            # 기존 리프레쉬 토큰 검증
            old_refresh = RefreshToken(refresh_token)
            user = User.objects.filter(id=old_refresh.payload.get("user_id"), is_active=True).first()
            if user is None:
                raise TokenError("유저 정보가 존재하지 않습니다.")

            # 기존 refresh token 블랙리스트 처리
            old_refresh.blacklist()
        except TokenError:
            return Response(
                {"reason": "token-invalid", "message": "잘못된 refresh token 입니다."},
                status=status.HTTP_403_FORBIDDEN,
            )

        new_refresh = RefreshToken.for_user(user)
        response = Response({"access": str(new_refresh.access_token)}, status=status.HTTP_200_OK)
        return set_token_cookies(response, new_refresh)


class LogoutView(APIView):
    """
    로그아웃 API
    """

    @extend_schema(
        summary="로그아웃", description="refresh token을 blacklist에 등록 후 로그아웃하는 API입니다", tags=["User"]
    )
    def post(self, request):
        refresh_token = request.COOKIES.get(REFRESH_COOKIE_NAME)
        if refresh_token:
            try:
                RefreshToken(refresh_token).blacklist()  # 로그아웃 시 refresh token을 블랙리스트에 등록
            except TokenError:
                logger.info("logout with invalid refresh token: user=%s", request.user.pk)

        response = Response({"detail": "로그아웃 되었습니다."}, status=status.HTTP_200_OK)
        response.delete_cookie(REFRESH_COOKIE_NAME)
        response.delete_cookie(ACCESS_COOKIE_NAME)
        return response


class MyinfoView(APIView):
    """
    마이 페이지 API
    """

    USER_FIELDS = ("name",)
    STUDENT_FIELDS = ("phone", "group", "semester")

    @extend_schema(
        summary="회원 정보 조회",
        description="회원 정보를 조회하는 API입니다",
        responses={200: UserSerializer},
        tags=["User"],
    )
    def get(self, request):
        return Response(UserSerializer(request.user).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="회원 정보 수정",
        description="이름과 학생 프로필(전화번호, 반, 학기)을 수정하는 API입니다",
        request=UpdateProfileSerializer,
        tags=["User"],
    )
    def patch(self, request):
        user = request.user
        serializer = UpdateProfileSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        # 학생 프로필이 없는 계정은 이름만 수정 가능
        allowed = self.USER_FIELDS + (self.STUDENT_FIELDS if hasattr(user, "student") else ())
        patch = build_patch(data, allowed)

        user_patch = {key: value for key, value in patch.items() if key in self.USER_FIELDS}
        student_patch = {key: value for key, value in patch.items() if key in self.STUDENT_FIELDS}

        if user_patch:
            apply_patch(User.objects.filter(pk=user.pk), user_patch)
        if student_patch:
            apply_patch(Student.objects.filter(user=user), student_patch)

        user = User.objects.select_related("student").get(pk=user.pk)
        return Response(UserSerializer(user).data, status=status.HTTP_200_OK)
