from dataclasses import dataclass

from rest_framework.exceptions import NotAuthenticated, PermissionDenied

from apps.common.exceptions import ProfileNotFound
from apps.users.models import Role


@dataclass(frozen=True)
class Caller:
    """요청한 사용자의 신원 정보.

    인증 이후 한 번 만들어져 각 작업의 권한 확인 함수에 명시적으로 전달됨.

    Attributes:
        user_id: 계정 식별자.
        role: 사용자 역할 (student, instructor, admin).
        student_id: 학생 프로필 식별자 (없으면 None).
        instructor_id: 강사 프로필 식별자 (없으면 None).
    """

    user_id: int
    role: str
    student_id: int = None
    instructor_id: int = None

    @property
    def is_admin(self):
        return self.role == Role.ADMIN


def resolve_caller(user):
    """인증된 User로부터 Caller를 생성. 비로그인 사용자는 None"""
    if user is None or not user.is_authenticated:
        return None
    # 역방향 OneToOne이 없으면 RelatedObjectDoesNotExist(AttributeError)가 발생
    student = getattr(user, "student", None)
    instructor = getattr(user, "instructor", None)
    return Caller(
        user_id=user.pk,
        role=user.role,
        student_id=student.pk if student else None,
        instructor_id=instructor.pk if instructor else None,
    )


def require_authenticated(caller):
    if caller is None:
        raise NotAuthenticated("로그인이 필요합니다.")
    return caller


def require_role(caller, *roles):
    """caller의 역할이 roles 중 하나인지 확인.

    Raises:
        NotAuthenticated: 로그인하지 않은 경우.
        PermissionDenied: 허용되지 않은 역할인 경우.
    """
    require_authenticated(caller)
    if caller.role not in roles:
        raise PermissionDenied(f"이 작업을 수행할 권한이 없습니다. 필요한 역할: {' 또는 '.join(roles)}")
    return caller


def require_student_profile(caller):
    """학생 역할이면서 학생 프로필이 있는지 확인하고 프로필 id를 반환"""
    require_role(caller, Role.STUDENT)
    if caller.student_id is None:
        raise ProfileNotFound()
    return caller.student_id


def require_owner_or_admin(caller, student_id):
    """본인의 데이터이거나 관리자인지 확인"""
    require_authenticated(caller)
    if caller.is_admin:
        return caller
    if caller.student_id is not None and caller.student_id == student_id:
        return caller
    raise PermissionDenied("본인의 정보만 접근할 수 있습니다.")


def require_workshop_manager(caller, workshop):
    """관리자이거나 워크숍에 배정된 강사인지 확인"""
    require_role(caller, Role.ADMIN, Role.INSTRUCTOR)
    if caller.is_admin:
        return caller
    if caller.instructor_id is not None and workshop.instructor_id == caller.instructor_id:
        return caller
    raise PermissionDenied("배정된 워크숍만 관리할 수 있습니다.")
