import re

from django.utils import timezone

from apps.common.exceptions import ValidationFailed

_TAG_CHARS = re.compile(r"[<>]")
_JS_SCHEME = re.compile(r"javascript:", re.IGNORECASE)
_INLINE_HANDLER = re.compile(r"on\w+=", re.IGNORECASE)


def sanitize_text(value):
    """문자열에서 <, >, javascript:, onXXX= 핸들러를 제거 (XSS 방지)"""
    if not isinstance(value, str):
        return value
    value = _TAG_CHARS.sub("", value)
    value = _JS_SCHEME.sub("", value)
    value = _INLINE_HANDLER.sub("", value)
    return value.strip()


def build_patch(data, allowed_fields):
    """요청 데이터에서 수정 가능한 필드만 골라 patch(dict)를 생성.

    값이 None인 필드도 "명시적으로 비움"으로 간주해서 포함.

    Args:
        data (dict): 검증이 끝난 요청 데이터.
        allowed_fields (Iterable[str]): 수정을 허용하는 필드 이름 목록.

    Returns:
        dict: {필드 이름: 새 값}

    Raises:
        ValidationFailed: 수정 가능한 필드가 하나도 없는 경우.
    """
    patch = {field: data[field] for field in allowed_fields if field in data}
    if not patch:
        raise ValidationFailed("수정할 수 있는 항목이 없습니다.")
    return patch


def apply_patch(queryset, patch, touch_field="updated_at"):
    """patch를 하나의 UPDATE 문으로 적용.

    값은 모두 ORM의 파라미터 바인딩으로 전달되므로 쿼리 문자열에 직접 들어가지 않음.

    Returns:
        int: 수정된 행 수.
    """
    values = dict(patch)
    if touch_field:
        values[touch_field] = timezone.now()
    return queryset.update(**values)
