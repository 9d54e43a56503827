from datetime import timedelta

from .base import *

DEBUG = False

REFRESH_TOKEN_COOKIE_SECURE = False

ALLOWED_HOSTS = ["testserver", "localhost"]

# DB_HOST가 있으면 base의 PostgreSQL 설정을 그대로 사용.
# 없으면 파일 기반 SQLite를 사용하며, 트랜잭션을 BEGIN IMMEDIATE로 시작해서
# 동시 수강 신청 트랜잭션이 쓰기 잠금 순서대로 직렬화되도록 함 (여러 스레드가 같은 파일 DB를 공유)
if not os.getenv("DB_HOST"):
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": BASE_DIR / "test.sqlite3",
            "OPTIONS": {
                "transaction_mode": "IMMEDIATE",
                "timeout": 30,
            },
            "TEST": {
                "NAME": BASE_DIR / "test_workshops.sqlite3",
            },
        }
    }

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

SIMPLE_JWT = {
    "AUTH_HEADER_TYPES": ("Bearer",),
    "ACCESS_TOKEN_LIFETIME": timedelta(minutes=5),
    "REFRESH_TOKEN_LIFETIME": timedelta(days=1),
    "ROTATE_REFRESH_TOKENS": True,
    "BLACKLIST_AFTER_ROTATION": True,
    "ALGORITHM": "HS256",
    "SIGNING_KEY": SECRET_KEY,
}

LOGGING["loggers"]["apps"]["level"] = "WARNING"
