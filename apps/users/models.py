from django.contrib.auth.base_user import BaseUserManager
from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from apps.common.models import BaseModel


class Role(models.TextChoices):
    STUDENT = "student", "Student"
    INSTRUCTOR = "instructor", "Instructor"
    ADMIN = "admin", "Admin"


class UserManager(BaseUserManager):
    def active_user(self):
        return self.filter(is_active=True)

    def by_role(self, role):
        return self.filter(role=role, is_active=True)

    def create_user(self, email, password, **extra_fields):
        if not email:
            raise ValueError("이메일 주소는 필수입니다.")
        if not password:
            raise ValueError("비밀번호는 필수입니다.")
        email = self.normalize_email(email)  # 이메일 정규화
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password, **extra_fields):
        extra_fields.setdefault("role", Role.ADMIN)
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        return self.create_user(email, password, **extra_fields)


class User(BaseModel, AbstractBaseUser, PermissionsMixin):
    email = models.EmailField(unique=True)
    name = models.CharField(max_length=50)
    role = models.CharField(max_length=20, choices=Role.choices, default=Role.STUDENT)
    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)
    is_superuser = models.BooleanField(default=False)

    # 로그인 시 username이 아니라 email로 로그인하게 됨(식별자가 email)
    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = ["name"]

    objects = UserManager()

    class Meta:
        db_table = "user"

    def __str__(self):
        return self.email


class Student(BaseModel):
    """학생 프로필.

    계정과 1:1로 연결되며 학교에서 부여한 학번(control_number)은 유일함.
    """

    user = models.OneToOneField(User, on_delete=models.CASCADE)
    first_name = models.CharField(max_length=50)
    last_name = models.CharField(max_length=50)
    second_last_name = models.CharField(max_length=50, blank=True, default="")
    control_number = models.CharField(max_length=20, unique=True)  # 학번
    group = models.CharField(max_length=20, blank=True, default="")  # 반
    semester = models.PositiveSmallIntegerField(
        null=True, blank=True, validators=[MinValueValidator(1), MaxValueValidator(12)]
    )
    phone = models.CharField(max_length=20, blank=True, default="")

    class Meta:
        db_table = "student"

    def __str__(self):
        return f"{self.full_name} ({self.control_number})"

    @property
    def full_name(self):
        return " ".join(part for part in (self.first_name, self.last_name, self.second_last_name) if part)


class Instructor(BaseModel):
    user = models.OneToOneField(User, on_delete=models.CASCADE)
    specialty = models.CharField(max_length=100, blank=True, default="")
    experience = models.CharField(max_length=1000, null=True, blank=True)
    phone = models.CharField(max_length=20, blank=True, default="")

    class Meta:
        db_table = "instructor"

    def __str__(self):
        return f"{self.user.name}"
