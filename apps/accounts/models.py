"""
Accounts models.

The user keeps Django's username/password machinery and adds:
 - optional unique email (stored as NULL when blank so several users may omit it)
 - display name
 - role (USER / ADMIN) used by the admin-only content endpoints
"""
from django.contrib.auth.models import AbstractUser, UserManager as DjangoUserManager
from django.db import models


class UserManager(DjangoUserManager):
    use_in_migrations = True

    def admins(self):
        return self.filter(models.Q(role=User.Role.ADMIN) | models.Q(is_superuser=True))


class User(AbstractUser):
    class Role(models.TextChoices):
        USER = "USER", "User"
        ADMIN = "ADMIN", "Admin"

    email = models.EmailField(unique=True, blank=True, null=True)
    name = models.CharField(max_length=200, blank=True)
    role = models.CharField(max_length=16, choices=Role.choices, default=Role.USER, db_index=True)

    objects = UserManager()

    class Meta:
        verbose_name = "User"
        verbose_name_plural = "Users"

    def __str__(self) -> str:
        return self.username or f"User {self.pk}"

    def save(self, *args, **kwargs):
        # blank emails must not collide on the unique index
        if not self.email:
            self.email = None
        super().save(*args, **kwargs)

    @property
    def is_admin(self) -> bool:
        return self.role == self.Role.ADMIN or self.is_superuser

    @property
    def display_name(self) -> str:
        return self.name or self.username
