import logging
from typing import Optional, Tuple

from django.db import IntegrityError, transaction

from common.exceptions import ValidationError
from .models import User

logger = logging.getLogger(__name__)


@transaction.atomic
def register_user(username: str, password: str, email: Optional[str] = None, name: str = "") -> User:
    """Create a regular user. Duplicate username or email is a ValidationError."""
    username = (username or "").strip()
    email = (email or "").strip() or None
    if not username:
        raise ValidationError("Username is required.")
    if not password:
        raise ValidationError("Password is required.")
    if User.objects.filter(username__iexact=username).exists():
        raise ValidationError("Username is already taken.")
    if email and User.objects.filter(email__iexact=email).exists():
        raise ValidationError("Email is already in use.")

    try:
        with transaction.atomic():
            user = User.objects.create_user(
                username=username, email=email, password=password, name=name or "", role=User.Role.USER,
            )
    except IntegrityError as e:
        # lost a race against a concurrent registration
        raise ValidationError("Username or email is already in use.") from e

    logger.info("Registered user %s (id=%s)", user.username, user.pk)
    return user


@transaction.atomic
def ensure_admin(username: str, password: str, email: Optional[str] = None, name: str = "") -> Tuple[User, str]:
    """
    Create the bootstrap administrator or repair its role/password.
    Returns (user, outcome) where outcome is "created", "updated" or "unchanged".
    """
    if not username or not password:
        raise ValidationError("Admin username and password must be configured.")

    user = User.objects.select_for_update().filter(username=username).first()
    if user is None:
        user = User.objects.create_user(
            username=username,
            email=email or None,
            password=password,
            name=name or f"{username} Admin",
            role=User.Role.ADMIN,
            is_staff=True,
        )
        logger.info("Admin user %s created", username)
        return user, "created"

    update_fields = []
    if user.role != User.Role.ADMIN:
        user.role = User.Role.ADMIN
        update_fields.append("role")
    if not user.is_staff:
        user.is_staff = True
        update_fields.append("is_staff")
    if not user.check_password(password):
        user.set_password(password)
        update_fields.append("password")

    if not update_fields:
        logger.info("Admin user %s already configured", username)
        return user, "unchanged"

    user.save(update_fields=update_fields)
    logger.info("Admin user %s updated (%s)", username, ", ".join(update_fields))
    return user, "updated"
