"""
Explicit identity context handed to service calls.

Views build a Principal from `request.user`; services never look at the
request or try to derive an id from a username.
"""
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Principal:
    user_id: Optional[int] = None
    username: Optional[str] = None
    is_admin: bool = False

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    @classmethod
    def from_user(cls, user) -> "Principal":
        if user is None or not getattr(user, "is_authenticated", False):
            return ANONYMOUS
        return cls(
            user_id=user.pk,
            username=user.get_username(),
            is_admin=bool(getattr(user, "is_admin", False) or user.is_superuser),
        )

    @classmethod
    def from_request(cls, request) -> "Principal":
        return cls.from_user(getattr(request, "user", None))


ANONYMOUS = Principal()
