"""
Content interaction service: likes, views, comments, paginated queries and
admin CRUD. Views call these functions with an explicit Principal; every
mutation runs in a transaction and counters are only changed with F()
expressions so concurrent requests never lose updates.
"""
import logging
import math
from dataclasses import dataclass, field
from typing import List, NamedTuple, Optional

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import Count, F, Q

from apps.accounts.identity import Principal
from common.exceptions import (
    AuthenticationRequired, NotFoundError, PermissionDeniedError, ValidationError,
)
from . import storage
from .models import Comment, Content, Like, split_tags

logger = logging.getLogger(__name__)

LATEST_ORDER = ("-uploaded_at", "-id")
MOST_LIKED_ORDER = ("-like_count", "-uploaded_at", "-id")
MOST_VIEWED_ORDER = ("-view_count", "-uploaded_at", "-id")

FILTER_LATEST = "latest"
FILTER_MOST_LIKED = "most_liked"
FILTER_MOST_VIEWED = "most_viewed"
FILTER_ALIASES = {
    "best_videos": FILTER_MOST_LIKED,
    "most_liked": FILTER_MOST_LIKED,
    "most_viewed": FILTER_MOST_VIEWED,
}


class LikeState(NamedTuple):
    like_count: int
    is_liked: bool


@dataclass
class ContentPage:
    items: List[Content] = field(default_factory=list)
    number: int = 1
    page_size: int = 0
    total_count: int = 0
    total_pages: int = 0

    @property
    def has_next(self) -> bool:
        return self.number < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.number > 1


# ---------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------
def _require_authenticated(principal: Principal, action: str):
    if principal is None or not principal.is_authenticated:
        raise AuthenticationRequired(f"You must be logged in to {action}.")


def _require_admin(principal: Principal):
    _require_authenticated(principal, "manage content")
    if not principal.is_admin:
        raise PermissionDeniedError("Administrator access required.")


def normalize_tags(raw) -> str:
    if isinstance(raw, (list, tuple)):
        raw = ",".join(raw)
    return ",".join(split_tags(raw))


def _paginate(queryset, page, page_size) -> ContentPage:
    """1-based page in, 0-based offset against the queryset."""
    if page is None or page < 1:
        raise ValidationError("Page numbers start at 1.")
    max_size = settings.CONTENT_MAX_PAGE_SIZE
    if page_size is None or not 1 <= page_size <= max_size:
        raise ValidationError(f"Page size must be between 1 and {max_size}.")

    total = queryset.count()
    offset = (page - 1) * page_size
    items = list(queryset[offset:offset + page_size]) if offset < total else []
    return ContentPage(
        items=items,
        number=page,
        page_size=page_size,
        total_count=total,
        total_pages=math.ceil(total / page_size) if total else 0,
    )


# ---------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------
def get_by_id(content_id) -> Content:
    try:
        return Content.objects.get(pk=content_id)
    except (Content.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"Content not found with ID: {content_id}")


def get_comments_by_content_id(content_id) -> List[Comment]:
    return list(Comment.objects.filter(content_id=content_id).order_by("-posted_at", "-id"))


# ---------------------------------------------------------------------
# Likes & views
# ---------------------------------------------------------------------
def toggle_like(content_id, principal: Principal) -> LikeState:
    """
    Like or unlike content for the principal. The ledger row and the counter
    change commit together; the content row stays locked until then.
    """
    _require_authenticated(principal, "like content")

    with transaction.atomic():
        try:
            content = Content.objects.select_for_update().get(pk=content_id)
        except (Content.DoesNotExist, ValueError, TypeError):
            raise NotFoundError(f"Content not found with ID: {content_id}")

        removed, _ = Like.objects.filter(content=content, user_id=principal.user_id).delete()
        if removed:
            Content.objects.filter(pk=content.pk, like_count__gt=0).update(like_count=F("like_count") - 1)
            is_liked = False
        else:
            is_liked = True
            try:
                with transaction.atomic():
                    Like.objects.create(content=content, user_id=principal.user_id)
            except IntegrityError:
                # a concurrent request inserted the same pair and counted it
                logger.info("Duplicate like absorbed for content=%s user=%s", content.pk, principal.user_id)
            else:
                Content.objects.filter(pk=content.pk).update(like_count=F("like_count") + 1)

        content.refresh_from_db(fields=["like_count"])

    logger.info(
        "Like toggled content=%s user=%s liked=%s count=%s",
        content.pk, principal.user_id, is_liked, content.like_count,
    )
    return LikeState(like_count=content.like_count, is_liked=is_liked)


def increment_views(content_id) -> None:
    try:
        updated = Content.objects.filter(pk=content_id).update(view_count=F("view_count") + 1)
    except (ValueError, TypeError):
        updated = 0
    if not updated:
        raise NotFoundError(f"Content not found with ID: {content_id}")


def is_liked_by_user(content_id, principal: Principal) -> bool:
    if principal is None or not principal.is_authenticated:
        return False
    return Like.objects.filter(content_id=content_id, user_id=principal.user_id).exists()


def get_liked_content_ids(principal: Principal) -> List[int]:
    if principal is None or not principal.is_authenticated:
        return []
    return list(
        Like.objects.filter(user_id=principal.user_id).order_by("content_id").values_list("content_id", flat=True)
    )


# ---------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------
@transaction.atomic
def add_comment(content_id, principal: Principal, text: str) -> Comment:
    _require_authenticated(principal, "comment")
    text = (text or "").strip()
    if not text:
        raise ValidationError("Comment cannot be empty.")
    if len(text) > Comment.MAX_LENGTH:
        raise ValidationError(f"Comment cannot exceed {Comment.MAX_LENGTH} characters.")

    content = get_by_id(content_id)
    comment = Comment.objects.create(
        content=content,
        author_id=principal.user_id,
        user_name=principal.username,
        text=text,
    )
    logger.info("Comment %s added to content=%s by %s", comment.pk, content.pk, principal.username)
    return comment


# ---------------------------------------------------------------------
# Paginated retrieval
# ---------------------------------------------------------------------
def get_paginated(keyword: Optional[str], page: int, page_size: int) -> ContentPage:
    """Latest first; keyword matches title or tags, case-insensitive."""
    qs = Content.objects.all()
    keyword = (keyword or "").strip()
    if keyword:
        qs = qs.filter(Q(title__icontains=keyword) | Q(tags__icontains=keyword))
    return _paginate(qs.order_by(*LATEST_ORDER), page, page_size)


def get_most_liked(page: int, page_size: int) -> ContentPage:
    return _paginate(Content.objects.order_by(*MOST_LIKED_ORDER), page, page_size)


def get_most_viewed(page: int, page_size: int) -> ContentPage:
    return _paginate(Content.objects.order_by(*MOST_VIEWED_ORDER), page, page_size)


def get_by_tag(tag: str, page: int, page_size: int) -> ContentPage:
    tag = (tag or "").strip()
    if not tag:
        raise ValidationError("A tag is required.")
    qs = Content.objects.filter(tags__icontains=tag).order_by(*LATEST_ORDER)
    return _paginate(qs, page, page_size)


def get_dashboard_page(filter_name=None, page=1, page_size=None, keyword=None, tag=None):
    """
    Dashboard dispatch: explicit sort filters win, then tag, then keyword, then latest.
    Returns (ContentPage, heading).
    """
    if page_size is None:
        page_size = settings.CONTENT_PAGE_SIZE
    mode = FILTER_ALIASES.get((filter_name or FILTER_LATEST).strip().lower(), FILTER_LATEST)
    tag = (tag or "").strip()
    keyword = (keyword or "").strip()

    if mode == FILTER_MOST_LIKED:
        return get_most_liked(page, page_size), "Most Liked"
    if mode == FILTER_MOST_VIEWED:
        return get_most_viewed(page, page_size), "Most Viewed"
    if tag:
        return get_by_tag(tag, page, page_size), f"Tag: {tag}"
    if keyword:
        return get_paginated(keyword, page, page_size), f"Search: {keyword}"
    return get_paginated(None, page, page_size), "Latest Content"


# ---------------------------------------------------------------------
# Admin CRUD
# ---------------------------------------------------------------------
def _clean_title(title):
    title = (title or "").strip()
    if not title:
        raise ValidationError("Title is required.")
    return title


@transaction.atomic
def save_content(principal: Principal, title, description, tags, upload) -> Content:
    _require_admin(principal)
    title = _clean_title(title)
    media_type = storage.validate_upload(upload)
    url = storage.upload_file(upload)

    content = Content.objects.create(
        title=title,
        description=(description or "").strip(),
        tags=normalize_tags(tags),
        media_url=url,
        media_type=media_type,
        uploaded_by_id=principal.user_id,
    )
    logger.info("Content %s uploaded by %s (%s)", content.pk, principal.username, media_type)
    return content


@transaction.atomic
def update_content(principal: Principal, content_id, title, description, tags, upload=None) -> Content:
    _require_admin(principal)
    try:
        content = Content.objects.select_for_update().get(pk=content_id)
    except (Content.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"Content not found with ID: {content_id}")

    content.title = _clean_title(title)
    content.description = (description or "").strip()
    content.tags = normalize_tags(tags)
    update_fields = ["title", "description", "tags", "updated_at"]

    if upload is not None:
        content.media_type = storage.validate_upload(upload)
        content.media_url = storage.upload_file(upload)
        update_fields += ["media_type", "media_url"]

    content.save(update_fields=update_fields)
    logger.info("Content %s updated by %s", content.pk, principal.username)
    return content


@transaction.atomic
def delete_content(principal: Principal, content_id) -> None:
    _require_admin(principal)
    content = get_by_id(content_id)
    content.delete()
    logger.info("Content %s deleted by %s", content_id, principal.username)


# ---------------------------------------------------------------------
# Maintenance
# ---------------------------------------------------------------------
def reconcile_like_counts(content_ids=None) -> int:
    """
    Recompute like_count from the Like ledger; returns how many rows were corrected.
    """
    qs = Content.objects.annotate(ledger_likes=Count("likes"))
    if content_ids is not None:
        qs = qs.filter(pk__in=content_ids)

    corrected = 0
    for row in qs.exclude(like_count=F("ledger_likes")).values("pk", "like_count", "ledger_likes"):
        with transaction.atomic():
            content = Content.objects.select_for_update().get(pk=row["pk"])
            actual = Like.objects.filter(content_id=content.pk).count()
            if content.like_count == actual:
                continue
            Content.objects.filter(pk=content.pk).update(like_count=actual)
        corrected += 1
        logger.warning("like_count drift on content=%s: stored=%s ledger=%s", content.pk, content.like_count, actual)
    return corrected
