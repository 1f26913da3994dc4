# content/models.py
from django.conf import settings
from django.db import models
from django.utils import timezone

USER = settings.AUTH_USER_MODEL


def split_tags(raw):
    """Comma-delimited tag string -> list of stripped, non-empty tags (first spelling wins)."""
    seen = set()
    tags = []
    for part in (raw or "").split(","):
        tag = part.strip()
        if tag and tag.lower() not in seen:
            seen.add(tag.lower())
            tags.append(tag)
    return tags


class Content(models.Model):
    """
    An uploaded image or video.
    like_count is denormalised from the Like ledger and only changed by the service layer.
    """
    IMAGE = "image"
    VIDEO = "video"
    OTHER = "other"
    UNKNOWN = "unknown"
    MEDIA_TYPES = [
        (IMAGE, "Image"),
        (VIDEO, "Video"),
        (OTHER, "Other"),
        (UNKNOWN, "Unknown"),
    ]

    title = models.CharField(max_length=255)
    description = models.CharField(max_length=500, blank=True)
    media_url = models.CharField(max_length=1024)  # public URL returned by blob storage
    media_type = models.CharField(max_length=50, choices=MEDIA_TYPES, default=UNKNOWN)
    tags = models.CharField(max_length=255, blank=True, help_text="Comma separated")
    like_count = models.PositiveIntegerField(default=0)
    view_count = models.PositiveIntegerField(default=0)
    uploaded_by = models.ForeignKey(USER, related_name="uploads", on_delete=models.SET_NULL, null=True, blank=True)
    uploaded_at = models.DateTimeField(default=timezone.now, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-uploaded_at", "-id"]
        indexes = [
            models.Index(fields=["like_count"], name="content_like_count_idx"),
            models.Index(fields=["view_count"], name="content_view_count_idx"),
        ]

    def __str__(self):
        return f"{self.title} ({self.id})"

    @property
    def tag_list(self):
        return split_tags(self.tags)


class Like(models.Model):
    user = models.ForeignKey(USER, related_name="likes", on_delete=models.CASCADE)
    content = models.ForeignKey(Content, related_name="likes", on_delete=models.CASCADE)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["user", "content"], name="unique_like_per_user_content"),
        ]
        indexes = [
            models.Index(fields=["user", "created_at"], name="like_user_created_idx"),
        ]

    def __str__(self):
        return f"Like(user={self.user_id}, content={self.content_id})"


class Comment(models.Model):
    MAX_LENGTH = 500

    content = models.ForeignKey(Content, related_name="comments", on_delete=models.CASCADE)
    author = models.ForeignKey(USER, related_name="comments", on_delete=models.SET_NULL, null=True, blank=True)
    user_name = models.CharField(max_length=150)
    text = models.CharField(max_length=MAX_LENGTH)
    posted_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        ordering = ["-posted_at", "-id"]

    def __str__(self):
        return f"Comment({self.id}) by {self.user_name}"
