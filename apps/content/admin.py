from django.contrib import admin
from . import models


class CommentInline(admin.TabularInline):
    model = models.Comment
    fields = ("user_name", "text", "posted_at")
    readonly_fields = ("posted_at",)
    extra = 0


@admin.register(models.Content)
class ContentAdmin(admin.ModelAdmin):
    list_display = ("id", "title", "media_type", "like_count", "view_count", "uploaded_by", "uploaded_at")
    search_fields = ("title", "tags", "description")
    list_filter = ("media_type",)
    # counters belong to the interaction service
    readonly_fields = ("like_count", "view_count", "uploaded_at", "updated_at")
    inlines = (CommentInline,)


@admin.register(models.Comment)
class CommentAdmin(admin.ModelAdmin):
    list_display = ("id", "content", "user_name", "posted_at")
    search_fields = ("text", "user_name", "content__title")


@admin.register(models.Like)
class LikeAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "content", "created_at")
    search_fields = ("user__username", "content__title")

    # rows only change through toggle_like so like_count stays in step
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
