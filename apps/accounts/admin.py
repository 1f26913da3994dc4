from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as DjangoUserAdmin

from .models import User


@admin.register(User)
class UserAdmin(DjangoUserAdmin):
    list_display = ("id", "username", "email", "name", "role", "is_staff", "date_joined")
    search_fields = ("username", "email", "name")
    list_filter = ("role", "is_staff", "is_active")
    ordering = ("-date_joined",)
    fieldsets = DjangoUserAdmin.fieldsets + (
        ("Site role", {"fields": ("name", "role")}),
    )

    actions = ["promote_to_admin", "demote_to_user"]

    def promote_to_admin(self, request, queryset):
        updated = queryset.update(role=User.Role.ADMIN)
        self.message_user(request, f"{updated} users promoted to admin.")
    promote_to_admin.short_description = "Promote selected users to admin"

    def demote_to_user(self, request, queryset):
        updated = queryset.exclude(is_superuser=True).update(role=User.Role.USER)
        self.message_user(request, f"{updated} users demoted to regular users.")
    demote_to_user.short_description = "Demote selected users to regular users"
