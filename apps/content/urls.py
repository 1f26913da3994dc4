# content/urls.py
from django.urls import path
from . import views

urlpatterns = [
    path("", views.DashboardView.as_view(), name="home"),
    path("dashboard/", views.DashboardView.as_view(), name="dashboard"),
    path("view/<int:pk>/", views.ContentDetailView.as_view(), name="content-view"),
    path("like/<int:pk>/", views.LikeToggleView.as_view(), name="content-like"),
    path("comment/<int:pk>/", views.CommentCreateView.as_view(), name="content-comment"),

    path("upload/", views.ContentUploadView.as_view(), name="content-upload"),
    path("admin/dashboard/", views.AdminDashboardView.as_view(), name="admin-dashboard"),
    path("admin/edit/<int:pk>/", views.ContentEditView.as_view(), name="admin-edit"),
    path("admin/update/", views.ContentUpdateView.as_view(), name="admin-update"),
    path("admin/delete/<int:pk>/", views.ContentDeleteView.as_view(), name="admin-delete"),
]
