# content/views.py
from django.conf import settings
from rest_framework import generics, permissions, serializers, status
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.response import Response
from rest_framework.views import APIView
from drf_spectacular.utils import extend_schema, inline_serializer, OpenApiParameter, OpenApiResponse

from apps.accounts.identity import Principal
from common.pagination import StandardResultsSetPagination, page_params, page_response
from common.permissions import IsAdminRole
from . import services
from .models import Content
from .serializers import (
    CommentCreateSerializer, CommentSerializer, ContentDetailSerializer, ContentSerializer,
    ContentUpdateSerializer, ContentUploadSerializer, LikeResponseSerializer,
)

DASHBOARD_PARAMS = [
    OpenApiParameter("page", int, description="1-based page number"),
    OpenApiParameter("pageSize", int, description="Items per page (alias: page_size)"),
    OpenApiParameter("filter", str, description="latest | most_liked (best_videos) | most_viewed"),
    OpenApiParameter("tag", str, description="Case-insensitive tag filter"),
    OpenApiParameter("keyword", str, description="Case-insensitive title/tag search"),
]

DASHBOARD_RESPONSE = inline_serializer(
    name="DashboardPage",
    fields={
        "meta": inline_serializer(
            name="DashboardPageMeta",
            fields={
                "count": serializers.IntegerField(),
                "page_size": serializers.IntegerField(),
                "current": serializers.IntegerField(),
                "total_pages": serializers.IntegerField(),
            },
        ),
        "results": ContentSerializer(many=True),
        "filter": serializers.CharField(),
        "keyword": serializers.CharField(allow_null=True),
        "tag": serializers.CharField(allow_null=True),
        "active_filter_title": serializers.CharField(),
        "liked_content_ids": serializers.ListField(child=serializers.IntegerField()),
        "is_admin": serializers.BooleanField(),
    },
)


# ---------------------------------------------------------------------
# Public dashboard & viewing
# ---------------------------------------------------------------------
@extend_schema(
    summary="Paginated dashboard",
    parameters=DASHBOARD_PARAMS,
    responses={200: DASHBOARD_RESPONSE},
    tags=["Content"],
)
class DashboardView(APIView):
    permission_classes = [permissions.AllowAny]

    def get(self, request):
        principal = Principal.from_request(request)
        params = request.query_params
        page, page_size = page_params(params)
        filter_name = params.get("filter") or services.FILTER_LATEST

        content_page, heading = services.get_dashboard_page(
            filter_name=filter_name,
            page=page,
            page_size=page_size,
            keyword=params.get("keyword"),
            tag=params.get("tag"),
        )
        data = ContentSerializer(content_page.items, many=True, context={"request": request}).data
        return page_response(
            content_page,
            data,
            filter=filter_name,
            keyword=params.get("keyword") or None,
            tag=params.get("tag") or None,
            active_filter_title=heading,
            liked_content_ids=services.get_liked_content_ids(principal),
            is_admin=principal.is_admin,
        )


@extend_schema(
    summary="View content (counts a view)",
    responses={200: ContentDetailSerializer, 404: OpenApiResponse(description="Content not found")},
    tags=["Content"],
)
class ContentDetailView(APIView):
    permission_classes = [permissions.AllowAny]

    def get(self, request, pk):
        principal = Principal.from_request(request)
        services.increment_views(pk)
        content = services.get_by_id(pk)
        context = {"request": request, "comments": services.get_comments_by_content_id(pk)}
        data = ContentDetailSerializer(content, context=context).data
        data["is_liked"] = services.is_liked_by_user(pk, principal)
        data["is_admin"] = principal.is_admin
        return Response(data)


# ---------------------------------------------------------------------
# Interactions
# ---------------------------------------------------------------------
@extend_schema(
    summary="Toggle like",
    request=None,
    responses={200: LikeResponseSerializer, 401: OpenApiResponse(description="Login required")},
    tags=["Interactions"],
)
class LikeToggleView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, pk):
        state = services.toggle_like(pk, Principal.from_request(request))
        return Response({"success": True, "newLikes": state.like_count, "isLiked": state.is_liked})


@extend_schema(
    summary="Post a comment",
    request=CommentCreateSerializer,
    responses={201: CommentSerializer},
    tags=["Interactions"],
)
class CommentCreateView(APIView):
    permission_classes = [permissions.IsAuthenticated]
    parser_classes = [JSONParser, FormParser, MultiPartParser]

    def post(self, request, pk):
        serializer = CommentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        comment = services.add_comment(pk, Principal.from_request(request), serializer.validated_data["text"])
        return Response(
            {"success": True, "message": "Comment posted successfully!", "comment": CommentSerializer(comment).data},
            status=status.HTTP_201_CREATED,
        )


# ---------------------------------------------------------------------
# Admin management
# ---------------------------------------------------------------------
class ContentUploadView(APIView):
    permission_classes = [IsAdminRole]
    parser_classes = [MultiPartParser, FormParser]

    @extend_schema(summary="Upload constraints", tags=["Admin"])
    def get(self, request):
        return Response({
            "allowed_media_types": list(settings.CONTENT_ALLOWED_MEDIA_TYPES),
            "max_upload_mb": settings.CONTENT_MAX_UPLOAD_MB,
            "is_admin": True,
        })

    @extend_schema(
        summary="Upload content",
        request={"multipart/form-data": ContentUploadSerializer},
        responses={201: ContentSerializer},
        tags=["Admin"],
    )
    def post(self, request):
        serializer = ContentUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        content = services.save_content(
            Principal.from_request(request),
            title=data["title"],
            description=data.get("description", ""),
            tags=data.get("tags", ""),
            upload=data["file"],
        )
        return Response(
            {"success": True, "message": "Content uploaded successfully!", "content": ContentSerializer(content).data},
            status=status.HTTP_201_CREATED,
        )


@extend_schema(
    summary="Admin content list",
    description="Filter by media_type, search title/tags, order by uploaded_at/like_count/view_count.",
    tags=["Admin"],
)
class AdminDashboardView(generics.ListAPIView):
    queryset = Content.objects.select_related("uploaded_by").all()
    serializer_class = ContentSerializer
    permission_classes = [IsAdminRole]
    pagination_class = StandardResultsSetPagination
    filterset_fields = ["media_type"]
    search_fields = ["title", "tags"]
    ordering_fields = ["uploaded_at", "like_count", "view_count"]
    ordering = ["-uploaded_at", "-id"]


@extend_schema(summary="Content for editing", responses={200: ContentSerializer}, tags=["Admin"])
class ContentEditView(APIView):
    permission_classes = [IsAdminRole]

    def get(self, request, pk):
        return Response(ContentSerializer(services.get_by_id(pk)).data)


@extend_schema(
    summary="Update content",
    request={"multipart/form-data": ContentUpdateSerializer},
    responses={200: ContentSerializer},
    tags=["Admin"],
)
class ContentUpdateView(APIView):
    permission_classes = [IsAdminRole]
    parser_classes = [MultiPartParser, FormParser, JSONParser]

    def post(self, request):
        serializer = ContentUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        content = services.update_content(
            Principal.from_request(request),
            data["id"],
            title=data["title"],
            description=data.get("description", ""),
            tags=data.get("tags", ""),
            upload=data.get("file"),
        )
        return Response({
            "success": True,
            "message": f"Content ID {content.pk} updated successfully!",
            "content": ContentSerializer(content).data,
        })


@extend_schema(summary="Delete content", request=None, tags=["Admin"])
class ContentDeleteView(APIView):
    permission_classes = [IsAdminRole]

    def get(self, request, pk):
        services.delete_content(Principal.from_request(request), pk)
        return Response({"success": True, "message": "Content deleted successfully!"})

    post = get
