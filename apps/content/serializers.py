# content/serializers.py
from rest_framework import serializers
from .models import Content, Comment


class ContentSerializer(serializers.ModelSerializer):
    tag_list = serializers.ListField(child=serializers.CharField(), read_only=True)
    uploaded_by = serializers.StringRelatedField()

    class Meta:
        model = Content
        fields = (
            "id", "title", "description", "media_url", "media_type", "tags", "tag_list",
            "like_count", "view_count", "uploaded_by", "uploaded_at", "updated_at",
        )
        read_only_fields = fields


class CommentSerializer(serializers.ModelSerializer):
    class Meta:
        model = Comment
        fields = ("id", "content", "user_name", "text", "posted_at")
        read_only_fields = fields


class ContentDetailSerializer(ContentSerializer):
    comments = serializers.SerializerMethodField()

    class Meta(ContentSerializer.Meta):
        fields = ContentSerializer.Meta.fields + ("comments",)
        read_only_fields = fields

    def get_comments(self, obj):
        comments = self.context.get("comments")
        if comments is None:
            comments = obj.comments.all()
        return CommentSerializer(comments, many=True).data


class CommentCreateSerializer(serializers.Serializer):
    # the HTML form posts `comment`; API clients may send `text`
    comment = serializers.CharField(required=False, allow_blank=True, trim_whitespace=True)
    text = serializers.CharField(required=False, allow_blank=True, trim_whitespace=True)

    def validate(self, attrs):
        value = attrs.get("comment") or attrs.get("text") or ""
        if not value:
            raise serializers.ValidationError({"comment": ["Comment cannot be empty."]})
        return {"text": value}


class ContentUploadSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=255)
    description = serializers.CharField(max_length=500, required=False, allow_blank=True, default="")
    tags = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    file = serializers.FileField(allow_empty_file=True)


class ContentUpdateSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    title = serializers.CharField(max_length=255)
    description = serializers.CharField(max_length=500, required=False, allow_blank=True, default="")
    tags = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    file = serializers.FileField(required=False, allow_null=True, allow_empty_file=True)


class LikeResponseSerializer(serializers.Serializer):
    success = serializers.BooleanField()
    newLikes = serializers.IntegerField()
    isLiked = serializers.BooleanField()
