# content/tests.py
import json
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta
from io import StringIO
from unittest import mock

from django.contrib.auth import get_user_model
from django.core.files.uploadedfile import SimpleUploadedFile
from django.core.management import call_command
from django.db import IntegrityError, connection, transaction
from django.test import TestCase, TransactionTestCase
from django.utils import timezone
from rest_framework.test import APIClient

from apps.accounts.identity import ANONYMOUS, Principal
from common.exceptions import (
    AuthenticationRequired, NotFoundError, PermissionDeniedError, StorageError, ValidationError,
)
from . import services, tasks
from .models import Comment, Content, Like

User = get_user_model()


def make_content(title, minutes_ago=0, **extra):
    extra.setdefault("media_url", f"/media/uploads/{title.lower().replace(' ', '-')}.png")
    extra.setdefault("media_type", Content.IMAGE)
    return Content.objects.create(
        title=title, uploaded_at=timezone.now() - timedelta(minutes=minutes_ago), **extra
    )


class LikeToggleTests(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="tester", password="pass-12345")
        self.principal = Principal.from_user(self.user)
        self.content = make_content("Sunset")

    def test_odd_toggles_leave_like(self):
        for _ in range(3):
            state = services.toggle_like(self.content.pk, self.principal)
        self.content.refresh_from_db()
        self.assertTrue(state.is_liked)
        self.assertEqual(state.like_count, 1)
        self.assertEqual(self.content.like_count, 1)
        self.assertTrue(Like.objects.filter(user=self.user, content=self.content).exists())

    def test_even_toggles_cancel_out(self):
        for _ in range(4):
            state = services.toggle_like(self.content.pk, self.principal)
        self.content.refresh_from_db()
        self.assertFalse(state.is_liked)
        self.assertEqual(self.content.like_count, 0)
        self.assertFalse(Like.objects.filter(user=self.user, content=self.content).exists())

    def test_example_content_five_user_forty_two(self):
        content = make_content("Five", id=5)
        for i in range(3):
            other = User.objects.create_user(username=f"fan{i}", password="pass-12345")
            services.toggle_like(content.pk, Principal.from_user(other))
        user42 = User.objects.create_user(username="user42", password="pass-12345", id=42)
        principal = Principal.from_user(user42)

        state = services.toggle_like(5, principal)
        self.assertEqual(state, services.LikeState(like_count=4, is_liked=True))
        self.assertTrue(services.is_liked_by_user(5, principal))

        state = services.toggle_like(5, principal)
        self.assertEqual(state, services.LikeState(like_count=3, is_liked=False))
        self.assertFalse(services.is_liked_by_user(5, principal))

    def test_count_matches_ledger_across_users(self):
        users = [User.objects.create_user(username=f"u{i}", password="pass-12345") for i in range(5)]
        for u in users:
            services.toggle_like(self.content.pk, Principal.from_user(u))
        services.toggle_like(self.content.pk, Principal.from_user(users[0]))
        self.content.refresh_from_db()
        self.assertEqual(self.content.like_count, Like.objects.filter(content=self.content).count())
        self.assertEqual(self.content.like_count, 4)

    def test_like_count_never_negative(self):
        # ledger row exists but the counter already drifted to zero
        Like.objects.create(user=self.user, content=self.content)
        state = services.toggle_like(self.content.pk, self.principal)
        self.assertFalse(state.is_liked)
        self.assertEqual(state.like_count, 0)

    def test_duplicate_like_rows_rejected_by_constraint(self):
        Like.objects.create(user=self.user, content=self.content)
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                Like.objects.create(user=self.user, content=self.content)

    def test_anonymous_cannot_like(self):
        with self.assertRaises(AuthenticationRequired):
            services.toggle_like(self.content.pk, ANONYMOUS)
        self.content.refresh_from_db()
        self.assertEqual(self.content.like_count, 0)

    def test_unknown_content(self):
        with self.assertRaises(NotFoundError):
            services.toggle_like(999999, self.principal)

    def test_malformed_id_is_not_found(self):
        with self.assertRaises(NotFoundError):
            services.toggle_like("abc", self.principal)
        with self.assertRaises(NotFoundError):
            services.increment_views("abc")

    def test_liked_content_ids(self):
        other = make_content("Other")
        make_content("Untouched")
        services.toggle_like(self.content.pk, self.principal)
        services.toggle_like(other.pk, self.principal)
        self.assertEqual(
            sorted(services.get_liked_content_ids(self.principal)), sorted([self.content.pk, other.pk])
        )
        self.assertEqual(services.get_liked_content_ids(ANONYMOUS), [])
        self.assertFalse(services.is_liked_by_user(self.content.pk, ANONYMOUS))


class ViewCountTests(TestCase):
    def setUp(self):
        self.content = make_content("Clip", media_type=Content.VIDEO)

    def test_increment_n_times(self):
        for _ in range(25):
            services.increment_views(self.content.pk)
        self.content.refresh_from_db()
        self.assertEqual(self.content.view_count, 25)

    def test_increment_is_not_read_modify_write(self):
        stale_a = Content.objects.get(pk=self.content.pk)
        stale_b = Content.objects.get(pk=self.content.pk)
        services.increment_views(stale_a.pk)
        services.increment_views(stale_b.pk)
        # saving an unrelated field from a stale instance must not clobber the counter
        stale_a.title = "Renamed"
        stale_a.save(update_fields=["title"])
        self.content.refresh_from_db()
        self.assertEqual(self.content.view_count, 2)
        self.assertEqual(self.content.title, "Renamed")

    def test_increment_unknown_content(self):
        with self.assertRaises(NotFoundError):
            services.increment_views(424242)


class CommentTests(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="commenter", password="pass-12345")
        self.principal = Principal.from_user(self.user)
        self.content = make_content("Talk")

    def test_newest_comment_first(self):
        old = Comment.objects.create(
            content=self.content, user_name="earlier", text="first!", posted_at=timezone.now() - timedelta(hours=1)
        )
        new = services.add_comment(self.content.pk, self.principal, "  great clip  ")
        comments = services.get_comments_by_content_id(self.content.pk)
        self.assertEqual([c.pk for c in comments], [new.pk, old.pk])
        self.assertEqual(new.user_name, "commenter")
        self.assertEqual(new.text, "great clip")

    def test_empty_or_long_comment_rejected(self):
        with self.assertRaises(ValidationError):
            services.add_comment(self.content.pk, self.principal, "   ")
        with self.assertRaises(ValidationError):
            services.add_comment(self.content.pk, self.principal, "x" * (Comment.MAX_LENGTH + 1))

    def test_unknown_content(self):
        with self.assertRaises(NotFoundError):
            services.add_comment(31337, self.principal, "hello")

    def test_anonymous_cannot_comment(self):
        with self.assertRaises(AuthenticationRequired):
            services.add_comment(self.content.pk, ANONYMOUS, "hello")


class PaginationTests(TestCase):
    def setUp(self):
        self.oldest = make_content("Mountain Hike", minutes_ago=30, tags="Nature,Outdoors", like_count=5, view_count=10)
        self.middle = make_content("City Lights", minutes_ago=20, tags="urban", like_count=9, view_count=2)
        self.newest = make_content("Forest Walk", minutes_ago=10, tags="nature", like_count=1, view_count=50)

    def test_latest_first(self):
        page = services.get_paginated(None, 1, 10)
        self.assertEqual([c.pk for c in page.items], [self.newest.pk, self.middle.pk, self.oldest.pk])
        self.assertEqual(page.total_pages, 1)
        self.assertEqual(page.total_count, 3)

    def test_most_liked(self):
        page = services.get_most_liked(1, 10)
        self.assertEqual([c.pk for c in page.items], [self.middle.pk, self.oldest.pk, self.newest.pk])

    def test_most_viewed(self):
        page = services.get_most_viewed(1, 10)
        self.assertEqual([c.pk for c in page.items], [self.newest.pk, self.oldest.pk, self.middle.pk])

    def test_keyword_matches_title_or_tags_case_insensitive(self):
        page = services.get_paginated("NATURE", 1, 10)
        self.assertEqual([c.pk for c in page.items], [self.newest.pk, self.oldest.pk])
        page = services.get_paginated("city", 1, 10)
        self.assertEqual([c.pk for c in page.items], [self.middle.pk])

    def test_by_tag(self):
        page = services.get_by_tag("outdoors", 1, 10)
        self.assertEqual([c.pk for c in page.items], [self.oldest.pk])

    def test_pages_are_one_based(self):
        first = services.get_paginated(None, 1, 2)
        second = services.get_paginated(None, 2, 2)
        self.assertEqual([c.pk for c in first.items], [self.newest.pk, self.middle.pk])
        self.assertEqual([c.pk for c in second.items], [self.oldest.pk])
        self.assertEqual(first.total_pages, 2)
        self.assertTrue(first.has_next)
        self.assertFalse(second.has_next)

    def test_page_past_end_is_empty(self):
        page = services.get_paginated(None, 5, 2)
        self.assertEqual(page.items, [])
        self.assertEqual(page.total_pages, 2)

    def test_empty_result_has_no_pages(self):
        page = services.get_paginated("nothing-matches", 1, 10)
        self.assertEqual(page.items, [])
        self.assertEqual(page.total_pages, 0)

    def test_invalid_page_arguments(self):
        with self.assertRaises(ValidationError):
            services.get_paginated(None, 0, 10)
        with self.assertRaises(ValidationError):
            services.get_most_liked(1, 0)
        with self.assertRaises(ValidationError):
            services.get_most_viewed(1, 10_000)

    def test_dashboard_zero_page_size_rejected(self):
        with self.assertRaises(ValidationError):
            services.get_dashboard_page("latest", 1, 0)
        page, _ = services.get_dashboard_page("latest", 1, None)
        self.assertEqual(page.page_size, 9)

    def test_dashboard_dispatch(self):
        page, title = services.get_dashboard_page("best_videos", 1, 10)
        self.assertEqual(page.items[0].pk, self.middle.pk)
        self.assertEqual(title, "Most Liked")

        page, title = services.get_dashboard_page("most_viewed", 1, 10)
        self.assertEqual(page.items[0].pk, self.newest.pk)

        page, title = services.get_dashboard_page("latest", 1, 10, keyword="city", tag="nature")
        self.assertEqual(title, "Tag: nature")
        self.assertEqual([c.pk for c in page.items], [self.newest.pk, self.oldest.pk])

        page, title = services.get_dashboard_page(None, 1, 10, keyword="city")
        self.assertEqual(title, "Search: city")

        page, title = services.get_dashboard_page("unknown-filter", 1, 10)
        self.assertEqual(title, "Latest Content")
        self.assertEqual(page.total_count, 3)


class ContentAdminServiceTests(TestCase):
    def setUp(self):
        self.admin = User.objects.create_user(username="boss", password="pass-12345", role=User.Role.ADMIN)
        self.admin_principal = Principal.from_user(self.admin)
        self.user = User.objects.create_user(username="viewer", password="pass-12345")

    def _png(self, name="photo.png", data=b"\x89PNG fake bytes"):
        return SimpleUploadedFile(name, data, content_type="image/png")

    def test_save_content(self):
        content = services.save_content(self.admin_principal, "Beach", "Sunny day", "Summer, beach ,summer", self._png())
        self.assertEqual(content.media_type, Content.IMAGE)
        self.assertTrue(content.media_url.endswith(".png"))
        self.assertEqual(content.tags, "Summer,beach")
        self.assertEqual(content.tag_list, ["Summer", "beach"])
        self.assertEqual((content.like_count, content.view_count), (0, 0))
        self.assertEqual(content.uploaded_by, self.admin)

    def test_video_upload_detected(self):
        clip = SimpleUploadedFile("clip.mp4", b"0000ftypisom", content_type="video/mp4")
        content = services.save_content(self.admin_principal, "Clip", "", "", clip)
        self.assertEqual(content.media_type, Content.VIDEO)

    def test_rejects_empty_and_disallowed_files(self):
        with self.assertRaises(ValidationError):
            services.save_content(self.admin_principal, "Empty", "", "", self._png(data=b""))
        with self.assertRaises(ValidationError):
            services.save_content(self.admin_principal, "Missing", "", "", None)
        text = SimpleUploadedFile("notes.txt", b"hello", content_type="text/plain")
        with self.assertRaises(ValidationError):
            services.save_content(self.admin_principal, "Notes", "", "", text)
        self.assertFalse(Content.objects.exists())

    def test_storage_failure_is_typed(self):
        with mock.patch("apps.content.storage.default_storage") as storage:
            storage.save.side_effect = OSError("disk full")
            with self.assertRaises(StorageError) as ctx:
                services.save_content(self.admin_principal, "Beach", "", "", self._png())
        self.assertIn("disk full", ctx.exception.message)
        self.assertFalse(Content.objects.exists())

    def test_only_admins_manage_content(self):
        with self.assertRaises(PermissionDeniedError):
            services.save_content(Principal.from_user(self.user), "Beach", "", "", self._png())
        with self.assertRaises(AuthenticationRequired):
            services.save_content(ANONYMOUS, "Beach", "", "", self._png())

    def test_update_content(self):
        content = make_content("Old title", tags="a")
        old_url = content.media_url
        updated = services.update_content(self.admin_principal, content.pk, "New title", "desc", "b, c")
        self.assertEqual((updated.title, updated.description, updated.tags), ("New title", "desc", "b,c"))
        self.assertEqual(updated.media_url, old_url)

        clip = SimpleUploadedFile("clip.mp4", b"0000ftypisom", content_type="video/mp4")
        updated = services.update_content(self.admin_principal, content.pk, "New title", "desc", "b", upload=clip)
        self.assertEqual(updated.media_type, Content.VIDEO)
        self.assertNotEqual(updated.media_url, old_url)

    def test_update_unknown_content(self):
        with self.assertRaises(NotFoundError):
            services.update_content(self.admin_principal, 777, "x", "", "")

    def test_delete_cascades(self):
        content = make_content("Doomed")
        services.toggle_like(content.pk, Principal.from_user(self.user))
        services.add_comment(content.pk, Principal.from_user(self.user), "bye")
        services.delete_content(self.admin_principal, content.pk)
        self.assertFalse(Content.objects.filter(pk=content.pk).exists())
        self.assertFalse(Like.objects.exists())
        self.assertFalse(Comment.objects.exists())
        with self.assertRaises(NotFoundError):
            services.delete_content(self.admin_principal, content.pk)


class ReconcileTests(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="liker", password="pass-12345")
        self.drifted = make_content("Drifted", like_count=7)
        self.accurate = make_content("Accurate")
        Like.objects.create(user=self.user, content=self.drifted)
        services.toggle_like(self.accurate.pk, Principal.from_user(self.user))

    def test_service_reconciles(self):
        self.assertEqual(services.reconcile_like_counts(), 1)
        self.drifted.refresh_from_db()
        self.assertEqual(self.drifted.like_count, 1)
        self.assertEqual(services.reconcile_like_counts(), 0)

    def test_task(self):
        result = tasks.reconcile_like_counts()
        self.assertEqual(result, {"status": "done", "corrected": 1})

    def test_management_command(self):
        out = StringIO()
        call_command("reconcile_like_counts", str(self.accurate.pk), stdout=out)
        self.assertIn("0 contents", out.getvalue())
        call_command("reconcile_like_counts", stdout=out)
        self.assertIn("1 contents", out.getvalue())


class ContentApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(username="member", password="pass-12345")
        self.admin = User.objects.create_user(username="boss", password="pass-12345", role=User.Role.ADMIN)
        self.content = make_content("Waterfall", minutes_ago=5, tags="nature", like_count=0)
        self.other = make_content("Skyline", minutes_ago=1, tags="city")

    def test_dashboard_latest(self):
        resp = self.client.get("/dashboard/", {"page": 1, "pageSize": 1})
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["meta"]["total_pages"], 2)
        self.assertEqual(body["meta"]["current"], 1)
        self.assertEqual(body["results"][0]["id"], self.other.pk)
        self.assertEqual(body["active_filter_title"], "Latest Content")
        self.assertEqual(body["liked_content_ids"], [])

    def test_root_serves_dashboard_with_liked_ids(self):
        Like.objects.create(user=self.user, content=self.content)
        self.client.force_authenticate(self.user)
        resp = self.client.get("/", {"tag": "NATURE"})
        body = resp.json()
        self.assertEqual([c["id"] for c in body["results"]], [self.content.pk])
        self.assertEqual(body["liked_content_ids"], [self.content.pk])
        self.assertEqual(body["tag"], "NATURE")

    def test_dashboard_rejects_bad_page(self):
        resp = self.client.get("/dashboard/", {"page": 0})
        self.assertEqual(resp.status_code, 400)
        self.assertFalse(resp.json()["success"])

    def test_dashboard_schema_describes_envelope(self):
        resp = self.client.get("/api/schema/", {"format": "json"})
        self.assertEqual(resp.status_code, 200)
        schema = json.loads(resp.content)
        envelope = schema["components"]["schemas"]["DashboardPage"]
        self.assertEqual(
            set(envelope["properties"]),
            {"meta", "results", "filter", "keyword", "tag", "active_filter_title", "liked_content_ids", "is_admin"},
        )
        ok = schema["paths"]["/dashboard/"]["get"]["responses"]["200"]
        self.assertEqual(ok["content"]["application/json"]["schema"]["$ref"], "#/components/schemas/DashboardPage")

    def test_dashboard_rejects_zero_page_size(self):
        for size in (0, -1):
            resp = self.client.get("/dashboard/", {"pageSize": size})
            self.assertEqual(resp.status_code, 400)
            self.assertIn("Page size", resp.json()["error"])

    def test_view_counts_and_returns_comments(self):
        Comment.objects.create(content=self.content, user_name="someone", text="wow")
        resp = self.client.get(f"/view/{self.content.pk}/")
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["view_count"], 1)
        self.assertFalse(body["is_liked"])
        self.assertEqual(body["comments"][0]["text"], "wow")

    def test_view_missing_content(self):
        resp = self.client.get("/view/999999/")
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json()["error"], "Content not found with ID: 999999")

    def test_like_requires_login(self):
        resp = self.client.post(f"/like/{self.content.pk}/")
        self.assertEqual(resp.status_code, 401)
        self.assertFalse(resp.json()["success"])

    def test_like_toggle_response(self):
        self.client.force_authenticate(self.user)
        resp = self.client.post(f"/like/{self.content.pk}/")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"success": True, "newLikes": 1, "isLiked": True})
        resp = self.client.post(f"/like/{self.content.pk}/")
        self.assertEqual(resp.json(), {"success": True, "newLikes": 0, "isLiked": False})

    def test_like_missing_content(self):
        self.client.force_authenticate(self.user)
        resp = self.client.post("/like/999999/")
        self.assertEqual(resp.status_code, 404)
        self.assertFalse(resp.json()["success"])

    def test_comment(self):
        self.client.force_authenticate(self.user)
        resp = self.client.post(f"/comment/{self.content.pk}/", {"comment": "Lovely"}, format="json")
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.json()["comment"]["user_name"], "member")
        resp = self.client.post(f"/comment/{self.content.pk}/", {"comment": ""}, format="json")
        self.assertEqual(resp.status_code, 400)

    def test_upload_requires_admin(self):
        self.client.force_authenticate(self.user)
        self.assertEqual(self.client.get("/upload/").status_code, 403)

    def test_admin_upload(self):
        self.client.force_authenticate(self.admin)
        self.assertEqual(self.client.get("/upload/").json()["allowed_media_types"], ["image", "video"])
        upload = SimpleUploadedFile("pic.jpg", b"\xff\xd8\xff fake jpeg", content_type="image/jpeg")
        resp = self.client.post(
            "/upload/", {"title": "Pic", "description": "d", "tags": "x,y", "file": upload}, format="multipart"
        )
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.json()["content"]["tag_list"], ["x", "y"])

    def test_admin_upload_disallowed_type(self):
        self.client.force_authenticate(self.admin)
        upload = SimpleUploadedFile("doc.pdf", b"%PDF-1.4", content_type="application/pdf")
        resp = self.client.post("/upload/", {"title": "Doc", "file": upload}, format="multipart")
        self.assertEqual(resp.status_code, 400)
        self.assertIn("not allowed", resp.json()["error"])

    def test_admin_edit_update_delete(self):
        self.client.force_authenticate(self.admin)
        resp = self.client.get(f"/admin/edit/{self.content.pk}/")
        self.assertEqual(resp.json()["title"], "Waterfall")

        resp = self.client.post(
            "/admin/update/", {"id": self.content.pk, "title": "Falls", "tags": "water"}, format="multipart"
        )
        self.assertEqual(resp.status_code, 200)
        self.content.refresh_from_db()
        self.assertEqual(self.content.title, "Falls")

        resp = self.client.get(f"/admin/delete/{self.content.pk}/")
        self.assertEqual(resp.status_code, 200)
        self.assertFalse(Content.objects.filter(pk=self.content.pk).exists())

    def test_admin_dashboard_filters(self):
        make_content("Reel", media_type=Content.VIDEO)
        self.client.force_authenticate(self.admin)
        resp = self.client.get("/admin/dashboard/", {"media_type": "video"})
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["meta"]["count"], 1)
        self.assertEqual(body["results"][0]["title"], "Reel")
        resp = self.client.get("/admin/dashboard/", {"search": "sky"})
        self.assertEqual([c["id"] for c in resp.json()["results"]], [self.other.pk])


class LikeAdminTests(TestCase):
    def test_like_rows_are_read_only_in_admin(self):
        from django.contrib.admin.sites import site
        from django.test import RequestFactory

        staff = User.objects.create_superuser(username="staff", password="pass-12345")
        request = RequestFactory().get("/django-admin/content/like/")
        request.user = staff
        like_admin = site._registry[Like]
        self.assertFalse(like_admin.has_add_permission(request))
        self.assertFalse(like_admin.has_change_permission(request))
        self.assertFalse(like_admin.has_delete_permission(request))
        self.assertTrue(like_admin.has_view_permission(request))


def run_in_threads(fn, args_list):
    """Start every call at once; each worker closes its own DB connection."""
    barrier = threading.Barrier(len(args_list))

    def worker(args):
        try:
            barrier.wait()
            return fn(*args)
        finally:
            connection.close()

    with ThreadPoolExecutor(max_workers=len(args_list)) as pool:
        futures = [pool.submit(worker, args) for args in args_list]
        return [f.result() for f in futures]


class ConcurrentInteractionTests(TransactionTestCase):
    def setUp(self):
        self.content = make_content("Crowd favourite")

    def test_concurrent_view_increments(self):
        run_in_threads(services.increment_views, [(self.content.pk,)] * 12)
        self.content.refresh_from_db()
        self.assertEqual(self.content.view_count, 12)

    def test_concurrent_likes_from_distinct_users(self):
        users = [User.objects.create_user(username=f"racer{i}", password="pass-12345") for i in range(6)]
        states = run_in_threads(
            services.toggle_like, [(self.content.pk, Principal.from_user(u)) for u in users]
        )
        self.assertTrue(all(s.is_liked for s in states))
        self.content.refresh_from_db()
        self.assertEqual(self.content.like_count, 6)
        self.assertEqual(Like.objects.filter(content=self.content).count(), 6)

    def test_concurrent_toggles_by_one_user_keep_parity(self):
        principal = Principal.from_user(User.objects.create_user(username="twitchy", password="pass-12345"))
        states = run_in_threads(services.toggle_like, [(self.content.pk, principal)] * 4)
        self.assertEqual(sorted(s.is_liked for s in states), [False, False, True, True])
        self.content.refresh_from_db()
        self.assertEqual(self.content.like_count, 0)
        self.assertFalse(Like.objects.filter(content=self.content).exists())
