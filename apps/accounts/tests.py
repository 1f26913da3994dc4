# accounts/tests.py
from io import StringIO

from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase
from rest_framework.test import APIClient

from common.exceptions import ValidationError
from . import services
from .identity import ANONYMOUS, Principal
from .models import User


class RegisterUserTests(TestCase):
    def test_register(self):
        user = services.register_user("alice", "Str0ng-pass!", email="alice@example.com", name="Alice")
        self.assertEqual(user.role, User.Role.USER)
        self.assertFalse(user.is_admin)
        self.assertTrue(user.check_password("Str0ng-pass!"))
        self.assertEqual(user.display_name, "Alice")

    def test_duplicate_username(self):
        services.register_user("alice", "Str0ng-pass!")
        with self.assertRaises(ValidationError) as ctx:
            services.register_user("ALICE", "Str0ng-pass!")
        self.assertEqual(ctx.exception.message, "Username is already taken.")

    def test_duplicate_email(self):
        services.register_user("alice", "Str0ng-pass!", email="same@example.com")
        with self.assertRaises(ValidationError) as ctx:
            services.register_user("bob", "Str0ng-pass!", email="Same@Example.com")
        self.assertEqual(ctx.exception.message, "Email is already in use.")

    def test_blank_emails_do_not_collide(self):
        services.register_user("alice", "Str0ng-pass!", email="")
        services.register_user("bob", "Str0ng-pass!")
        self.assertEqual(User.objects.filter(email__isnull=True).count(), 2)


class EnsureAdminTests(TestCase):
    def test_created_then_unchanged(self):
        user, outcome = services.ensure_admin("root", "Adm1n-secret!")
        self.assertEqual(outcome, "created")
        self.assertTrue(user.is_admin)
        _, outcome = services.ensure_admin("root", "Adm1n-secret!")
        self.assertEqual(outcome, "unchanged")

    def test_promotes_existing_user(self):
        User.objects.create_user(username="root", password="old-pass-123")
        user, outcome = services.ensure_admin("root", "Adm1n-secret!")
        self.assertEqual(outcome, "updated")
        user.refresh_from_db()
        self.assertEqual(user.role, User.Role.ADMIN)
        self.assertTrue(user.check_password("Adm1n-secret!"))

    def test_missing_credentials(self):
        with self.assertRaises(ValidationError):
            services.ensure_admin("", "")

    def test_command(self):
        out = StringIO()
        call_command("ensure_admin", username="root", password="Adm1n-secret!", stdout=out)
        self.assertTrue(User.objects.get(username="root").is_admin)

    def test_command_without_credentials(self):
        with self.settings(ADMIN_USERNAME="", ADMIN_PASSWORD=""):
            with self.assertRaises(CommandError):
                call_command("ensure_admin", stdout=StringIO())


class PrincipalTests(TestCase):
    def test_from_user(self):
        admin = User.objects.create_user(username="boss", password="pass-12345", role=User.Role.ADMIN)
        principal = Principal.from_user(admin)
        self.assertTrue(principal.is_authenticated)
        self.assertTrue(principal.is_admin)
        self.assertEqual(principal.user_id, admin.pk)

    def test_anonymous(self):
        self.assertFalse(ANONYMOUS.is_authenticated)
        self.assertFalse(ANONYMOUS.is_admin)
        self.assertEqual(Principal.from_user(None), ANONYMOUS)


class RegisterApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()

    def test_register_returns_tokens(self):
        resp = self.client.post(
            "/api/v1/auth/register/",
            {"username": "carol", "password": "Str0ng-pass!", "email": "carol@example.com"},
            format="json",
        )
        self.assertEqual(resp.status_code, 201)
        body = resp.json()
        self.assertEqual(body["username"], "carol")
        self.assertIn("access", body)
        self.assertIn("refresh", body)

        me = self.client.get("/api/v1/auth/me/", HTTP_AUTHORIZATION=f"Bearer {body['access']}")
        self.assertEqual(me.status_code, 200)
        self.assertEqual(me.json()["role"], "USER")

    def test_duplicate_username(self):
        User.objects.create_user(username="carol", password="pass-12345")
        resp = self.client.post(
            "/api/v1/auth/register/", {"username": "carol", "password": "Str0ng-pass!"}, format="json"
        )
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["error"], "Username is already taken.")

    def test_weak_password(self):
        resp = self.client.post(
            "/api/v1/auth/register/", {"username": "dave", "password": "123"}, format="json"
        )
        self.assertEqual(resp.status_code, 400)
        self.assertIn("password", resp.json())
