# accounts/management/commands/ensure_admin.py
from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from apps.accounts.services import ensure_admin
from common.exceptions import ValidationError


class Command(BaseCommand):
    help = "Create or repair the bootstrap administrator (ADMIN_USERNAME / ADMIN_PASSWORD / ADMIN_EMAIL)"

    def add_arguments(self, parser):
        parser.add_argument("--username", default=None)
        parser.add_argument("--password", default=None)
        parser.add_argument("--email", default=None)

    def handle(self, *args, **options):
        username = options["username"] or settings.ADMIN_USERNAME
        password = options["password"] or settings.ADMIN_PASSWORD
        email = options["email"] or settings.ADMIN_EMAIL
        try:
            user, outcome = ensure_admin(username=username, password=password, email=email)
        except ValidationError as e:
            raise CommandError(e.message) from e
        self.stdout.write(self.style.SUCCESS(f"Admin user '{user.username}' {outcome}."))
