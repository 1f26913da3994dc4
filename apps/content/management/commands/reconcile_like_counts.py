# content/management/commands/reconcile_like_counts.py
from django.core.management.base import BaseCommand

from apps.content.services import reconcile_like_counts


class Command(BaseCommand):
    help = "Recompute Content.like_count from the Like ledger"

    def add_arguments(self, parser):
        parser.add_argument("ids", nargs="*", type=int, help="Restrict to these content ids")

    def handle(self, *args, **options):
        corrected = reconcile_like_counts(content_ids=options["ids"] or None)
        self.stdout.write(self.style.SUCCESS(f"Corrected like counts for {corrected} contents."))
