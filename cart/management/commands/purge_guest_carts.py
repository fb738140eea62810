from datetime import timedelta

from cart.models import CartItem
from django.conf import settings
from django.core.management.base import BaseCommand
from django.db.models import Max
from django.utils import timezone


class Command(BaseCommand):
    help = "Delete server-side guest cart rows whose session has been idle past the cookie lifetime"

    def add_arguments(self, parser):
        parser.add_argument(
            "--days",
            type=int,
            default=None,
            help="Idle days before a guest cart is purged (defaults to the guest cookie lifetime)",
        )
        parser.add_argument("--dry-run", action="store_true", help="Report what would be deleted")

    def handle(self, *args, **options):
        days = options["days"]
        if days is None:
            max_age = timedelta(seconds=int(settings.CART_SESSION_COOKIE_AGE))
        else:
            max_age = timedelta(days=days)
        cutoff = timezone.now() - max_age

        # Sessions whose newest row is older than the cutoff
        stale_sessions = (
            CartItem.objects.filter(user__isnull=True)
            .order_by()
            .values("session_id")
            .annotate(last_touched=Max("updated_at"))
            .filter(last_touched__lt=cutoff)
            .values_list("session_id", flat=True)
        )
        qs = CartItem.objects.filter(user__isnull=True, session_id__in=list(stale_sessions))
        if options["dry_run"]:
            count = qs.count()
            self.stdout.write(self.style.WARNING(f"Would purge {count} guest cart rows."))
            return
        count, _ = qs.delete()
        self.stdout.write(self.style.SUCCESS(f"Purged {count} guest cart rows."))
