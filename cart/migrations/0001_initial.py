import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("catalog", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="CartItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("session_id", models.CharField(blank=True, max_length=64, null=True)),
                ("quantity", models.PositiveIntegerField(default=1)),
                ("added_at", models.DateTimeField(default=django.utils.timezone.now, editable=False)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "user",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="cart_items",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "variant",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="cart_items",
                        to="catalog.productvariant",
                    ),
                ),
            ],
            options={
                "ordering": ["added_at", "id"],
                "indexes": [
                    models.Index(fields=["user", "added_at"], name="cart_item_user_added_idx"),
                    models.Index(fields=["session_id", "updated_at"], name="cart_item_guest_idle_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("user", "variant"), name="unique_variant_per_user_cart"),
                    models.UniqueConstraint(fields=("session_id", "variant"), name="unique_variant_per_guest_cart"),
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(("session_id__isnull", True), ("user__isnull", False)),
                            models.Q(("session_id__isnull", False), ("user__isnull", True)),
                            _connector="OR",
                        ),
                        name="cart_item_single_owner",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("quantity__gte", 1), ("quantity__lte", 99)),
                        name="cart_item_quantity_range",
                    ),
                ],
            },
        ),
    ]
