"""Seed demo products and variants for local cart testing.

Re-running is idempotent; existing rows are reused by slug/sku.
"""

from decimal import Decimal

from catalog.models import Product, ProductVariant
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils.text import slugify

PRODUCTS = [
    {
        "title": "Linen Shirt",
        "description": "Breathable linen shirt with a relaxed fit.",
        "variants": [("LIN-SHIRT-S", "39.00"), ("LIN-SHIRT-M", "39.00"), ("LIN-SHIRT-L", "41.00")],
    },
    {
        "title": "Canvas Tote",
        "description": "Heavyweight canvas tote bag.",
        "variants": [("TOTE-NAT", "18.50"), ("TOTE-BLK", "18.50")],
    },
    {
        "title": "Ceramic Mug",
        "description": "Stoneware mug, 350ml.",
        "variants": [("MUG-350-WHT", "12.00")],
    },
]


class Command(BaseCommand):
    help = "Seed demo products and purchasable variants"

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write("Seeding catalog data...")
        created_variants = 0
        for entry in PRODUCTS:
            product, _ = Product.objects.get_or_create(
                slug=slugify(entry["title"]),
                defaults={
                    "title": entry["title"],
                    "description": entry["description"],
                    "status": Product.STATUS_PUBLISHED,
                },
            )
            for sku, price in entry["variants"]:
                _, created = ProductVariant.objects.get_or_create(
                    sku=sku,
                    defaults={"product": product, "price": Decimal(price), "status": ProductVariant.STATUS_ACTIVE},
                )
                created_variants += int(created)
        self.stdout.write(self.style.SUCCESS(f"Catalog seed complete ({created_variants} new variants)."))
