from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction

from apps.carts.models import Cart, CartItem
from apps.catalog.models import Category, Product
from apps.orders.models import Order, OrderItem
from apps.users.models import Role, User

CATEGORIES = [
    ("Electronics", "Phones, laptops, storage and accessories"),
    ("Clothing", "Everyday wear for men and women"),
    ("Jewelery", "Rings, bracelets and earrings"),
    ("Home", "Kitchen and living essentials"),
]

# name, price, stock, category, description
PRODUCTS = [
    ("Wireless Mouse", "24.99", 50, "Electronics", "Ergonomic 2.4GHz mouse with silent clicks."),
    ("Mechanical Keyboard", "89.00", 25, "Electronics", "Tenkeyless keyboard with brown switches."),
    ("Portable SSD 1TB", "109.00", 15, "Electronics", "USB-C external drive, up to 1050MB/s."),
    ("27in Monitor", "249.99", 8, "Electronics", "QHD IPS panel with adjustable stand."),
    ("Cotton Jacket", "55.99", 30, "Clothing", "Lightweight outerwear for spring and autumn."),
    ("Slim Fit T-Shirt", "22.30", 100, "Clothing", "Breathable fabric with a round neck."),
    ("Rain Jacket", "39.99", 20, "Clothing", "Hooded waterproof windbreaker."),
    ("Gold Plated Ring", "9.99", 40, "Jewelery", "Classic solitaire promise ring."),
    ("Silver Chain Bracelet", "695.00", 3, "Jewelery", "Hand-finished dragon station chain."),
    ("Chef Knife", "45.50", 12, "Home", "8in stainless steel blade."),
    ("Ceramic Mug Set", "18.00", 0, "Home", "Four stoneware mugs. Currently sold out."),
]

USERS = [
    {"email": "admin@example.com", "name": "Store Admin", "password": "admin123", "role": Role.ADMIN},
    {"email": "jane@example.com", "name": "Jane Doe", "password": "password123", "role": Role.USER},
    {"email": "john@example.com", "name": "John Smith", "password": "password123", "role": Role.USER},
]


class Command(BaseCommand):
    help = "Seed users, categories and products for local development."

    def add_arguments(self, parser):
        parser.add_argument(
            "--flush", action="store_true", help="Delete existing store data before seeding"
        )

    @transaction.atomic
    def handle(self, *args, **options):
        if options["flush"]:
            self.stdout.write("Flushing existing data...")
            OrderItem.objects.all().delete()
            Order.objects.all().delete()
            CartItem.objects.all().delete()
            Cart.objects.all().delete()
            Product.objects.all().delete()
            Category.objects.all().delete()
            User.objects.filter(email__in=[u["email"] for u in USERS]).delete()

        self.stdout.write("Seeding users...")
        for payload in USERS:
            attrs = dict(payload)
            raw_password = attrs.pop("password")
            is_admin = attrs["role"] == Role.ADMIN
            user, _ = User.objects.update_or_create(
                email=attrs.pop("email"),
                defaults={**attrs, "is_staff": is_admin, "is_superuser": is_admin},
            )
            user.set_password(raw_password)
            user.save(update_fields=["password"])

        self.stdout.write("Seeding categories...")
        name_to_cat = {}
        for name, description in CATEGORIES:
            category, _ = Category.objects.update_or_create(
                name=name, defaults={"description": description}
            )
            name_to_cat[name] = category

        self.stdout.write("Seeding products...")
        for name, price, stock, category_name, description in PRODUCTS:
            Product.objects.update_or_create(
                name=name,
                defaults={
                    "price": Decimal(price),
                    "stock": stock,
                    "description": description,
                    "category": name_to_cat[category_name],
                },
            )

        self.stdout.write(
            self.style.SUCCESS(
                f"Seed completed: {len(USERS)} users, {len(CATEGORIES)} categories, "
                f"{len(PRODUCTS)} products."
            )
        )
