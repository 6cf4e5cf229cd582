from __future__ import annotations

import random
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

from modules.core.exceptions import DomainError
from modules.customers.models import Customer
from modules.customers.repositories import CustomerDjangoRepository
from modules.orders.constants import PaymentMethod
from modules.orders.dtos import (
    CreateOrderDTO,
    CreateOrderItemDTO,
    PaymentInfoDTO,
    ShippingAddressDTO,
)
from modules.orders.repositories import OrderDjangoRepository
from modules.orders.services import OrderService
from modules.products.models import Product, ProductStatus
from modules.products.repositories import ProductDjangoRepository
from modules.vendors.models import Vendor


class Command(BaseCommand):
    help = "Seed database with realistic development data."

    def add_arguments(self, parser):
        parser.add_argument("--orders", type=int, default=20, help="Orders to place.")

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        users_created = self._seed_users()
        vendors = self._seed_vendors()
        customers = self._seed_customers()
        products = self._seed_products(vendors)
        orders_created = self._seed_orders(customers, products, options["orders"])

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"users={users_created}, "
                f"vendors={len(vendors)}, "
                f"customers={len(customers)}, "
                f"products={len(products)}, "
                f"orders={orders_created}"
            )
        )

    def _seed_users(self) -> int:
        User = get_user_model()
        created = 0
        if not User.objects.filter(username="admin").exists():
            User.objects.create_superuser("admin", password="admin123")
            created += 1
        for username in ("techhub", "greenwear", "homecraft", "shopper"):
            if not User.objects.filter(username=username).exists():
                User.objects.create_user(username, password=f"{username}123")
                created += 1
        return created

    def _seed_vendors(self) -> list[Vendor]:
        self.stdout.write("Creating vendors...")
        User = get_user_model()
        vendors: list[Vendor] = []
        seed_vendors = [
            ("TechHub Electronics", "sales@techhub.example.com", "techhub"),
            ("GreenWear Apparel", "hello@greenwear.example.com", "greenwear"),
            ("HomeCraft Living", "orders@homecraft.example.com", "homecraft"),
        ]
        for name, email, username in seed_vendors:
            vendor, _ = Vendor.objects.get_or_create(
                email=email,
                defaults={
                    "name": name,
                    "user": User.objects.filter(username=username).first(),
                },
            )
            vendors.append(vendor)
        self.stdout.write(self.style.SUCCESS("Creating vendors... Done!"))
        return vendors

    def _seed_customers(self) -> list[Customer]:
        self.stdout.write("Creating customers...")
        User = get_user_model()
        customers: list[Customer] = []
        seed_customers = [
            ("Alice Morgan", "alice@example.com", "+1 555 0101"),
            ("Bruno Lima", "bruno@example.com", "+1 555 0102"),
            ("Chloe Park", "chloe@example.com", "+1 555 0103"),
            ("Daniel Costa", "daniel@example.com", "+1 555 0104"),
            ("Erin Walsh", "erin@example.com", "+1 555 0105"),
        ]
        for name, email, phone in seed_customers:
            customer, _ = Customer.objects.get_or_create(
                email=email,
                defaults={"name": name, "phone": phone, "is_active": True},
            )
            customers.append(customer)

        shopper = User.objects.filter(username="shopper").first()
        if shopper and customers[0].user_id is None:
            customers[0].user = shopper
            customers[0].save(update_fields=["user"])
        self.stdout.write(self.style.SUCCESS("Creating customers... Done!"))
        return customers

    def _seed_products(self, vendors: list[Vendor]) -> list[Product]:
        self.stdout.write("Creating products...")
        products: list[Product] = []
        catalog = [
            (0, "TECH-001", "Wireless Bluetooth Headphones", Decimal("89.99"), 45),
            (0, "TECH-002", "Smart Fitness Watch", Decimal("199.99"), 32),
            (0, "TECH-003", "Portable Power Bank", Decimal("39.99"), 80),
            (0, "TECH-004", "Mechanical Keyboard", Decimal("129.00"), 25),
            (1, "WEAR-001", "Organic Cotton T-Shirt", Decimal("24.99"), 120),
            (1, "WEAR-002", "Recycled Denim Jacket", Decimal("79.50"), 40),
            (1, "WEAR-003", "Merino Wool Socks", Decimal("14.99"), 200),
            (2, "HOME-001", "Ceramic Pour-Over Set", Decimal("34.00"), 60),
            (2, "HOME-002", "Bamboo Cutting Board", Decimal("22.50"), 90),
            (2, "HOME-003", "Linen Throw Blanket", Decimal("64.00"), 30),
        ]
        for vendor_index, sku, name, price, stock in catalog:
            product, _ = Product.objects.get_or_create(
                sku=sku,
                defaults={
                    "vendor": vendors[vendor_index],
                    "name": name,
                    "price": price,
                    "stock_quantity": stock,
                    "status": ProductStatus.ACTIVE,
                    "images": [
                        {
                            "public_id": sku.lower(),
                            "url": f"https://images.example.com/{sku.lower()}.jpg",
                        }
                    ],
                },
            )
            products.append(product)
        self.stdout.write(self.style.SUCCESS("Creating products... Done!"))
        return products

    def _seed_orders(
        self, customers: list[Customer], products: list[Product], count: int
    ) -> int:
        self.stdout.write("Placing orders...")
        if not customers or not products:
            self.stdout.write(self.style.WARNING("Skipping orders (no customers/products)."))
            return 0

        service = OrderService(
            order_repository=OrderDjangoRepository(),
            customer_repository=CustomerDjangoRepository(),
            product_repository=ProductDjangoRepository(),
        )
        orders_created = 0
        for i in range(count):
            customer = random.choice(customers)
            picked = random.sample(products, k=random.randint(1, 4))
            dto = CreateOrderDTO(
                customer_id=customer.id,
                items=[
                    CreateOrderItemDTO(product_id=product.id, quantity=random.randint(1, 3))
                    for product in picked
                ],
                shipping_address=ShippingAddressDTO(
                    name=customer.name,
                    phone=customer.phone or "+1 555 0100",
                    street=f"{100 + i} Market Street",
                    city="Springfield",
                    state="IL",
                    zip_code="62701",
                    country="US",
                ),
                payment=PaymentInfoDTO(
                    payment_id=f"seed-payment-{i + 1}",
                    payment_method=random.choice(list(PaymentMethod)),
                ),
                notes=f"Seed order {i + 1}",
                idempotency_key=f"seed-order-{i + 1}",
            )
            try:
                service.create_order(dto)
            except DomainError as exc:
                self.stdout.write(self.style.WARNING(f"Order {i + 1} skipped: {exc.message}"))
                continue
            orders_created += 1

        self.stdout.write(self.style.SUCCESS("Placing orders... Done!"))
        return orders_created
