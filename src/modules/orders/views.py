"""Order API views.

Exposes the ``OrderService`` via HTTP using DRF ViewSets.
Domain exceptions are caught and rendered with the standard error
envelope; their category decides the HTTP status.  The view never
swallows generic exceptions.
"""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from django_filters.rest_framework import DjangoFilterBackend
from pydantic import ValidationError as PydanticValidationError
from rest_framework import serializers, status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.permissions import BasePermission, IsAdminUser
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.core.exceptions import DomainError, domain_error_response
from modules.core.pagination import StandardResultsSetPagination
from modules.customers.exceptions import CustomerNotFound
from modules.customers.models import Customer
from modules.customers.repositories import CustomerDjangoRepository
from modules.orders.dtos import (
    CreateOrderDTO,
    CreateOrderItemDTO,
    PaymentInfoDTO,
    ShippingAddressDTO,
    UpdateStatusDTO,
    UpdateVendorOrderStatusDTO,
)
from modules.orders.exceptions import OrderNotFound
from modules.orders.filters import OrderFilter
from modules.orders.models import Order
from modules.orders.repositories import OrderDjangoRepository
from modules.orders.serializers import (
    CancelOrderSerializer,
    CreateOrderSerializer,
    OrderListSerializer,
    OrderSerializer,
    UpdateStatusSerializer,
    UpdateVendorOrderStatusSerializer,
    VendorScopedOrderSerializer,
)
from modules.orders.services import OrderService
from modules.products.repositories import ProductDjangoRepository
from modules.vendors.exceptions import VendorNotFound
from modules.vendors.repositories import VendorDjangoRepository


class OrderViewSet(GenericViewSet):
    """ViewSet for Order operations.

    Uses ``OrderService`` with injected repositories (DIP).
    Does **not** extend ``ModelViewSet``: all ORM access goes through
    the service/repository layer.
    """

    queryset = Order.objects.none()
    filterset_class = OrderFilter
    search_fields = ["order_number", "customer__name", "customer__email"]
    ordering_fields = ["created_at", "total_price", "status"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]
    pagination_class = StandardResultsSetPagination

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._customer_repo = CustomerDjangoRepository()
        self._service = OrderService(
            order_repository=OrderDjangoRepository(),
            customer_repository=self._customer_repo,
            product_repository=ProductDjangoRepository(),
        )
        self._vendor_repo = VendorDjangoRepository()

    def get_permissions(self) -> list[BasePermission]:
        """Overall status changes are reserved for staff."""
        if self.action == "partial_update":
            return [IsAdminUser()]
        return super().get_permissions()

    def get_throttles(self) -> list[BaseThrottle]:
        """Per-action throttling scopes."""
        throttle_scope: str | None
        if self.action == "create":
            throttle_scope = "order_creation"
        elif self.action in {"list", "retrieve", "vendor"}:
            throttle_scope = "order_listing"
        else:
            throttle_scope = None
        self.throttle_scope = throttle_scope
        return super().get_throttles()

    def get_queryset(self):
        if getattr(self, "swagger_fake_view", False):
            return Order.objects.none()
        customer = self._acting_customer(self.request)
        if customer is None:
            return self._service.list_orders()
        return self._service.list_customer_orders(customer)

    def _acting_customer(self, request: Request) -> Optional[Customer]:
        """Customer profile the caller acts as; ``None`` for staff.

        Non-staff callers only ever see and cancel their own orders.
        """
        if request.user.is_staff:
            return None
        customer = self._customer_repo.get_by_user(request.user)
        if customer is None:
            raise CustomerNotFound("No customer profile is linked to this account.")
        return customer

    def _paginated(
        self, request: Request, queryset, serializer_class=OrderListSerializer, **context
    ) -> Response:
        page = self.paginate_queryset(queryset)
        serializer = serializer_class(page, many=True, context=context)
        return self.get_paginated_response(serializer.data)

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/

        Supports idempotency via the ``Idempotency-Key`` header.
        Returns 200 if the key was already used, 201 for new orders.
        Customers order for themselves; staff name the customer.
        """
        create_serializer = CreateOrderSerializer(data=request.data)
        create_serializer.is_valid(raise_exception=True)

        data = create_serializer.validated_data
        customer_id = self._ordering_customer_id(request, data.get("customer_id"))
        idempotency_key = request.headers.get("Idempotency-Key") or None
        try:
            dto = CreateOrderDTO(
                customer_id=customer_id,
                items=[
                    CreateOrderItemDTO(
                        product_id=item["product_id"],
                        quantity=item["quantity"],
                    )
                    for item in data["items"]
                ],
                shipping_address=ShippingAddressDTO(**data["shipping_address"]),
                payment=PaymentInfoDTO(**data["payment"]),
                notes=data.get("notes", ""),
                idempotency_key=idempotency_key,
            )
        except PydanticValidationError as exc:
            raise serializers.ValidationError(
                {"non_field_errors": [err["msg"] for err in exc.errors()]}
            ) from exc

        replay = bool(
            idempotency_key
            and self._service.list_orders({"idempotency_key": idempotency_key}).exists()
        )
        try:
            order = self._service.create_order(dto, user=request.user)
        except DomainError as exc:
            return domain_error_response(exc)

        out = OrderSerializer(order)
        http_status = status.HTTP_200_OK if replay else status.HTTP_201_CREATED
        return Response(out.data, status=http_status)

    def _ordering_customer_id(self, request: Request, requested: Optional[UUID]) -> UUID:
        acting_customer = self._acting_customer(request)
        if acting_customer is None:
            if requested is None:
                raise serializers.ValidationError(
                    {"customer_id": ["This field is required for staff orders."]}
                )
            return requested
        if requested is not None and requested != acting_customer.id:
            raise CustomerNotFound(f"Customer {requested} not found.")
        return acting_customer.id

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/

        Filtering (status, customer, vendor, date range, total range) is
        handled by ``OrderFilter``; ordering by ``OrderingFilter``.
        Results are paginated.
        """
        queryset = self.filter_queryset(self.get_queryset())
        return self._paginated(request, queryset)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        try:
            order = self._service.get_order(pk, customer=self._acting_customer(request))
        except DomainError as exc:
            return domain_error_response(exc)
        serializer = OrderSerializer(order)
        return Response(serializer.data)

    @action(detail=False, methods=["get"], url_path="vendor")
    def vendor(self, request: Request) -> Response:
        """GET /api/v1/orders/vendor/

        Orders holding a sub-order of the vendor linked to the caller. Each row
        carries only that vendor's lines and its own sub-order.
        """
        acting_vendor = self._vendor_repo.get_by_user(request.user)
        if acting_vendor is None:
            return domain_error_response(VendorNotFound())
        queryset = self.filter_queryset(self._service.list_vendor_orders(acting_vendor))
        return self._paginated(
            request,
            queryset,
            serializer_class=VendorScopedOrderSerializer,
            vendor_id=acting_vendor.id,
        )

    # ------------------------------------------------------------------
    # Status Update
    # ------------------------------------------------------------------

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/orders/{pk}/

        Staff only.  Moves the order through its lifecycle.  ``cancelled``
        is accepted and behaves exactly like ``POST /orders/{id}/cancel/``.
        """
        serializer = UpdateStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        dto = UpdateStatusDTO(**serializer.validated_data)

        try:
            order = self._service.update_status(
                order_id=self._parse_id(pk),
                dto=dto,
                user=request.user,
            )
        except DomainError as exc:
            return domain_error_response(exc)

        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Cancel (dedicated action)
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post"])
    def cancel(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/cancel/

        Cancels an order and releases its reserved stock.  Customers can
        only cancel their own orders.
        """
        serializer = CancelOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            order = self._service.cancel_order(
                order_id=self._parse_id(pk),
                notes=serializer.validated_data["notes"],
                user=request.user,
                customer=self._acting_customer(request),
            )
        except DomainError as exc:
            return domain_error_response(exc)

        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Vendor sub-order update
    # ------------------------------------------------------------------

    @action(detail=True, methods=["patch"], url_path="vendor-status")
    def vendor_status(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/orders/{pk}/vendor-status/"""
        serializer = UpdateVendorOrderStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        dto = UpdateVendorOrderStatusDTO(**serializer.validated_data)

        acting_vendor = self._vendor_repo.get_by_user(request.user)
        if acting_vendor is None:
            return domain_error_response(VendorNotFound())

        try:
            order = self._service.update_vendor_order_status(
                order_id=self._parse_id(pk),
                vendor=acting_vendor,
                dto=dto,
            )
        except DomainError as exc:
            return domain_error_response(exc)

        return Response(OrderSerializer(order).data)

    @staticmethod
    def _parse_id(pk: str | None) -> UUID:
        try:
            return UUID(str(pk))
        except ValueError:
            raise OrderNotFound(f"Order {pk} not found.") from None
