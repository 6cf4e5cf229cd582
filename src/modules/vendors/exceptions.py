"""Vendor domain exceptions."""

from __future__ import annotations

from modules.core.exceptions import NotFoundError


class VendorNotFound(NotFoundError):
    """The acting user has no vendor profile, or the vendor was archived."""

    code = "vendor_not_found"
    default_message = "Vendor not found."
