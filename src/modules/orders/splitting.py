"""Split priced order lines into per-vendor groups.

Groups follow the order in which each vendor first appears in the cart,
and lines keep their cart order inside a group.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple
from uuid import UUID

from modules.orders.pricing import PricedLine


@dataclass(frozen=True)
class VendorGroup:
    vendor_id: UUID
    position: int
    # (cart position, line) pairs
    lines: Tuple[Tuple[int, PricedLine], ...]


def split_by_vendor(lines: Sequence[PricedLine]) -> List[VendorGroup]:
    buckets: Dict[UUID, List[Tuple[int, PricedLine]]] = {}
    for position, line in enumerate(lines):
        buckets.setdefault(line.vendor_id, []).append((position, line))
    return [
        VendorGroup(vendor_id=vendor_id, position=index, lines=tuple(group))
        for index, (vendor_id, group) in enumerate(buckets.items())
    ]
