"""Shopping Cart aggregate (CQRS): client-held cart that is priced and checked out.

The cart is a standard CQRS aggregate (not event sourced). Each row pairs a
product with one variant selection; the same product with a different variant
selection is a different row. Row subtotals and the cart's ``item_count`` and
``total`` are recomputed after every mutation, so they never drift from the
items.
"""

import json
from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, Text

from ordering.cart.events import (
    CartCleared,
    CartItemAdded,
    CartItemRemoved,
    CartQuantityUpdated,
    CartRestored,
)
from ordering.domain import ordering


def money(amount) -> float:
    return round(float(amount), 2)


def decode_variants(raw) -> dict:
    """Selected variants are stored as a JSON object keyed by variant type."""
    if not raw:
        return {}
    if isinstance(raw, dict):
        return raw
    return json.loads(raw)


def encode_variants(variants) -> str:
    return json.dumps(variants or {}, sort_keys=True)


def effective_unit_price(original_price, discount_price, variants) -> float:
    """Discounted price when one is set (original price otherwise) plus variant adjustments."""
    base = discount_price or original_price
    adjustments = sum(float(variant.get("price_adjustment") or 0) for variant in variants.values())
    return money(base + adjustments)


@ordering.entity(part_of="ShoppingCart")
class CartItem:
    product_id = Identifier(required=True)
    name = String(max_length=255)
    slug = String(max_length=255)
    thumbnail = String(max_length=1000)
    original_price = Float(required=True, min_value=0.0)
    discount_price = Float(min_value=0.0)
    selected_variants = Text()  # JSON object: variant key -> {id, name, value, price_adjustment}
    quantity = Integer(required=True, min_value=1)
    subtotal = Float(default=0.0)
    added_at = DateTime()

    def variants(self) -> dict:
        return decode_variants(self.selected_variants)

    def unit_price(self) -> float:
        return effective_unit_price(self.original_price, self.discount_price, self.variants())

    def matches(self, product_id, variants) -> bool:
        """Same product and a structurally equal variant selection."""
        return str(self.product_id) == str(product_id) and self.variants() == (variants or {})

    def reprice(self):
        self.subtotal = money(self.quantity * self.unit_price())

    def to_snapshot(self) -> dict:
        return {
            "id": str(self.id),
            "product_id": str(self.product_id),
            "name": self.name,
            "slug": self.slug,
            "thumbnail": self.thumbnail,
            "original_price": self.original_price,
            "discount_price": self.discount_price,
            "selected_variants": self.variants(),
            "quantity": self.quantity,
            "subtotal": self.subtotal,
        }


@ordering.aggregate
class ShoppingCart:
    items = HasMany(CartItem)
    item_count = Integer(default=0)
    total = Float(default=0.0)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls):
        now = datetime.now(UTC)
        return cls(item_count=0, total=0.0, created_at=now, updated_at=now)

    # -------------------------------------------------------------------
    # Totals
    # -------------------------------------------------------------------
    def _recompute_totals(self):
        self.item_count = sum(item.quantity for item in self.items)
        self.total = money(sum(item.subtotal for item in self.items))
        self.updated_at = datetime.now(UTC)

    def _find_item(self, item_id):
        item = next((i for i in self.items if str(i.id) == str(item_id)), None)
        if item is None:
            raise ValidationError({"item_id": ["Item not found in cart"]})
        return item

    # -------------------------------------------------------------------
    # Item management
    # -------------------------------------------------------------------
    def add_item(
        self,
        product_id,
        original_price,
        quantity,
        discount_price=None,
        selected_variants=None,
        name=None,
        slug=None,
        thumbnail=None,
    ):
        """Add a product to the cart, or increase the quantity of the matching row."""
        if quantity < 1:
            raise ValidationError({"quantity": ["Quantity must be at least 1"]})

        variants = decode_variants(selected_variants)
        existing = next((i for i in self.items if i.matches(product_id, variants)), None)

        if existing:
            existing.quantity += quantity
            existing.reprice()
            item_id = str(existing.id)
        else:
            item = CartItem(
                product_id=product_id,
                name=name,
                slug=slug,
                thumbnail=thumbnail,
                original_price=original_price,
                discount_price=discount_price,
                selected_variants=encode_variants(variants),
                quantity=quantity,
                subtotal=money(quantity * effective_unit_price(original_price, discount_price, variants)),
                added_at=datetime.now(UTC),
            )
            self.add_items(item)
            item_id = str(item.id)

        self._recompute_totals()

        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                item_id=item_id,
                product_id=str(product_id),
                selected_variants=encode_variants(variants),
                quantity=quantity,
            )
        )
        return item_id

    def update_item_quantity(self, item_id, new_quantity):
        """Set the quantity of an existing cart row."""
        if new_quantity < 1:
            raise ValidationError({"new_quantity": ["Quantity must be at least 1"]})

        item = self._find_item(item_id)
        previous_quantity = item.quantity
        item.quantity = new_quantity
        item.reprice()
        self._recompute_totals()

        self.raise_(
            CartQuantityUpdated(
                cart_id=str(self.id),
                item_id=str(item_id),
                previous_quantity=previous_quantity,
                new_quantity=new_quantity,
            )
        )

    def remove_item(self, item_id):
        """Remove a row from the cart."""
        item = self._find_item(item_id)
        product_id = str(item.product_id)
        self.remove_items(item)
        self._recompute_totals()

        self.raise_(
            CartItemRemoved(
                cart_id=str(self.id),
                item_id=str(item_id),
                product_id=product_id,
            )
        )

    # -------------------------------------------------------------------
    # Cart lifecycle
    # -------------------------------------------------------------------
    def clear(self):
        """Remove every row from the cart."""
        removed = list(self.items)
        for item in removed:
            self.remove_items(item)
        self._recompute_totals()

        self.raise_(
            CartCleared(
                cart_id=str(self.id),
                items_removed_count=len(removed),
            )
        )

    def restore(self, snapshot):
        """Replace the cart contents with the rows of a persisted snapshot.

        Subtotals and totals are recomputed from the rows; the stored
        ``total`` and ``itemCount`` are ignored.
        """
        for item in list(self.items):
            self.remove_items(item)

        now = datetime.now(UTC)
        for row in snapshot.get("items") or []:
            variants = decode_variants(row.get("selected_variants"))
            kwargs = {
                "product_id": row["product_id"],
                "name": row.get("name"),
                "slug": row.get("slug"),
                "thumbnail": row.get("thumbnail"),
                "original_price": row["original_price"],
                "discount_price": row.get("discount_price"),
                "selected_variants": encode_variants(variants),
                "quantity": row["quantity"],
                "added_at": now,
            }
            if row.get("id"):
                kwargs["id"] = row["id"]
            item = CartItem(**kwargs)
            item.reprice()
            self.add_items(item)

        self._recompute_totals()

        self.raise_(
            CartRestored(
                cart_id=str(self.id),
                item_count=self.item_count,
            )
        )

    def to_snapshot(self) -> dict:
        """Serialized form kept under the ``cart`` local-storage key."""
        return {
            "items": [item.to_snapshot() for item in self.items],
            "total": self.total,
            "itemCount": self.item_count,
        }
