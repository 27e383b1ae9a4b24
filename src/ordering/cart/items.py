"""Cart mutations: commands accepted by the cart store.

Quantity bounds are enforced here, at the command boundary, before a
mutation reaches the aggregate.
"""

from protean.fields import Float, Identifier, Integer, String, Text

from ordering.domain import ordering


@ordering.command(part_of="ShoppingCart")
class AddToCart:
    product_id = Identifier(required=True)
    name = String(max_length=255)
    slug = String(max_length=255)
    thumbnail = String(max_length=1000)
    original_price = Float(required=True, min_value=0.0)
    discount_price = Float(min_value=0.0)
    selected_variants = Text()  # JSON object: variant key -> variant
    quantity = Integer(required=True, min_value=1)


@ordering.command(part_of="ShoppingCart")
class UpdateCartQuantity:
    item_id = Identifier(required=True)
    new_quantity = Integer(required=True, min_value=1)


@ordering.command(part_of="ShoppingCart")
class RemoveFromCart:
    item_id = Identifier(required=True)


@ordering.command(part_of="ShoppingCart")
class ClearCart:
    reason = String(max_length=50, default="requested")


@ordering.command(part_of="ShoppingCart")
class LoadCart:
    """Rebuild the cart from a persisted ``{items, total, itemCount}`` snapshot."""

    snapshot = Text(required=True)  # JSON
