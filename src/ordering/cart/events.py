"""Domain events for the ShoppingCart aggregate."""

from protean.fields import Identifier, Integer, Text

from ordering.domain import ordering


@ordering.event(part_of="ShoppingCart")
class CartItemAdded:
    """A product was added to the shopping cart."""

    __version__ = "v1"

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)
    product_id = Identifier(required=True)
    selected_variants = Text()  # JSON object: variant key -> variant
    quantity = Integer(required=True)


@ordering.event(part_of="ShoppingCart")
class CartQuantityUpdated:
    """The quantity of a cart item was changed."""

    __version__ = "v1"

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)


@ordering.event(part_of="ShoppingCart")
class CartItemRemoved:
    """An item was removed from the shopping cart."""

    __version__ = "v1"

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)
    product_id = Identifier(required=True)


@ordering.event(part_of="ShoppingCart")
class CartCleared:
    """All items were removed from the cart (explicitly or after an order was placed)."""

    __version__ = "v1"

    cart_id = Identifier(required=True)
    items_removed_count = Integer(required=True)


@ordering.event(part_of="ShoppingCart")
class CartRestored:
    """The cart was rebuilt from a persisted snapshot."""

    __version__ = "v1"

    cart_id = Identifier(required=True)
    item_count = Integer(required=True)
