from statecore import State


def update_ui(total: float):
    print(f">>> Cart Total: ${total:.2f}")


# total_price reads item_count and price_per_item, so it recomputes when either changes
cart = State(
    {
        "item_count": 1,
        "price_per_item": 10.0,
        "total_price": lambda s: s.item_count * s.price_per_item,
    }
)
cart.on("total_price", update_ui, immediate=False)

print("=" * 50)

cart.item_count = 2
cart.price_per_item = 15

# Several writes inside one batch produce a single notification
cart.batch(lambda: [cart.set("item_count", 3), cart.set("price_per_item", 20)])

# ==================================================
# >>> Cart Total: $20.00
# >>> Cart Total: $30.00
# >>> Cart Total: $60.00
