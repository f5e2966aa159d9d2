import random
import unittest

from backend.models import LineItem
from ordering.cart import (
    EMPTY_CART,
    Cart,
    has_any_selection,
    line_items,
    mutate,
    quantity,
)


class CartTestCase(unittest.TestCase):
    def test_mutate_adds_missing_item(self):
        cart = mutate(EMPTY_CART, "P1", "products", 1)
        self.assertEqual(dict(cart.products), {"P1": 1})
        self.assertEqual(dict(cart.options), {})

    def test_mutate_returns_new_cart_and_leaves_old_alone(self):
        before = mutate(EMPTY_CART, "P1", "products", 2)
        after = mutate(before, "P1", "products", 1)
        self.assertIsNot(before, after)
        self.assertEqual(before.products["P1"], 2)
        self.assertEqual(after.products["P1"], 3)
        self.assertEqual(EMPTY_CART, Cart())

    def test_cart_mappings_are_read_only(self):
        cart = mutate(EMPTY_CART, "P1", "products", 1)
        with self.assertRaises(TypeError):
            cart.products["P1"] = 5

    def test_dropping_to_zero_removes_the_key(self):
        cart = mutate(EMPTY_CART, "P1", "products", 2)
        cart = mutate(cart, "P1", "products", -2)
        self.assertNotIn("P1", cart.products)
        self.assertEqual(quantity(cart, "P1", "products"), 0)

    def test_dropping_below_zero_removes_the_key(self):
        cart = mutate(EMPTY_CART, "O1", "options", 1)
        cart = mutate(cart, "O1", "options", -5)
        self.assertNotIn("O1", cart.options)

    def test_negative_delta_on_missing_item_is_a_noop(self):
        cart = mutate(EMPTY_CART, "P1", "products", -1)
        self.assertEqual(cart, EMPTY_CART)

    def test_bulk_delta(self):
        cart = mutate(EMPTY_CART, "P1", "products", 12)
        self.assertEqual(quantity(cart, "P1", "products"), 12)

    def test_kinds_are_independent(self):
        cart = mutate(EMPTY_CART, "X", "products", 1)
        cart = mutate(cart, "X", "options", 3)
        self.assertEqual(quantity(cart, "X", "products"), 1)
        self.assertEqual(quantity(cart, "X", "options"), 3)

    def test_increment_then_decrement_restores_cart(self):
        start = mutate(mutate(EMPTY_CART, "P1", "products", 2), "O1", "options", 1)
        for item_id, kind in (("P1", "products"), ("P2", "products"), ("O1", "options")):
            for magnitude in (1, 3):
                bumped = mutate(start, item_id, kind, magnitude)
                self.assertEqual(mutate(bumped, item_id, kind, -magnitude), start)

    def test_no_non_positive_quantity_is_ever_stored(self):
        rng = random.Random(1234)
        cart = EMPTY_CART
        for _ in range(2000):
            kind = rng.choice(["products", "options"])
            item_id = rng.choice(["a", "b", "c"])
            cart = mutate(cart, item_id, kind, rng.randint(-4, 4))
            for q in list(cart.products.values()) + list(cart.options.values()):
                self.assertGreater(q, 0)

    def test_unknown_kind_rejected(self):
        with self.assertRaises(ValueError):
            mutate(EMPTY_CART, "P1", "drinks", 1)

    def test_constructing_with_zero_quantity_rejected(self):
        with self.assertRaises(ValueError):
            Cart(products={"P1": 0})

    def test_has_any_selection(self):
        self.assertFalse(has_any_selection(EMPTY_CART))
        self.assertTrue(has_any_selection(mutate(EMPTY_CART, "P1", "products", 1)))
        self.assertTrue(has_any_selection(mutate(EMPTY_CART, "O1", "options", 1)))

    def test_line_items(self):
        cart = mutate(mutate(EMPTY_CART, "P1", "products", 2), "P2", "products", 1)
        self.assertEqual(
            line_items(cart, "products"),
            [LineItem("P1", 2), LineItem("P2", 1)],
        )
        self.assertEqual(line_items(cart, "options"), [])


if __name__ == "__main__":
    unittest.main()
