"""Tests for the cart engine."""

import random
from decimal import Decimal

import pytest
from pydantic import ValidationError

from storefront_server.cart import CartEngine
from storefront_server.models import Product
from storefront_server.offers import FREE_COFFEE


def add_times(cart: CartEngine, product: Product, times: int) -> None:
    for _ in range(times):
        cart.add(product)


class TestAdd:
    def test_first_add_creates_line_with_quantity_one(self, cart, coke):
        cart.add(coke)

        assert len(cart.lines) == 1
        assert cart.lines[0].product == coke
        assert cart.lines[0].quantity == 1

    def test_adding_twice_increments_single_line(self, cart, bananas):
        cart.add(bananas)
        cart.add(bananas)

        assert len(cart.lines) == 1
        assert cart.lines[0].quantity == 2

    def test_lines_keep_first_insertion_order(self, cart, coke, croissant, bananas):
        cart.add(croissant)
        cart.add(coke)
        cart.add(croissant)
        cart.add(bananas)

        assert [line.product.id for line in cart.lines] == [croissant.id, coke.id, bananas.id]

    def test_add_does_not_check_availability(self, cart, bananas):
        add_times(cart, bananas, bananas.available + 2)

        assert cart.quantity_of(bananas.id) == 5


class TestSetQuantity:
    def test_replaces_quantity(self, cart, croissant):
        cart.add(croissant)
        cart.set_quantity(croissant.id, 4)

        assert cart.quantity_of(croissant.id) == 4
        assert cart.offer_lines[0].quantity == 1

    @pytest.mark.parametrize("quantity", [0, -1, -10])
    def test_non_positive_quantity_removes_line(self, cart, coke, quantity):
        cart.add(coke)
        cart.set_quantity(coke.id, quantity)

        assert cart.find_line(coke.id) is None
        assert cart.lines == ()

    def test_absent_product_is_a_no_op(self, cart, coke):
        cart.add(coke)
        before = cart.snapshot()

        cart.set_quantity(12345, 3)

        assert cart.snapshot() == before

    def test_set_zero_is_equivalent_to_remove(self, coke, croissant):
        first = CartEngine()
        second = CartEngine()
        for engine in (first, second):
            add_times(engine, coke, 6)
            add_times(engine, croissant, 3)

        first.set_quantity(coke.id, 0)
        second.remove(coke.id)

        assert first.snapshot() == second.snapshot()
        assert first.find_line(coke.id) is None


class TestRemoveAndClear:
    def test_remove_drops_line_and_its_offer(self, cart, coke):
        add_times(cart, coke, 6)
        cart.remove(coke.id)

        assert cart.lines == ()
        assert cart.offer_lines == ()

    def test_remove_absent_product_raises_nothing(self, cart):
        cart.remove(42)

        assert cart.is_empty()

    def test_clear_empties_populated_cart(self, cart, coke, croissant):
        add_times(cart, coke, 7)
        add_times(cart, croissant, 3)

        cart.clear()

        assert cart.lines == ()
        assert cart.offer_lines == ()
        assert cart.total_item_count() == 0
        assert cart.total() == Decimal("0.00")


class TestOffersAndTotals:
    def test_five_cokes_give_no_offer(self, cart, coke):
        add_times(cart, coke, 5)

        assert cart.offer_lines == ()

    def test_six_cokes_give_one_free(self, cart, coke):
        add_times(cart, coke, 6)

        assert len(cart.offer_lines) == 1
        offer = cart.offer_lines[0]
        assert offer.quantity == 1
        assert offer.offer_type == "Buy 6 get 1 free"
        assert cart.subtotal() == Decimal("6.00")
        assert cart.discount() == Decimal("1.00")
        assert cart.total() == Decimal("5.00")
        assert cart.total_item_count() == 7

    def test_seven_croissants_give_two_free_coffees(self, cart, croissant):
        cart.add(croissant)
        cart.set_quantity(croissant.id, 7)

        assert len(cart.offer_lines) == 1
        assert cart.offer_lines[0].product == FREE_COFFEE
        assert cart.offer_lines[0].quantity == 2
        assert cart.subtotal() == Decimal("14.00")
        assert cart.discount() == Decimal("0.00")
        assert cart.total() == Decimal("14.00")
        assert cart.total_item_count() == 9

    def test_apply_offers_is_idempotent(self, cart, coke, croissant):
        add_times(cart, coke, 12)
        add_times(cart, croissant, 6)
        before = cart.offer_lines

        cart.apply_offers()
        cart.apply_offers()

        assert cart.offer_lines == before

    def test_subtotal_is_exact(self, cart):
        dime = Product(id=50, name="Penny sweet", price="£0.10", available=100)
        add_times(cart, dime, 30)

        assert cart.subtotal() == Decimal("3.00")

    def test_snapshot_matches_queries(self, cart, coke, croissant):
        add_times(cart, coke, 6)
        add_times(cart, croissant, 3)

        snapshot = cart.snapshot()

        assert snapshot.lines == cart.lines
        assert snapshot.offer_lines == cart.offer_lines
        assert snapshot.subtotal == cart.subtotal()
        assert snapshot.discount == cart.discount()
        assert snapshot.total == cart.total()
        assert snapshot.item_count == cart.total_item_count()


class TestReadOnlyViews:
    def test_lines_are_immutable(self, cart, coke):
        cart.add(coke)

        with pytest.raises(ValidationError):
            cart.lines[0].quantity = 99

        assert cart.quantity_of(coke.id) == 1

    def test_snapshot_does_not_follow_later_changes(self, cart, coke):
        cart.add(coke)
        snapshot = cart.snapshot()

        cart.add(coke)

        assert snapshot.lines[0].quantity == 1
        assert cart.quantity_of(coke.id) == 2

    def test_known_products_come_from_construction(self, coke, croissant):
        engine = CartEngine(products=[coke, croissant])

        assert engine.known_products == (coke, croissant)
        assert engine.is_empty()


class TestRandomSequences:
    def test_invariants_hold_for_random_operations(self, coke, croissant, bananas):
        rng = random.Random(1234)
        products = [coke, croissant, bananas]
        cart = CartEngine()

        for _ in range(500):
            product = rng.choice(products)
            action = rng.choice(["add", "set", "remove"])
            if action == "add":
                cart.add(product)
            elif action == "set":
                cart.set_quantity(product.id, rng.randint(-2, 15))
            else:
                cart.remove(product.id)

            ids = [line.product.id for line in cart.lines]
            assert len(ids) == len(set(ids))
            assert all(line.quantity > 0 for line in cart.lines)
            assert cart.total() == cart.subtotal() - cart.discount()
            assert cart.total() >= 0
            assert cart.total_item_count() == sum(line.quantity for line in cart.lines) + sum(
                offer.quantity for offer in cart.offer_lines
            )


def test_negative_price_products_cannot_be_built():
    with pytest.raises(ValidationError):
        Product(id=1, name="Coca-Cola", price="£-1.00", available=10)
