"""Checkout: shipping validation and order placement"""

import pytest

from storefront.models import ShippingDetails
from storefront.services.backend_client import BackendError
from storefront.services.checkout import ShippingInvalid, place_order, validate_shipping
from storefront.utils.errors import AuthenticationRequired, GenericError, ValidationError


def shipping(**overrides) -> ShippingDetails:
    fields = {
        "name": "Asha Rao",
        "email": "asha@example.com",
        "phone": "+91 98765 43210",
        "address": "12 MG Road",
        "city": "Bengaluru",
        "zip_code": "560001",
    }
    fields.update(overrides)
    return ShippingDetails(**fields)


def test_valid_shipping_has_no_errors():
    assert validate_shipping(shipping()) == {}


def test_shipping_required_fields():
    errors = validate_shipping(ShippingDetails())

    assert {name: e.message for name, e in errors.items()} == {
        "name": "Name is required",
        "email": "Email is required",
        "address": "Address is required",
        "city": "City is required",
        "zip_code": "ZIP code is required",
    }


def test_shipping_email_format():
    errors = validate_shipping(shipping(email="asha@example"))

    assert errors["email"].message == "Email is invalid"


@pytest.mark.asyncio
async def test_empty_cart_is_rejected(cart_store, fake_backend):
    with pytest.raises(ValidationError):
        await place_order(cart_store, fake_backend, shipping())

    assert fake_backend.calls == []


@pytest.mark.asyncio
async def test_invalid_shipping_is_rejected(cart_store, fake_backend, lamp):
    cart_store.add_item(lamp)

    with pytest.raises(ShippingInvalid) as exc_info:
        await place_order(cart_store, fake_backend, shipping(city=""))

    assert set(exc_info.value.errors) == {"city"}
    assert fake_backend.calls == []
    assert not cart_store.cart.is_empty


@pytest.mark.asyncio
async def test_order_placed_and_cart_cleared(cart_store, fake_backend, lamp, earbuds):
    cart_store.add_item(lamp, 2)
    cart_store.add_item(earbuds, 1)

    confirmation = await place_order(cart_store, fake_backend, shipping())

    items = fake_backend.calls[0][1][0]
    assert [(i.productId, i.quantity) for i in items] == [(lamp.id, 2), (earbuds.id, 1)]
    assert confirmation.order_id == fake_backend.order_id
    assert confirmation.subtotal == 2 * lamp.price + earbuds.price
    assert confirmation.item_count == 3
    assert cart_store.cart.is_empty


@pytest.mark.asyncio
async def test_rejected_order_keeps_cart(cart_store, fake_backend, lamp):
    cart_store.add_item(lamp, 2)
    fake_backend.errors["create_order"] = BackendError("Insufficient stock for 3D Moon Lamp")

    with pytest.raises(GenericError) as exc_info:
        await place_order(cart_store, fake_backend, shipping())

    assert exc_info.value.message == "Insufficient stock for 3D Moon Lamp"
    assert cart_store.cart.find(lamp.id).quantity == 2


@pytest.mark.asyncio
async def test_anonymous_order_asks_to_sign_in(cart_store, fake_backend, lamp):
    cart_store.add_item(lamp)
    fake_backend.errors["create_order"] = BackendError("Unauthorized: Only users can perform this action")

    with pytest.raises(AuthenticationRequired):
        await place_order(cart_store, fake_backend, shipping())
