"""Cart JSON API."""

from __future__ import annotations

from typing import Any, Dict, Optional
from uuid import uuid4

from flask import Blueprint, current_app, jsonify, request, session

from ..common.services.cart_aggregate import CartAggregate
from ..common.utils.validators import ensure_non_negative_decimal


api_bp = Blueprint("storecart_api", __name__, url_prefix="/api")

PERSIST_WARNING = "Cart could not be saved; changes are kept for this session only."


def _components() -> Dict[str, Any]:
    return current_app.extensions["storecart_components"]


def _config():
    return current_app.config["STORECART_CONFIG"]


def _session_id() -> str:
    sid = session.get("cart_session_id")
    if not sid:
        sid = uuid4().hex
        session["cart_session_id"] = sid
    return sid


def _cart() -> CartAggregate:
    return _components()["cart_registry"].get(_session_id())


def _payload() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _cart_response(cart: CartAggregate, body: Optional[Dict[str, Any]] = None):
    body = dict(body if body is not None else cart.to_dict())
    body["currency"] = _config().currency
    if cart.last_persist_error is not None:
        body["warning"] = PERSIST_WARNING
    return jsonify(body)


def _totals(cart: CartAggregate, loyalty_discount: Any):
    return _components()["checkout_service"].compute_totals(cart.items, loyalty_discount=loyalty_discount)


@api_bp.errorhandler(ValueError)
def handle_value_error(exc: ValueError):
    return jsonify({"error": str(exc)}), 400


@api_bp.get("/cart")
def get_cart():
    return _cart_response(_cart())


@api_bp.post("/cart/items")
def add_cart_item():
    payload = _payload()
    quantity = payload.get("quantity", 1)
    cart = _cart()
    return _cart_response(cart, cart.add_item(payload, quantity))


@api_bp.patch("/cart/items/<variant_id>")
def update_cart_item(variant_id: str):
    payload = _payload()
    if "quantity" not in payload:
        return jsonify({"error": "quantity required"}), 400
    cart = _cart()
    return _cart_response(cart, cart.update_quantity(variant_id, payload["quantity"]))


@api_bp.delete("/cart/items/<variant_id>")
def remove_cart_item(variant_id: str):
    cart = _cart()
    return _cart_response(cart, cart.remove_item(variant_id))


@api_bp.delete("/cart")
def clear_cart():
    cart = _cart()
    return _cart_response(cart, cart.clear())


@api_bp.post("/cart/summary")
def cart_summary():
    cart = _cart()
    totals = _totals(cart, _payload().get("loyalty_discount", 0))
    body = cart.to_dict()
    body["totals"] = totals.to_dict()
    return _cart_response(cart, body)


@api_bp.post("/cart/payment")
def cart_payment():
    payload = _payload()
    method = str(payload.get("payment_method") or "cash").strip().lower()
    cart = _cart()
    if cart.is_empty():
        return jsonify({"error": "cart is empty"}), 400
    checkout = _components()["checkout_service"]
    totals = _totals(cart, payload.get("loyalty_discount", 0))
    # only cash needs a received amount; other methods are charged the exact total
    received = payload.get("amount_received") if method == "cash" else totals.total
    if received is None:
        return jsonify({"error": "amount_received required"}), 400
    change = checkout.compute_change(totals.total, ensure_non_negative_decimal(received, "amount_received"))
    body = {
        "payment_method": method,
        "totals": totals.to_dict(),
        "payment": change.to_dict(),
        "quick_amounts": [float(a) for a in checkout.quick_amounts(totals.total)],
    }
    if not change.is_sufficient:
        body["error"] = "Insufficient amount received"
        return jsonify(body), 400
    return jsonify(body)


@api_bp.post("/cart/checkout-complete")
def checkout_complete():
    """Called by the client once the order API accepted the order; ends the cart session."""
    session_id = _session_id()
    registry = _components()["cart_registry"]
    cart = registry.get(session_id)
    body = cart.clear()
    registry.discard(session_id)
    session.pop("cart_session_id", None)
    return _cart_response(cart, body)
