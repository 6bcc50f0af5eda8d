"""
Stripe Testing Tool - Generate and clean up Stripe test-mode fixtures.

Supports:
- API key authentication (STRIPE_API_KEY, test-mode keys only)

Use Cases:
- Create batches of test customers, optionally attached to a test clock
- Create subscriptions for test customers
- Create test products with a default price, and archive them afterwards
- Create, advance, list and delete test clocks for time-based billing tests
- Delete the test customers generated by these tools

Every tool runs the key through the credential gate first: missing keys and
live-mode keys are refused before any request is sent.

API Reference: https://stripe.com/docs/api
"""

from __future__ import annotations

import logging
import os
import re
import time
from typing import TYPE_CHECKING, Any, Literal

import stripe
from fastmcp import FastMCP

from stripe_testing_tools.credentials.gate import (
    APP_NAME,
    CredentialGateError,
    LiveKeyPolicy,
    build_stripe_client,
)

if TYPE_CHECKING:
    from stripe_testing_tools.credentials import CredentialStoreAdapter

logger = logging.getLogger(__name__)

GENERATOR_METADATA_KEY = "generator"
MAX_CUSTOMERS_PER_CALL = 100
PRORATION_BEHAVIORS = ("create_prorations", "none", "always_invoice")
RECURRING_INTERVALS = ("day", "week", "month", "year")
_CURRENCY_RE = re.compile(r"^[a-z]{3}$")


class _StripeTestingClient:
    """Internal client wrapping test-mode Stripe calls on a gated StripeClient."""

    def __init__(self, client: stripe.StripeClient):
        self._client = client

    def _stripe(self) -> stripe.StripeClient:
        return self._client

    @staticmethod
    def _generated_by_us(obj: Any) -> bool:
        metadata = obj.metadata or {}
        return metadata.get(GENERATOR_METADATA_KEY) == APP_NAME

    # --- Customers ---

    def create_customers(
        self,
        number: int = 1,
        payment_method_id: str | None = None,
        name: str | None = None,
        email: str | None = None,
        description: str | None = None,
        test_clock_id: str | None = None,
        created: list[str] | None = None,
    ) -> list[str]:
        """Create `number` customers, appending each ID to `created` as it is made."""
        params: dict[str, Any] = {"metadata": {GENERATOR_METADATA_KEY: APP_NAME}}
        if payment_method_id:
            params["payment_method"] = payment_method_id
        if name:
            params["name"] = name
        if email:
            params["email"] = email
        if description:
            params["description"] = description
        if test_clock_id:
            params["test_clock"] = test_clock_id

        customer_ids: list[str] = created if created is not None else []
        for _ in range(number):
            customer = self._stripe().customers.create(params)
            customer_ids.append(customer.id)
        return customer_ids

    def delete_generated_customers(self, test_clock_id: str | None = None) -> list[str]:
        params: dict[str, Any] = {"limit": 100}
        if test_clock_id:
            params["test_clock"] = test_clock_id
        matching = [
            c.id
            for c in self._stripe().customers.list(params).auto_paging_iter()
            if self._generated_by_us(c)
        ]
        for customer_id in matching:
            self._stripe().customers.delete(customer_id)
        return matching

    # --- Subscriptions ---

    def create_subscription(
        self,
        customer_id: str,
        items: list[dict[str, Any]],
        proration_behavior: str | None = None,
    ) -> dict[str, Any]:
        params: dict[str, Any] = {"customer": customer_id, "items": items}
        if proration_behavior:
            params["proration_behavior"] = proration_behavior
        sub = self._stripe().subscriptions.create(params)
        return {"id": sub.id, "customer": sub.customer, "status": sub.status}

    # --- Products ---

    def create_product(
        self,
        name: str,
        description: str | None = None,
        unit_amount: int | None = None,
        currency: str = "usd",
        recurring_interval: str | None = None,
    ) -> dict[str, Any]:
        params: dict[str, Any] = {
            "name": name,
            "metadata": {GENERATOR_METADATA_KEY: APP_NAME},
        }
        if description:
            params["description"] = description
        if unit_amount is not None:
            price_data: dict[str, Any] = {"currency": currency, "unit_amount": unit_amount}
            if recurring_interval:
                price_data["recurring"] = {"interval": recurring_interval}
            params["default_price_data"] = price_data
        product = self._stripe().products.create(params)
        return {
            "id": product.id,
            "name": product.name,
            "active": product.active,
            "default_price": product.default_price,
        }

    def archive_generated_products(self, name: str | None = None) -> list[str]:
        matching = [
            p.id
            for p in self._stripe().products.list({"active": True, "limit": 100}).auto_paging_iter()
            if self._generated_by_us(p) and (name is None or p.name == name)
        ]
        for product_id in matching:
            self._stripe().products.update(product_id, {"active": False})
        return matching

    # --- Test clocks ---

    def create_test_clock(self, frozen_time: int, name: str | None = None) -> dict[str, Any]:
        params: dict[str, Any] = {"frozen_time": frozen_time}
        if name:
            params["name"] = name
        clock = self._stripe().test_helpers.test_clocks.create(params)
        return self._format_test_clock(clock)

    def advance_test_clock(self, test_clock_id: str, frozen_time: int) -> dict[str, Any]:
        clock = self._stripe().test_helpers.test_clocks.advance(
            test_clock_id, {"frozen_time": frozen_time}
        )
        return self._format_test_clock(clock)

    def list_test_clocks(self, limit: int = 10) -> dict[str, Any]:
        result = self._stripe().test_helpers.test_clocks.list({"limit": min(limit, 100)})
        return {
            "has_more": result.has_more,
            "test_clocks": [self._format_test_clock(c) for c in result.data],
        }

    def delete_test_clock(self, test_clock_id: str) -> dict[str, Any]:
        deleted = self._stripe().test_helpers.test_clocks.delete(test_clock_id)
        return {"id": deleted.id, "deleted": deleted.deleted}

    def _format_test_clock(self, c: Any) -> dict[str, Any]:
        return {
            "id": c.id,
            "name": c.name,
            "frozen_time": c.frozen_time,
            "status": c.status,
            "deletes_after": c.deletes_after,
        }


def _validate_subscription_items(items: list[dict[str, Any]]) -> str | None:
    """Return an error message for malformed subscription items, else None."""
    if not items:
        return "items must contain at least one subscription item"
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            return f"items[{index}] must be an object with 'price' and/or 'quantity'"
        unknown = set(item) - {"price", "quantity"}
        if unknown:
            return f"items[{index}] has unsupported fields: {', '.join(sorted(unknown))}"
        price = item.get("price")
        if price is not None and not str(price).startswith("price_"):
            return f"Invalid items[{index}].price. Must start with: price_"
        quantity = item.get("quantity")
        if quantity is not None and (
            isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1
        ):
            return f"Quantity in items[{index}] must be an integer of at least 1"
    return None


def register_tools(
    mcp: FastMCP,
    credentials: CredentialStoreAdapter | None = None,
    live_key_policy: LiveKeyPolicy = LiveKeyPolicy.PREFIX_SEGMENT,
) -> None:
    """Register Stripe testing tools with the MCP server."""

    def _get_api_key() -> str | None:
        """Read the Stripe key at call time, never cached between calls."""
        if credentials is not None:
            api_key = credentials.get("stripe")
            return api_key if isinstance(api_key, str) else None
        return os.getenv("STRIPE_API_KEY")

    def _get_client() -> _StripeTestingClient | dict[str, str]:
        """Get a gated Stripe client, or an error dict if the key is refused."""
        try:
            client = build_stripe_client(_get_api_key(), live_key_policy)
        except CredentialGateError as e:
            logger.warning("Refused Stripe key: %s", e.kind.value)
            return {"error": e.message}
        return _StripeTestingClient(client)

    def _stripe_error(e: stripe.StripeError) -> dict[str, Any]:
        logger.warning("Stripe API error: %s", e)
        return {"error": str(e)}

    # --- Customer Tools ---

    @mcp.tool()
    def create_stripe_test_customers(
        number: int = 1,
        payment_method_id: str | None = None,
        name: str | None = None,
        email: str | None = None,
        description: str | None = None,
        test_clock_id: str | None = None,
    ) -> dict:
        """
        Create one or more Stripe test customers.

        Args:
            number: The number of customers to create (1-100)
            payment_method_id: The payment method to attach (e.g., "pm_card_visa")
            name: The name of the customers
            email: The email of the customers
            description: The description of the customers
            test_clock_id: Test clock to attach the customers to (e.g., "clock_...")

        Returns:
            Dict with the created customer IDs, or an error. A Stripe error partway
            through a batch also carries "created_customer_ids" for the customers
            made before it.

        Example:
            create_stripe_test_customers(number=3, email="qa@example.com")
        """
        client = _get_client()
        if isinstance(client, dict):
            return client
        if isinstance(number, bool) or not isinstance(number, int):
            return {"error": "number must be an integer"}
        if number < 1 or number > MAX_CUSTOMERS_PER_CALL:
            return {"error": f"number must be between 1 and {MAX_CUSTOMERS_PER_CALL}"}
        if payment_method_id and not payment_method_id.startswith("pm_"):
            return {"error": "Invalid payment_method_id. Must start with: pm_"}
        if email and "@" not in email:
            return {"error": "Invalid email address"}
        if test_clock_id and not test_clock_id.startswith("clock_"):
            return {"error": "Invalid test_clock_id. Must start with: clock_"}
        created: list[str] = []
        try:
            customer_ids = client.create_customers(
                number,
                payment_method_id,
                name,
                email,
                description,
                test_clock_id,
                created=created,
            )
        except stripe.StripeError as e:
            error = _stripe_error(e)
            if created:
                # Customers made before the failure still exist in Stripe
                error["created_customer_ids"] = created
            return error
        logger.info("Created %d test customers", len(customer_ids))
        return {
            "customer_ids": customer_ids,
            "count": len(customer_ids),
            "message": f"Created {len(customer_ids)} customers: {', '.join(customer_ids)}",
        }

    @mcp.tool()
    def delete_stripe_test_customers(test_clock_id: str | None = None) -> dict:
        """
        Delete the test customers created by these tools.

        Only customers tagged with this server's generator metadata are deleted.

        Args:
            test_clock_id: Restrict deletion to customers on this test clock

        Returns:
            Dict with the deleted customer IDs or error
        """
        client = _get_client()
        if isinstance(client, dict):
            return client
        if test_clock_id and not test_clock_id.startswith("clock_"):
            return {"error": "Invalid test_clock_id. Must start with: clock_"}
        try:
            deleted = client.delete_generated_customers(test_clock_id)
        except stripe.StripeError as e:
            return _stripe_error(e)
        logger.info("Deleted %d test customers", len(deleted))
        return {
            "deleted": deleted,
            "count": len(deleted),
            "message": f"Deleted {len(deleted)} customers",
        }

    # --- Subscription Tools ---

    @mcp.tool()
    def create_stripe_test_subscription(
        customer: str,
        items: list[dict[str, Any]],
        proration_behavior: Literal["create_prorations", "none", "always_invoice"] | None = None,
    ) -> dict:
        """
        Create a subscription for a Stripe test customer.

        Args:
            customer: The ID of the customer to create the subscription for
            items: A list of subscription items, each {"price": "price_...", "quantity": 1}
            proration_behavior: How to handle prorations when the subscription
                items change: create_prorations, none or always_invoice

        Returns:
            Dict with the subscription ID and status or error

        Example:
            create_stripe_test_subscription("cus_123", [{"price": "price_123"}])
        """
        client = _get_client()
        if isinstance(client, dict):
            return client
        if not customer or not customer.startswith("cus_"):
            return {"error": "Invalid customer. Must start with: cus_"}
        error = _validate_subscription_items(items)
        if error:
            return {"error": error}
        if proration_behavior and proration_behavior not in PRORATION_BEHAVIORS:
            return {
                "error": f"proration_behavior must be one of: {', '.join(PRORATION_BEHAVIORS)}"
            }
        try:
            sub = client.create_subscription(customer, items, proration_behavior)
        except stripe.StripeError as e:
            return _stripe_error(e)
        logger.info("Created test subscription %s", sub["id"])
        return {
            "subscription_id": sub["id"],
            "customer": sub["customer"],
            "status": sub["status"],
            "message": f"Created subscription {sub['id']}",
        }

    # --- Product Tools ---

    @mcp.tool()
    def create_stripe_test_product(
        name: str,
        description: str | None = None,
        unit_amount: int | None = None,
        currency: str = "usd",
        recurring_interval: Literal["day", "week", "month", "year"] | None = None,
    ) -> dict:
        """
        Create a Stripe test product, optionally with a default price.

        Args:
            name: Product name
            description: Product description
            unit_amount: Price in the smallest currency unit (e.g., 999 = $9.99).
                When omitted no price is created.
            currency: Three-letter ISO currency code (default "usd")
            recurring_interval: Billing interval for a recurring price
                (day, week, month, year). Omit for a one-time price.

        Returns:
            Dict with the product ID and default price ID or error
        """
        client = _get_client()
        if isinstance(client, dict):
            return client
        if not name or not name.strip():
            return {"error": "name is required"}
        if unit_amount is not None and unit_amount < 0:
            return {"error": "unit_amount must be zero or positive"}
        currency = (currency or "").lower()
        if not _CURRENCY_RE.match(currency):
            return {"error": "currency must be a 3-letter ISO code (e.g., usd)"}
        if recurring_interval is not None:
            if recurring_interval not in RECURRING_INTERVALS:
                return {
                    "error": f"recurring_interval must be one of: {', '.join(RECURRING_INTERVALS)}"
                }
            if unit_amount is None:
                return {"error": "recurring_interval requires unit_amount"}
        try:
            product = client.create_product(
                name, description, unit_amount, currency, recurring_interval
            )
        except stripe.StripeError as e:
            return _stripe_error(e)
        message = f"Created product {product['id']}"
        if product["default_price"]:
            message += f" with price {product['default_price']}"
        logger.info(message)
        return {
            "product_id": product["id"],
            "price_id": product["default_price"],
            "message": message,
        }

    @mcp.tool()
    def archive_stripe_test_products(name: str | None = None) -> dict:
        """
        Archive active test products created by these tools.

        Args:
            name: Only archive products with exactly this name

        Returns:
            Dict with the archived product IDs or error
        """
        client = _get_client()
        if isinstance(client, dict):
            return client
        try:
            archived = client.archive_generated_products(name or None)
        except stripe.StripeError as e:
            return _stripe_error(e)
        logger.info("Archived %d test products", len(archived))
        return {
            "archived": archived,
            "count": len(archived),
            "message": f"Archived {len(archived)} products",
        }

    # --- Test Clock Tools ---

    @mcp.tool()
    def create_stripe_test_clock(frozen_time: int | None = None, name: str | None = None) -> dict:
        """
        Create a Stripe test clock.

        Args:
            frozen_time: Unix timestamp the clock starts at (default: now)
            name: Label for the clock

        Returns:
            Dict with the test clock details or error
        """
        client = _get_client()
        if isinstance(client, dict):
            return client
        if frozen_time is None:
            frozen_time = int(time.time())
        elif frozen_time <= 0:
            return {"error": "frozen_time must be a positive Unix timestamp"}
        try:
            clock = client.create_test_clock(frozen_time, name)
        except stripe.StripeError as e:
            return _stripe_error(e)
        return {**clock, "message": f"Created test clock {clock['id']}"}

    @mcp.tool()
    def advance_stripe_test_clock(test_clock_id: str, frozen_time: int) -> dict:
        """
        Advance a Stripe test clock to a later time.

        Args:
            test_clock_id: Test clock ID (e.g., "clock_1AbCdEf")
            frozen_time: Unix timestamp to advance to; must be after the current frozen time

        Returns:
            Dict with the updated test clock or error
        """
        client = _get_client()
        if isinstance(client, dict):
            return client
        if not test_clock_id or not test_clock_id.startswith("clock_"):
            return {"error": "Invalid test_clock_id. Must start with: clock_"}
        if frozen_time <= 0:
            return {"error": "frozen_time must be a positive Unix timestamp"}
        try:
            clock = client.advance_test_clock(test_clock_id, frozen_time)
        except stripe.StripeError as e:
            return _stripe_error(e)
        return {**clock, "message": f"Advancing test clock {clock['id']} to {frozen_time}"}

    @mcp.tool()
    def list_stripe_test_clocks(limit: int = 10) -> dict:
        """
        List Stripe test clocks.

        Args:
            limit: Maximum number of clocks to return (1-100, default 10)

        Returns:
            Dict with the test clocks or error
        """
        client = _get_client()
        if isinstance(client, dict):
            return client
        if limit < 1:
            return {"error": "limit must be at least 1"}
        try:
            return client.list_test_clocks(limit)
        except stripe.StripeError as e:
            return _stripe_error(e)

    @mcp.tool()
    def delete_stripe_test_clock(test_clock_id: str) -> dict:
        """
        Delete a Stripe test clock and every object attached to it.

        Args:
            test_clock_id: Test clock ID (e.g., "clock_1AbCdEf")

        Returns:
            Dict with the deletion result or error
        """
        client = _get_client()
        if isinstance(client, dict):
            return client
        if not test_clock_id or not test_clock_id.startswith("clock_"):
            return {"error": "Invalid test_clock_id. Must start with: clock_"}
        try:
            result = client.delete_test_clock(test_clock_id)
        except stripe.StripeError as e:
            return _stripe_error(e)
        logger.info("Deleted test clock %s", test_clock_id)
        return {**result, "message": f"Deleted test clock {result['id']}"}
