"""Stripe Testing Tool - test-mode customers, subscriptions, products and clocks."""

from .stripe_testing_tool import register_tools

__all__ = ["register_tools"]
