"""
Stripe tool credentials.
Contains the test-mode secret key used by the Stripe testing tools.
"""

from .base import CredentialSpec

STRIPE_CREDENTIALS = {
    "stripe": CredentialSpec(
        env_var="STRIPE_API_KEY",
        tools=[
            "create_stripe_test_customers",
            "delete_stripe_test_customers",
            "create_stripe_test_subscription",
            "create_stripe_test_product",
            "archive_stripe_test_products",
            "create_stripe_test_clock",
            "advance_stripe_test_clock",
            "list_stripe_test_clocks",
            "delete_stripe_test_clock",
        ],
        required=True,
        startup_required=False,
        help_url="https://stripe.com/docs/keys",
        description="Stripe test-mode secret key for authenticating API requests",
        api_key_instructions="""To get your Stripe test API key:
1. Log in to the Stripe Dashboard at https://dashboard.stripe.com
2. Switch the dashboard to Test mode
3. Navigate to Developers -> API keys
4. Copy the Secret key (starts with sk_test_) or a restricted key (rk_test_)
Note: live keys (sk_live_*, rk_live_*) are always refused by these tools""",
        health_check_endpoint="https://api.stripe.com/v1/balance",
        health_check_method="GET",
        credential_id="stripe",
        credential_key="api_key",
    ),
}
