"""
VINvoyant Checkout Functions
============================

Shared helpers for the stateless checkout functions deployed beside this
package:

- create_checkout_session.py         → tiered-pricing Checkout Session (POST)
- create_checkout_session_legacy.py  → fixed-price Checkout Session (POST)
- verify_session.py                  → paid status of a session (GET/POST)
- submit_intake.py                   → paid confirmation + intake form relay (POST)
- dns_upsert.py                      → CLI applying Stripe custom-domain DNS records

Modules under this package:

- logger.py         → structured JSON logging
- config.py         → per-invocation settings built from the environment
- secrets.py        → AWS Secrets Manager lookup for the Stripe key
- stripe_client.py  → Checkout Session create/retrieve
- pricing.py        → tiered and fixed line-item pricing
- http.py           → event parsing, origin and request-ID helpers
- result.py         → Ok / Err handler results and HTTP responses
- non_critical.py   → best-effort dependency calls

Environment variables expected:
  • STRIPE_SECRET_KEY          - Stripe secret key (or STRIPE_SECRET_NAME)
  • STRIPE_SECRET_NAME         - Secrets Manager secret holding the key (optional)
  • URL / DEPLOY_PRIME_URL     - Site origin fallback
  • ENABLE_TIERED_PRICING      - 0/false/no/off disables tiered pricing
  • STRIPE_TIERED_PRICE_IDS    - JSON {tier: {service: price_id}} (optional)
  • STRIPE_PRICE_ID            - Fixed Price ID (legacy pricing)
  • UNIT_AMOUNT, CURRENCY, PRODUCT_NAME, PRODUCT_DESCRIPTION - inline legacy price
  • CHECKOUT_MODE              - Checkout mode (default: payment)
  • HTTP_TIMEOUT_SECONDS       - Outbound timeout for non-Stripe calls (default: 10)
  • LOG_LEVEL                  - Log verbosity (default: INFO)
"""

__version__ = "1.0.0"
__author__ = "VINvoyant Engineering"
