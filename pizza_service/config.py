"""
config.py — Environment-driven settings for the pizza storefront service

All values are read once at import time from environment variables, with
defaults suitable for local development (MongoDB on localhost and the mock
payment gateway from `mock_services/` on port 8001).
"""

import os

APP_ENV = os.environ.get("APP_ENV", "development")
PORT = int(os.environ.get("PORT", "5000"))

# Database
MONGO_URL = os.environ.get("MONGO_URL", "mongodb://localhost:27017")
MONGO_DB_NAME = os.environ.get("MONGO_DB_NAME", "pizza")

# Comma separated list of browser origins allowed in production
CLIENT_ORIGIN = os.environ.get("CLIENT_ORIGIN", "http://localhost:5173,http://127.0.0.1:5173")
ALLOWED_ORIGINS = [o.strip() for o in CLIENT_ORIGIN.split(",") if o.strip()]

# Payment gateway (Cashfree PG REST API)
CASHFREE_BASE_URL = os.environ.get("CASHFREE_BASE_URL", "http://localhost:8001/pg")
CASHFREE_CLIENT_ID = os.environ.get("CASHFREE_CLIENT_ID", "test_client_id")
CASHFREE_CLIENT_SECRET = os.environ.get("CASHFREE_CLIENT_SECRET", "test_client_secret")
CASHFREE_API_VERSION = os.environ.get("CASHFREE_API_VERSION", "2023-08-01")
CASHFREE_CUSTOMER_PHONE = os.environ.get("CASHFREE_CUSTOMER_PHONE", "9999999999")
PAYMENT_CURRENCY = os.environ.get("PAYMENT_CURRENCY", "USD")
PAYMENT_RETURN_URL = os.environ.get(
    "PAYMENT_RETURN_URL", "http://localhost:5173/pay/callback?order_id={order_id}"
)
PAYMENT_VERIFY_ATTEMPTS = int(os.environ.get("PAYMENT_VERIFY_ATTEMPTS", "3"))
PAYMENT_VERIFY_BACKOFF = float(os.environ.get("PAYMENT_VERIFY_BACKOFF", "0.4"))

# Logging
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
LOG_FILE = os.environ.get("LOG_FILE", "")


def is_production() -> bool:
    return APP_ENV == "production"
