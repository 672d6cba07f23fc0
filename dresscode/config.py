# dresscode/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored next to the instance folder by default
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///dresscode.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    CORS_ALLOWED_ORIGINS = [
        origin.strip()
        for origin in os.environ.get(
            "CORS_ALLOWED_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173",
        ).split(",")
        if origin.strip()
    ]

    # Payment gateway (Razorpay)
    RAZORPAY_KEY_ID = os.environ.get("RAZORPAY_KEY_ID", "")
    RAZORPAY_SECRET = os.environ.get("RAZORPAY_SECRET", "")
    PAYMENT_CURRENCY = os.environ.get("PAYMENT_CURRENCY", "INR")

    # Partner coupons are requested with a JWT signed by the partner
    COUPON_SECRET_KEY = os.environ.get("COUPON_SECRET_KEY", "dev-coupon-secret")
    COUPON_ISSUER = os.environ.get("COUPON_ISSUER", "trumsy")
    COUPON_VALIDITY_DAYS = int(os.environ.get("COUPON_VALIDITY_DAYS", "2"))

    # AWS (invoice storage + outbound email)
    AWS_REGION = os.environ.get("AWS_REGION", "ap-south-1")
    INVOICE_BUCKET = os.environ.get("INVOICE_BUCKET", "")
    MAIL_SENDER = os.environ.get("MAIL_SENDER", "no-reply@dresscode.local")
    ADMIN_EMAIL = os.environ.get("ADMIN_EMAIL", "")

    # Orders that never reach payment confirmation are purged by the sweep
    UNPAID_ORDER_TTL_HOURS = int(os.environ.get("UNPAID_ORDER_TTL_HOURS", "24"))
