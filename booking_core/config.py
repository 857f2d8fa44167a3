import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

# Falls back to a local SQLite file so the API can boot without Postgres
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./booking_core.db")

# Firebase Configuration (identity + push notifications)
FIREBASE_PROJECT_ID = os.getenv("FIREBASE_PROJECT_ID")
FIREBASE_CREDENTIALS_PATH = os.getenv("FIREBASE_CREDENTIALS_PATH")

# Stripe Connect Configuration (payouts + refunds)
STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY")
PAYOUT_CURRENCY = os.getenv("PAYOUT_CURRENCY", "usd")

# Booking confirmation workflow
# How long a facility owner has to confirm/decline before the sweep auto-confirms
BOOKING_CONFIRMATION_WINDOW_MINUTES = int(os.getenv("BOOKING_CONFIRMATION_WINDOW_MINUTES", "5"))
# How often the worker looks for overdue pending bookings
EXPIRY_SWEEP_INTERVAL_SECONDS = int(os.getenv("EXPIRY_SWEEP_INTERVAL_SECONDS", "60"))

DEFAULT_DECLINE_REASON = "Slot no longer available"
BLOCKED_SLOT_DECLINE_REASON = "Slot blocked by facility"
