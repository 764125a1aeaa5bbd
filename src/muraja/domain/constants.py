"""Centralized constants for the review engine.

All magic numbers and scheduling defaults live here so every layer
imports from a single source of truth.
"""

from decimal import Decimal

# ---------- Quality scale ----------
MIN_QUALITY = 0
MAX_QUALITY = 5
PASSING_QUALITY = 3  # quality >= 3 counts as a successful recall

# ---------- SM-2 ----------
INITIAL_EASE_FACTOR = Decimal("2.5")
MIN_EASE_FACTOR = Decimal("1.3")
FIRST_INTERVAL_DAYS = 1
SECOND_INTERVAL_DAYS = 6
FAILED_INTERVAL_DAYS = 1

# ---------- Success rate ----------
SUCCESS_OUTCOME = Decimal(100)
FAILURE_OUTCOME = Decimal(0)

# ---------- Mastery ----------
MASTERY_MIN_SUCCESS_RATE = Decimal(90)
MASTERY_MIN_TOTAL_REVIEWS = 10
MASTERY_MIN_INTERVAL_DAYS = 30

# ---------- Due selection ----------
DEFAULT_DUE_LIMIT = 20
MAX_DUE_LIMIT = 500

# ---------- Concurrency ----------
DEFAULT_MAX_REVIEW_ATTEMPTS = 3

# ---------- Cards ----------
DEFAULT_DIFFICULTY_LEVEL = "beginner"
