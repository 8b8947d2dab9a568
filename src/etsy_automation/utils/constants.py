"""Constants used throughout the Etsy automation engine."""

from __future__ import annotations


# =============================================================================
# URLs
# =============================================================================

BASE_URL = "https://www.etsy.com"
SIGNIN_URL = f"{BASE_URL}/signin"
ACCOUNT_URL = f"{BASE_URL}/your/account"
SHOPS_URL = f"{BASE_URL}/your/shops"

# Shop-scoped pages, formatted with the shop identifier
SHOP_MESSAGES_URL = f"{BASE_URL}/your/shops/{{shop}}/tools/messages"
SHOP_ORDERS_URL = f"{BASE_URL}/your/shops/{{shop}}/tools/orders"

# Generic fallbacks when the shop identifier is unknown
MESSAGES_URL = f"{BASE_URL}/messages"
SOLD_ORDERS_URL = f"{BASE_URL}/your/orders/sold"

CONVERSATION_URL = f"{BASE_URL}/conversations/{{conversation_id}}"
SOLD_ORDER_URL = f"{BASE_URL}/your/orders/sold/{{order_id}}"

# URL fragment that marks the sign-in page
SIGNIN_URL_PATTERN = "/signin"

# =============================================================================
# Browser fingerprint
# =============================================================================

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/121.0.0.0 Safari/537.36"
)
DEFAULT_VIEWPORT = (1366, 768)
ACCEPT_LANGUAGE = "en-US,en"

# =============================================================================
# Timeouts & delays
# =============================================================================

# Timeouts (in milliseconds)
DEFAULT_TIMEOUT = 30000

# Timeouts (in seconds)
POST_SUBMIT_TIMEOUT = 30.0
TWO_FACTOR_TIMEOUT = 120.0
MANUAL_LOGIN_TIMEOUT = 300.0
MANUAL_LOGIN_POLL_INTERVAL = 2.0
SELECTOR_TIMEOUT = 10.0

# Delays (in seconds)
SETTLE_DELAY = 2.0  # Client-side rendering after the page reports loaded
SHORT_DELAY = 0.5
NAVIGATION_POLL_INTERVAL = 0.5

# Human pacing (in seconds)
TYPING_DELAY_MIN = 0.10
TYPING_DELAY_MAX = 0.15

# Polling defaults (in seconds)
MESSAGE_POLL_INTERVAL = 60.0
ORDER_POLL_INTERVAL = 120.0

# =============================================================================
# Classification vocabularies
# =============================================================================

QUOTE_KEYWORDS = (
    "quote",
    "price",
    "cost",
    "how much",
    "custom",
    "3d print",
    "stl",
    "file",
)

PRINT_KEYWORDS = ("3d", "print", "stl", "file")

# Exact labels, matched case-sensitively
PROCESSING_STATUSES = frozenset({"New", "Payment confirmed"})

NEW_ORDER_STATUS = "New"
ALL_STATUSES = "all"
