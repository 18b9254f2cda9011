"""
Centralised configuration constants and environment helpers.
"""

import os
import sys

from dotenv import load_dotenv

load_dotenv()

# ── Query defaults ───────────────────────────────────────────────────
DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
FEATURED_NEWS_LIMIT = 5

# Filter value meaning "no constraint" for that key.
FILTER_SENTINEL = "all"

# ── Location scopes ──────────────────────────────────────────────────
SCOPE_ALL = "all"

# Each region maps to the display names a record's city may carry.
REGION_NAMES = {
    "hanoi": ("Hà Nội", "Hanoi", "Ha Noi"),
    "thai-nguyen": ("Thái Nguyên", "Thai Nguyen"),
}

SCOPE_DISPLAY_NAMES = {
    SCOPE_ALL: "Toàn quốc",
    "hanoi": "Hà Nội",
    "thai-nguyen": "Thái Nguyên",
}

# ── Built-in user registry (used when no database is configured) ─────
DEFAULT_USER_CONFIGS = [
    {
        "address": "0x335145400C12958600C0542F9180e03B917F7BbB",
        "role": "super-admin",
        "location_scope": "all",
        "name": "Quản trị viên hệ thống",
        "organization": "Bộ Công an - Cục CSGT",
    },
    {
        "address": "0xE083813Ddd4A50ACA941db0ddcDdF10C5A9aee04",
        "role": "regional-admin",
        "location_scope": "hanoi",
        "name": "Quản trị viên Hà Nội",
        "organization": "Công an TP. Hà Nội",
    },
    {
        "address": "0xF2438715BBF8C01d4355690cfbC66558a22dEC11",
        "role": "regional-admin",
        "location_scope": "thai-nguyen",
        "name": "Quản trị viên Thái Nguyên",
        "organization": "Công an tỉnh Thái Nguyên",
    },
]

# Refuse logins from wallets missing in the registry instead of granting
# viewer access. Off unless explicitly enabled.
DENY_UNKNOWN_IDENTITIES = os.getenv("DENY_UNKNOWN_IDENTITIES", "").lower() in {"1", "true", "yes"}

# ── Sample data ──────────────────────────────────────────────────────
SEED = int(os.getenv("SEED", "42"))
SAMPLE_CITIES = [
    "Hà Nội", "TP.HCM", "Đà Nẵng", "Hải Phòng", "Cần Thơ",
    "Nghệ An", "Thanh Hóa", "Thái Nguyên", "Bình Dương", "Đồng Nai",
]

# ── API server ───────────────────────────────────────────────────────
SECRET_KEY = os.getenv("JWT_SECRET_KEY", "dev-secret-key-change-in-production")
TOKEN_EXPIRY_HOURS = 24
MAX_PREVIEW_ROWS = 20


def get_env(name: str) -> str:
    """Return an environment variable or exit with an error message."""
    value = os.getenv(name)
    if not value:
        print(f"ERROR: env var {name} is not set", file=sys.stderr)
        sys.exit(1)
    return value
