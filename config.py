import os
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()

DEFAULT_CREDIT_CARD_ROSTER = [
    "Coral GPay CC",
    "MMT Mastercard",
    "Coral Paytm CC",
    "SBI Elite VISA 8359",
]

DEFAULT_ALLOWED_ORIGINS = ["http://localhost:3000", "http://localhost:3001"]


def _split_list(raw: Optional[str], default: List[str]) -> List[str]:
    if not raw:
        return list(default)
    items = [item.strip() for item in raw.split(",")]
    return [item for item in items if item]


DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_NAME = os.getenv("DATABASE_NAME")
STORE_TIMEOUT_MS = int(os.getenv("STORE_TIMEOUT_MS", 5000))

# Card identifiers are matched exactly against a transaction's "mode"
CREDIT_CARD_ROSTER = _split_list(os.getenv("CREDIT_CARD_ROSTER"), DEFAULT_CREDIT_CARD_ROSTER)

ALLOWED_ORIGINS = _split_list(os.getenv("ALLOWED_ORIGINS"), DEFAULT_ALLOWED_ORIGINS)
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
PORT = int(os.getenv("PORT", 8000))
