"""Currency code rules and display precision."""

import re
from typing import Dict, Pattern

CURRENCY_CODE_RE: Pattern[str] = re.compile(r"^[A-Z0-9]{1,10}$")

# Minor-unit scale used when rounding converted amounts
DEFAULT_SCALE = 6
RATE_SCALE = 6
CURRENCY_SCALES: Dict[str, int] = {
    "JPY": 0,
    "TWD": 2,
    "CNY": 2,
    "USD": 2,
    "CHF": 2,
    "AUD": 2,
    "CAD": 2,
}

MAX_SOURCE_LENGTH = 50
