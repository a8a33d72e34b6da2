from __future__ import annotations

import re
from typing import Iterable

TELEGRAM_TEXT_LIMIT = 4000


def only_digits(s: str) -> str:
    return re.sub(r"[^0-9]", "", s or "")


def is_valid_phone_format(s: str) -> bool:
    # +7XXXXXXXXXX, 8XXXXXXXXXX or 9XXXXXXXXX; spaces, dashes and brackets allowed
    d = only_digits(s)
    return (len(d) == 11 and d[0] in ("7", "8")) or (len(d) == 10 and d[0] == "9")


def normalize_phone(s: str) -> str | None:
    """Normalize a RU phone to ``+7XXXXXXXXXX``; ``None`` if it is not one."""
    if not is_valid_phone_format(s):
        return None
    d = only_digits(s)
    if len(d) == 10:
        return "+7" + d
    return "+7" + d[1:]


def truncate(text: str, limit: int = 30) -> str:
    return text if len(text) <= limit else text[: limit - 3] + "..."


def split_blocks(blocks: Iterable[str], limit: int = TELEGRAM_TEXT_LIMIT, sep: str = "\n\n") -> list[str]:
    """Join text blocks into messages no longer than ``limit``.

    A block is never split unless it alone exceeds the limit.
    """
    parts: list[str] = []
    current = ""
    for block in blocks:
        while len(block) > limit:
            if current:
                parts.append(current)
                current = ""
            parts.append(block[:limit])
            block = block[limit:]
        candidate = f"{current}{sep}{block}" if current else block
        if len(candidate) > limit:
            parts.append(current)
            current = block
        else:
            current = candidate
    if current:
        parts.append(current)
    return parts
