"""
Guest identifier and slug helpers
"""

import random
import re
import time
from typing import Iterable

SLUG_FALLBACK = "guest"

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"
_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def _to_base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, rem = divmod(number, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def new_id() -> str:
    """Random base-36 prefix plus the tail of the millisecond clock.

    Uses the plain ``random`` module so it works wherever the app is hosted.
    """
    prefix = "".join(random.choice(_BASE36) for _ in range(8))
    millis = _to_base36(int(time.time() * 1000))
    return prefix + millis[4:]


def slugify(name: str) -> str:
    slug = _NON_ALNUM.sub("-", name.strip().lower()).strip("-")
    return slug or SLUG_FALLBACK


def unique_slug(candidate: str, existing_slugs: Iterable[str]) -> str:
    """Return ``candidate`` or the first ``candidate-N`` not already taken.

    Batch callers pass a set they keep adding to, so slugs handed out
    earlier in the same batch count as taken.
    """
    taken = existing_slugs if isinstance(existing_slugs, (set, frozenset)) else set(existing_slugs)
    slug = candidate
    counter = 1
    while slug in taken:
        slug = f"{candidate}-{counter}"
        counter += 1
    return slug
