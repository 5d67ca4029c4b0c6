"""
Key Codec.

Tickets and prizes share the key scheme ``<shopTag>-<suffix>``.
Suffixes never contain the separator, so the shop tag of any key is
the text before its last separator.
"""
import re
from typing import Tuple


SEPARATOR = "-"
SHOP_TAG_LENGTH = 5
SUFFIX_BYTES = 3

CODE_PATTERN = re.compile(r"^(?P<tag>.+)-(?P<suffix>[0-9A-F]{6})$")

# highest code point; a prefix ending with it has no successor
_MAX_CHAR = 0x10FFFF


def shop_tag_from_email(email: str) -> str:
    """Default shop tag: up to 5 leading characters of the local-part, lowercased."""
    local_part = email.split("@")[0]
    return local_part[:SHOP_TAG_LENGTH].lower()


def build_code(shop_tag: str, suffix: str) -> str:
    return f"{shop_tag}{SEPARATOR}{suffix}"


def parse_code(code: str) -> Tuple[str, str]:
    """Split a key into ``(shop_tag, suffix)``.

    Raises:
        ValueError: if the key has no separator or an empty part.
    """
    shop_tag, sep, suffix = code.rpartition(SEPARATOR)
    if not sep or not shop_tag or not suffix:
        raise ValueError(f"Invalid key: {code!r}")
    return shop_tag, suffix


def shop_prefix(shop_tag: str) -> str:
    """Prefix shared by every key owned by ``shop_tag``."""
    return f"{shop_tag}{SEPARATOR}"


def is_ticket_code(code: str) -> bool:
    return CODE_PATTERN.match(code) is not None


def prefix_bounds(prefix: str) -> Tuple[str, str]:
    """
    Lexicographic ``[start, stop)`` bounds covering every string starting with prefix.

    ``stop`` is the prefix with its last character incremented by one
    code point, so ``start <= key < stop`` holds exactly for the keys
    beginning with ``prefix``.

    Raises:
        ValueError: on an empty prefix or one ending with the highest code point.
    """
    if not prefix:
        raise ValueError("Prefix must be a non-empty string")
    head, tail = prefix[:-1], prefix[-1]
    if ord(tail) >= _MAX_CHAR:
        raise ValueError(
            f"Prefix {prefix!r} ends with the highest code point and has no upper bound"
        )
    return prefix, head + chr(ord(tail) + 1)
