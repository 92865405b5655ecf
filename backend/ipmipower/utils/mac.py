"""MAC address parsing."""

from __future__ import annotations

import re

from ipmipower.errors import MacParseError

MAC_LENGTH = 6

_MAC_RE = re.compile(r"(?i)([0-9a-f]{2}:){5}[0-9a-f]{2}")


def parse_mac(text: str) -> bytes:
    """Parse a MAC address into its 6-byte form.

    Accepts "00:11:22:33:44:55" and "00-11-22-33-44-55". Hyphens are
    rewritten to colons first, so mixed separators are fine as long as the
    result is six colon-separated hex octets.

    Raises:
        MacParseError: if the text is not a 6-octet MAC address.
    """
    normalized = text.strip().replace("-", ":")
    if not _MAC_RE.fullmatch(normalized):
        raise MacParseError(f"Invalid MAC address: {text!r}")
    return bytes.fromhex(normalized.replace(":", ""))


def format_mac(mac: bytes) -> str:
    """Render 6 bytes as lower-case colon-separated hex."""
    return ":".join(f"{b:02x}" for b in mac)
