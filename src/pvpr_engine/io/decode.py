"""Byte decoding with a single lossy fallback.

Input files come from two kinds of producers: modern tools writing UTF-8
(often with a BOM) and Japanese Excel installations writing Shift-JIS.
"""

import logging

from pvpr_engine.core.errors import DecodingExhausted

logger = logging.getLogger(__name__)

PRIMARY_ENCODING = "utf-8-sig"
FALLBACK_ENCODING = "cp932"


def decode_bytes(
    data: bytes,
    primary: str = PRIMARY_ENCODING,
    fallback: str = FALLBACK_ENCODING,
) -> str:
    """Decode a byte buffer into text.

    The primary encoding is tried strictly. On any invalid byte sequence the
    buffer is decoded with the fallback encoding, replacing undecodable bytes,
    so the fallback itself cannot fail on content.

    Args:
        data: Raw file content
        primary: Encoding tried first, strictly
        fallback: Encoding used when the primary one fails

    Returns:
        Decoded text

    Raises:
        DecodingExhausted: If neither encoding is usable (unknown codec names)
    """
    try:
        return data.decode(primary, errors="strict")
    except UnicodeDecodeError as e:
        logger.debug("Strict %s decoding failed (%s), falling back to %s", primary, e.reason, fallback)
    except LookupError:
        logger.warning("Unknown primary encoding %r, falling back to %s", primary, fallback)

    try:
        return data.decode(fallback, errors="replace")
    except LookupError as e:
        raise DecodingExhausted(f"Could not decode input with {primary} or {fallback}: {e}") from e
