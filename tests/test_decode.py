"""Test byte decoding with strict primary and lossy fallback encodings."""

import pytest

from pvpr_engine.core.errors import DecodingExhausted
from pvpr_engine.io.decode import decode_bytes


def test_valid_utf8_round_trips():
    """Test that valid UTF-8 decodes to the same text as a direct decode."""
    text = "date,pcs_1-1-1_kwh\n2025年11月1日,124.5\n"
    data = text.encode("utf-8")

    assert decode_bytes(data) == data.decode("utf-8")


def test_utf8_bom_is_stripped():
    """Test that a UTF-8 BOM does not leak into the first header name."""
    data = "﻿date,irradiation_kwhm2\n".encode("utf-8")

    assert decode_bytes(data) == "date,irradiation_kwhm2\n"


def test_shift_jis_falls_back():
    """Test that Shift-JIS content invalid as UTF-8 decodes via the fallback."""
    text = "日付,発電量\n"
    data = text.encode("cp932")

    # Make sure the sample really is invalid UTF-8
    with pytest.raises(UnicodeDecodeError):
        data.decode("utf-8")

    assert decode_bytes(data) == text


def test_fallback_never_fails_on_content():
    """Test that arbitrary invalid bytes still produce text."""
    data = b"\xff\xfe\x80\x81abc"

    result = decode_bytes(data)

    assert isinstance(result, str)
    assert result.endswith("abc")


def test_unknown_fallback_codec_exhausts():
    """Test that an unusable fallback surfaces DecodingExhausted."""
    with pytest.raises(DecodingExhausted):
        decode_bytes(b"\xff\xfe", fallback="no-such-codec")
