# python
"""tests/test_units.py"""
from dropshare.units import format_size


def test_bytes_below_one_kib():
    assert format_size(0) == "0 B"
    assert format_size(1023) == "1023 B"


def test_binary_units():
    assert format_size(1024) == "1.00 KiB"
    assert format_size(1536) == "1.50 KiB"
    assert format_size(5 * 1024 ** 2) == "5.00 MiB"
    assert format_size(3 * 1024 ** 3) == "3.00 GiB"
    assert format_size(2 * 1024 ** 4) == "2.00 TiB"
