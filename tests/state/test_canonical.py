from __future__ import annotations

import pytest

from src.state.canonical import (
    canonical_hex_fixed_allow_0x,
    canonical_hex_to_bytes,
    canonical_json_bytes,
    domain_sep_bytes,
    sha256_hex,
)


def test_hex_is_lowercased_and_prefixed() -> None:
    assert canonical_hex_fixed_allow_0x(" 0XAbCd ", nbytes=2, name="v") == "0xabcd"
    assert canonical_hex_to_bytes("0xabcd") == b"\xab\xcd"
    for bad in ("0xabc", "0xabcg", "abcdef"):
        with pytest.raises(ValueError):
            canonical_hex_fixed_allow_0x(bad, nbytes=2, name="v")


def test_json_is_sorted_and_compact() -> None:
    assert canonical_json_bytes({"b": [1, "é"], "a": None}) == '{"a":null,"b":[1,"é"]}'.encode("utf-8")


@pytest.mark.parametrize("value", [1.5, {"x": [0.0]}, {1: "int key"}, "\ud800"])
def test_json_rejects_ambiguous_values(value) -> None:
    with pytest.raises(TypeError):
        canonical_json_bytes(value)


def test_domain_separator_layout() -> None:
    assert domain_sep_bytes("pool_address", 3) == b"pairswap:pool_address:v3\x00"
    for label in ("", "a\x00b", "é"):
        with pytest.raises(ValueError):
            domain_sep_bytes(label)
    with pytest.raises(ValueError):
        domain_sep_bytes("x", 0)
    assert sha256_hex(b"") == "0x" + "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
