"""TOON Codec — Package."""

from toon_codec.codec import (
    ToonDecodeError,
    ToonDecoder,
    calculate_savings,
    decode_json,
    decode_profile,
    encode_json,
    encode_profile,
    is_toon,
)

__all__ = [
    "ToonDecodeError",
    "ToonDecoder",
    "calculate_savings",
    "decode_json",
    "decode_profile",
    "encode_json",
    "encode_profile",
    "is_toon",
]
