"""
Rent Exemption Estimator

Decodes the host ledger's rent sysvar layout and computes the minimum
balance an account must hold to be exempt from rent collection.

Sysvar layout (17 bytes, little-endian):
  [0, 8)   u64  lamports_per_byte_year
  [8, 16)  f64  exemption_threshold (years)
  [16]     u8   burn_percent

The threshold is applied to the yearly rent as an exact rational number and
the result is truncated toward zero, which is what an integer-only decoder of
the IEEE-754 bits produces. `host_minimum_balance` keeps the host's
double-precision formula for comparison.
"""

import math
import struct
from dataclasses import dataclass
from typing import Union

from .constants import (
    ACCOUNT_STORAGE_OVERHEAD,
    DEFAULT_BURN_PERCENT,
    DEFAULT_EXEMPTION_THRESHOLD,
    DEFAULT_LAMPORTS_PER_BYTE_YEAR,
    RENT_DATA_LENGTH,
    U8_MAX,
    U64_MAX,
)
from .exceptions import DecodeError, RentOverflowError

BytesLike = Union[bytes, bytearray, memoryview]

_RENT_LAYOUT = struct.Struct("<QdB")


@dataclass(frozen=True)
class RentConfig:
    """
    Decoded rent sysvar.

    Attributes:
        lamports_per_byte_year: Rent accrued per byte of account storage per year
        exemption_threshold: Years of rent a balance must cover to be exempt
        burn_percent: Share of collected rent that is destroyed (0-100)
    """
    lamports_per_byte_year: int = DEFAULT_LAMPORTS_PER_BYTE_YEAR
    exemption_threshold: float = DEFAULT_EXEMPTION_THRESHOLD
    burn_percent: int = DEFAULT_BURN_PERCENT

    def __post_init__(self):
        if not 0 <= self.lamports_per_byte_year <= U64_MAX:
            raise ValueError(f"lamports_per_byte_year out of u64 range: {self.lamports_per_byte_year}")
        if not 0 <= self.burn_percent <= U8_MAX:
            raise ValueError(f"burn_percent out of u8 range: {self.burn_percent}")
        _check_threshold(self.exemption_threshold, ValueError)

    @classmethod
    def from_bytes(cls, data: BytesLike) -> "RentConfig":
        return decode_rent_config(data)

    def to_bytes(self) -> bytes:
        return encode_rent_config(self)

    def minimum_balance(self, data_len: int) -> int:
        """Minimum lamports for an account of `data_len` bytes to be rent exempt."""
        return apply_exemption_threshold(
            yearly_rent(data_len, self.lamports_per_byte_year),
            self.exemption_threshold,
        )

    def is_exempt(self, balance: int, data_len: int) -> bool:
        return balance >= self.minimum_balance(data_len)


def _check_threshold(threshold: float, error: type) -> None:
    if not math.isfinite(threshold):
        raise error(f"exemption_threshold must be finite, got {threshold!r}")
    if threshold < 0:
        raise error(f"exemption_threshold must be non-negative, got {threshold!r}")


def decode_rent_config(data: BytesLike) -> RentConfig:
    """
    Decode a rent sysvar buffer.

    Bytes past the first 17 are ignored.

    Raises:
        DecodeError: If the buffer is shorter than 17 bytes or the threshold
            is NaN, infinite or negative.
    """
    data = bytes(data)
    if len(data) < RENT_DATA_LENGTH:
        raise DecodeError(
            f"rent data must be at least {RENT_DATA_LENGTH} bytes, got {len(data)}"
        )

    lamports_per_byte_year, exemption_threshold, burn_percent = _RENT_LAYOUT.unpack_from(data)
    _check_threshold(exemption_threshold, DecodeError)

    return RentConfig(
        lamports_per_byte_year=lamports_per_byte_year,
        exemption_threshold=exemption_threshold,
        burn_percent=burn_percent,
    )


def encode_rent_config(config: RentConfig) -> bytes:
    return _RENT_LAYOUT.pack(
        config.lamports_per_byte_year,
        config.exemption_threshold,
        config.burn_percent,
    )


def yearly_rent(data_len: int, lamports_per_byte_year: int) -> int:
    """
    Rent owed per year by an account of `data_len` data bytes.

    Raises:
        ValueError: If `data_len` is negative.
        RentOverflowError: If the result does not fit in a u64.
    """
    if data_len < 0:
        raise ValueError(f"data_len must be non-negative, got {data_len}")

    rent = (data_len + ACCOUNT_STORAGE_OVERHEAD) * lamports_per_byte_year
    if rent > U64_MAX:
        raise RentOverflowError(
            f"yearly rent for {data_len} bytes at {lamports_per_byte_year} "
            f"lamports/byte/year exceeds u64"
        )
    return rent


def apply_exemption_threshold(yearly: int, threshold: float) -> int:
    """
    Multiply `yearly` lamports by `threshold` years and truncate.

    A double is exactly `numerator / 2**k`, so the product is computed with
    integers and never rounds up. 1019640 * 1.2 gives 1223567, not 1223568.

    Raises:
        RentOverflowError: If the result does not fit in a u64.
    """
    numerator, denominator = threshold.as_integer_ratio()
    balance = yearly * numerator // denominator
    if balance > U64_MAX:
        raise RentOverflowError(
            f"rent exemption balance for {yearly} lamports over {threshold} years exceeds u64"
        )
    return balance


def minimum_balance(data_len: int, rent_data: BytesLike) -> int:
    """
    Minimum balance for rent exemption of an account with `data_len` data bytes.

    Args:
        data_len: Size of the account's data, excluding the fixed account overhead
        rent_data: Raw rent sysvar bytes (at least 17)

    Returns:
        Lamports required for exemption

    Raises:
        DecodeError: Malformed rent data.
        RentOverflowError: u64 overflow in the intermediate or final amount.
    """
    return decode_rent_config(rent_data).minimum_balance(data_len)


estimate = minimum_balance


def host_minimum_balance(data_len: int, config: RentConfig) -> int:
    """
    The host ledger's own rent formula: `(yearly as f64 * threshold) as u64`.

    Differs from `minimum_balance` only when the double-precision product
    rounds up across an integer boundary.
    """
    yearly = yearly_rent(data_len, config.lamports_per_byte_year)
    balance = float(yearly) * config.exemption_threshold
    if balance >= 2.0**64:
        raise RentOverflowError(f"host rent exemption balance {balance} exceeds u64")
    return int(balance)
