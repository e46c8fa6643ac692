"""Basic transaction primitives: ids, output numbers, outpoints, amounts, versions."""

from __future__ import annotations

import functools
import string
from dataclasses import dataclass, field
from typing import Iterable, Optional, Union

from .util import NonStandardValue

U32_MAX = 0xFFFF_FFFF
U64_MAX = 0xFFFF_FFFF_FFFF_FFFF
I32_MIN = -(2**31)
I32_MAX = 2**31 - 1
I64_MAX = 2**63 - 1

_HEX_DIGITS = frozenset(string.hexdigits)


def _decode_hex(s: str) -> bytes:
    if len(s) % 2 != 0:
        raise ValueError(f"odd hex string length {len(s)}")
    bad = next((ch for ch in s if ch not in _HEX_DIGITS), None)
    if bad is not None:
        raise ValueError(f"invalid hex character {bad!r}")
    return bytes.fromhex(s)


def _parse_unsigned(s: str, limit: int) -> int:
    digits = s[1:] if s.startswith("+") else s
    if not digits:
        raise ValueError("cannot parse integer from empty string")
    if not all(ch in "0123456789" for ch in digits):
        raise ValueError("invalid digit found in string")
    number = int(digits)
    if number > limit:
        raise ValueError("number too large to fit in target type")
    return number


@dataclass(frozen=True, order=True)
class Txid:
    """Transaction id; bytes are kept in consensus order and shown reversed."""

    data: bytes

    def __post_init__(self) -> None:
        if not isinstance(self.data, (bytes, bytearray)) or len(self.data) != 32:
            raise ValueError("txid must be exactly 32 bytes")
        object.__setattr__(self, "data", bytes(self.data))

    @classmethod
    def coinbase(cls) -> Txid:
        """The all-zero txid used by coinbase inputs."""
        return cls(bytes(32))

    @classmethod
    def from_hex(cls, s: str) -> Txid:
        """Parse the conventional (byte-reversed) hex form."""
        raw = _decode_hex(s)
        if len(raw) != 32:
            raise ValueError(f"invalid txid length {len(raw)}, expected 32 bytes")
        return cls(raw[::-1])

    def is_coinbase(self) -> bool:
        return self.data == bytes(32)

    def to_hex(self) -> str:
        return self.data[::-1].hex()

    def __getitem__(self, index):
        return self.data[index]

    def __len__(self) -> int:
        return 32

    def __bytes__(self) -> bytes:
        return self.data

    def __str__(self) -> str:
        return self.to_hex()

    def __format__(self, spec: str) -> str:
        if spec in ("", "x"):
            return self.to_hex()
        if spec == "X":
            return self.to_hex().upper()
        return format(self.to_hex(), spec)

    def __repr__(self) -> str:
        return f"Txid({self.to_hex()})"


@dataclass(frozen=True, order=True)
class Vout:
    """Output number within a transaction."""

    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise TypeError("vout must be an integer")
        if not 0 <= self.value <= U32_MAX:
            raise ValueError(f"vout {self.value} out of u32 range")

    @classmethod
    def parse(cls, s: str) -> Vout:
        return cls(_parse_unsigned(s, U32_MAX))

    def __int__(self) -> int:
        return self.value

    def __index__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return str(self.value)


class OutpointParseError(ValueError):
    """Raised when an outpoint string cannot be parsed."""


@dataclass(frozen=True, order=True)
class Outpoint:
    """Reference to a transaction output."""

    txid: Txid
    vout: Vout

    def __post_init__(self) -> None:
        if not isinstance(self.vout, Vout):
            object.__setattr__(self, "vout", Vout(self.vout))

    @classmethod
    def coinbase(cls) -> Outpoint:
        return cls(Txid.coinbase(), Vout(0))

    @classmethod
    def parse(cls, s: str) -> Outpoint:
        """Parse ``<txid>:<vout>``."""
        txid_str, sep, vout_str = s.partition(":")
        if not sep:
            raise OutpointParseError(
                f"malformed string representation of outoint '{s}' lacking txid "
                "and vout separator ':'"
            )
        try:
            txid = Txid.from_hex(txid_str)
        except ValueError as err:
            raise OutpointParseError(f"malformed outpoint txid value. Details: {err}") from err
        try:
            vout = Vout.parse(vout_str)
        except ValueError as err:
            raise OutpointParseError(
                f"malformed outpoint output number. Details: {err}"
            ) from err
        return cls(txid, vout)

    def is_coinbase(self) -> bool:
        return self.txid.is_coinbase() and self.vout.value == 0

    def __str__(self) -> str:
        return f"{self.txid}:{self.vout}"


SatsLike = Union["Sats", int]


def _sats_value(other: SatsLike) -> int:
    if isinstance(other, Sats):
        return other.value
    if isinstance(other, bool) or not isinstance(other, int):
        raise TypeError(f"cannot use {type(other).__name__} as an amount of sats")
    if not 0 <= other <= U64_MAX:
        raise ValueError(f"amount {other} out of u64 range")
    return other


def _checked(value: int) -> int:
    if not 0 <= value <= U64_MAX:
        raise OverflowError("sats arithmetic overflow")
    return value


@functools.total_ordering
@dataclass(frozen=True, eq=False)
class Sats:
    """An amount of satoshis (unsigned 64-bit)."""

    value: int = field(default=0)

    def __post_init__(self) -> None:
        _sats_value(self.value)

    @classmethod
    def from_btc(cls, btc: int) -> Sats:
        if not 0 <= btc <= U32_MAX:
            raise ValueError(f"btc amount {btc} out of u32 range")
        return cls(btc * _BTC)

    @classmethod
    def total(cls, values: Iterable[SatsLike]) -> Sats:
        """Saturating sum of amounts."""
        result = ZERO_SATS
        for item in values:
            result = result.saturating_add(item)
        return result

    def is_zero(self) -> bool:
        return self.value == 0

    def is_non_zero(self) -> bool:
        return self.value != 0

    @property
    def sats(self) -> int:
        return self.value

    def sats_i64(self) -> int:
        if self.value > I64_MAX:
            raise OverflowError("amount of sats exceeds total bitcoin supply")
        return self.value

    def btc_round(self) -> int:
        if self.value == 0:
            return 0
        return self.value // _BTC + 2 * self.sats_rem() // _BTC

    def btc_ceil(self) -> int:
        if self.value == 0:
            return 0
        return self.value // _BTC + (1 if self.sats_rem() > 0 else 0)

    def btc_floor(self) -> int:
        return self.value // _BTC

    def sats_rem(self) -> int:
        return self.value % _BTC

    def btc_sats(self) -> tuple[int, int]:
        return self.btc_floor(), self.sats_rem()

    def checked_add(self, other: SatsLike) -> Optional[Sats]:
        result = self.value + _sats_value(other)
        return Sats(result) if result <= U64_MAX else None

    def checked_sub(self, other: SatsLike) -> Optional[Sats]:
        result = self.value - _sats_value(other)
        return Sats(result) if result >= 0 else None

    def saturating_add(self, other: SatsLike) -> Sats:
        return Sats(min(self.value + _sats_value(other), U64_MAX))

    def saturating_sub(self, other: SatsLike) -> Sats:
        return Sats(max(self.value - _sats_value(other), 0))

    def __add__(self, other: SatsLike) -> Sats:
        return Sats(_checked(self.value + _sats_value(other)))

    __radd__ = __add__

    def __sub__(self, other: SatsLike) -> Sats:
        return Sats(_checked(self.value - _sats_value(other)))

    def __mul__(self, other: SatsLike) -> Sats:
        return Sats(_checked(self.value * _sats_value(other)))

    __rmul__ = __mul__

    def __floordiv__(self, other: SatsLike) -> Sats:
        return Sats(self.value // _sats_value(other))

    def __mod__(self, other: SatsLike) -> Sats:
        return Sats(self.value % _sats_value(other))

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Sats):
            return self.value == other.value
        if isinstance(other, int) and not isinstance(other, bool):
            return self.value == other
        return NotImplemented

    def __lt__(self, other: SatsLike) -> bool:
        if isinstance(other, Sats):
            return self.value < other.value
        if isinstance(other, int) and not isinstance(other, bool):
            return self.value < other
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.value)

    def __int__(self) -> int:
        return self.value

    def __bool__(self) -> bool:
        return self.value != 0

    def __str__(self) -> str:
        return str(self.value)


_BTC = 100_000_000
ZERO_SATS = Sats(0)
Sats.ZERO = ZERO_SATS  # type: ignore[attr-defined]
Sats.BTC = Sats(_BTC)  # type: ignore[attr-defined]
Sats.MAX = Sats(U64_MAX)  # type: ignore[attr-defined]


@dataclass(frozen=True, order=True)
class TxVer:
    """Transaction version (signed 32-bit)."""

    value: int = 2

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise TypeError("transaction version must be an integer")
        if not I32_MIN <= self.value <= I32_MAX:
            raise ValueError(f"transaction version {self.value} out of i32 range")

    @classmethod
    def try_from_standard(cls, ver: int) -> TxVer:
        """Build a version, raising NonStandardValue when it is above 2."""
        result = cls(ver)
        if not result.is_standard():
            raise NonStandardValue(ver, "TxVer")
        return result

    def is_standard(self) -> bool:
        return self.value <= 2

    def __int__(self) -> int:
        return self.value


TxVer.V1 = TxVer(1)  # type: ignore[attr-defined]
TxVer.V2 = TxVer(2)  # type: ignore[attr-defined]