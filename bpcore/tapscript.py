"""Tapret commitment data and the tapscript leaf that carries it."""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass

TAPRET_SCRIPT_COMMITMENT_PREFIX = bytes([0x61] * 29 + [0x6A, 0x21])
"""29 ``OP_NOP`` opcodes followed by ``OP_RETURN`` and ``OP_PUSHBYTES_33``."""

OP_NOP = 0x61
OP_RETURN = 0x6A
MPC_COMMITMENT_SIZE = 32
TAPRET_COMMITMENT_SIZE = 33


@dataclass(frozen=True, order=True)
class TapretCommitment:
    """A multi-protocol commitment together with the nonce placing it in the tree."""

    mpc: bytes
    nonce: int = 0

    def __post_init__(self) -> None:
        if not isinstance(self.mpc, (bytes, bytearray, memoryview)):
            raise TypeError("mpc commitment must be bytes")
        mpc = bytes(self.mpc)
        if len(mpc) != MPC_COMMITMENT_SIZE:
            raise ValueError(
                f"mpc commitment must be {MPC_COMMITMENT_SIZE} bytes, got {len(mpc)}"
            )
        object.__setattr__(self, "mpc", mpc)
        if isinstance(self.nonce, bool) or not isinstance(self.nonce, int):
            raise TypeError("nonce must be an integer")
        if not 0 <= self.nonce <= 0xFF:
            raise ValueError(f"nonce {self.nonce} out of u8 range")

    def to_bytes(self) -> bytes:
        """Serialized commitment: 32 bytes of MPC commitment and the nonce byte."""
        return self.mpc + bytes([self.nonce])

    @classmethod
    def from_bytes(cls, data: bytes) -> TapretCommitment:
        """Decode the 33-byte serialized form."""
        raw = bytes(data)
        if len(raw) != TAPRET_COMMITMENT_SIZE:
            raise ValueError(
                f"tapret commitment must be {TAPRET_COMMITMENT_SIZE} bytes, got {len(raw)}"
            )
        return cls(raw[:MPC_COMMITMENT_SIZE], raw[MPC_COMMITMENT_SIZE])

    @classmethod
    def parse(cls, s: str) -> TapretCommitment:
        """Decode the Base85 text form."""
        try:
            data = base64.b85decode(s.encode("ascii"))
        except (ValueError, UnicodeEncodeError, binascii.Error) as err:
            raise ValueError(
                f'invalid Base85 encoding of tapret data "{s}": {str(err).lower()}'
            ) from err
        return cls.from_bytes(data)

    def __str__(self) -> str:
        return base64.b85encode(self.to_bytes()).decode("ascii")


def tapret_script(commitment: TapretCommitment) -> bytes:
    """The 64-byte tapscript leaf committing to ``commitment``."""
    data = commitment.to_bytes()
    return bytes([OP_NOP] * 29 + [OP_RETURN, len(data)]) + data