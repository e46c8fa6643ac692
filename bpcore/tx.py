"""Bitcoin transactions: scripts, inputs, outputs and consensus serialization."""

from __future__ import annotations

import hashlib
import string
import struct
from dataclasses import dataclass, field, replace
from typing import Iterator, Sequence, Union

from .primitives import U32_MAX, Outpoint, Sats, Txid, TxVer, Vout

OP_RETURN = 0x6A
OP_PUSHNUM_1 = 0x51
OP_PUSHBYTES_32 = 0x20
OP_PUSHDATA1 = 0x4C
OP_PUSHDATA2 = 0x4D
OP_PUSHDATA4 = 0x4E

SEQ_FINAL = 0xFFFF_FFFF

_HEX_DIGITS = frozenset(string.hexdigits)

Witness = tuple


class BlockDataParseError(ValueError):
    """Raised when transaction data cannot be decoded from hex or bytes."""


def _push_data(data: bytes) -> bytes:
    size = len(data)
    if size == 0:
        return b"\x00"
    if size <= 75:
        return bytes([size]) + data
    if size <= 0xFF:
        return bytes([OP_PUSHDATA1, size]) + data
    if size <= 0xFFFF:
        return bytes([OP_PUSHDATA2]) + struct.pack("<H", size) + data
    return bytes([OP_PUSHDATA4]) + struct.pack("<I", size) + data


@dataclass(frozen=True)
class _Script:
    code: bytes = b""

    def __post_init__(self) -> None:
        if not isinstance(self.code, (bytes, bytearray, memoryview)):
            raise TypeError("script code must be bytes")
        object.__setattr__(self, "code", bytes(self.code))

    def __len__(self) -> int:
        return len(self.code)

    def __getitem__(self, index):
        return self.code[index]

    def __iter__(self) -> Iterator[int]:
        return iter(self.code)

    def __bytes__(self) -> bytes:
        return self.code

    def to_hex(self) -> str:
        return self.code.hex()

    def __str__(self) -> str:
        return self.code.hex()


@dataclass(frozen=True)
class ScriptPubkey(_Script):
    """Locking script of a transaction output."""

    @classmethod
    def op_return(cls, data: bytes) -> ScriptPubkey:
        """An OP_RETURN script pushing ``data``."""
        return cls(bytes([OP_RETURN]) + _push_data(bytes(data)))

    @classmethod
    def p2tr_tweaked(cls, output_key) -> ScriptPubkey:
        """A taproot output script for an already tweaked x-only key."""
        key = bytes(output_key)
        if len(key) != 32:
            raise ValueError("taproot output key must be 32 bytes")
        return cls(bytes([OP_PUSHNUM_1, OP_PUSHBYTES_32]) + key)

    def is_op_return(self) -> bool:
        return len(self.code) > 0 and self.code[0] == OP_RETURN

    def is_p2tr(self) -> bool:
        return (
            len(self.code) == 34
            and self.code[0] == OP_PUSHNUM_1
            and self.code[1] == OP_PUSHBYTES_32
        )


@dataclass(frozen=True)
class SigScript(_Script):
    """Unlocking script of a transaction input."""


@dataclass(frozen=True)
class TxIn:
    """Transaction input."""

    prev_output: Outpoint
    sig_script: SigScript = field(default_factory=SigScript)
    sequence: int = SEQ_FINAL
    witness: tuple = ()

    def __post_init__(self) -> None:
        if not isinstance(self.sig_script, SigScript):
            object.__setattr__(self, "sig_script", SigScript(self.sig_script))
        if not 0 <= self.sequence <= U32_MAX:
            raise ValueError(f"sequence number {self.sequence} out of u32 range")
        object.__setattr__(self, "witness", tuple(bytes(item) for item in self.witness))


@dataclass(frozen=True)
class TxOut:
    """Transaction output."""

    value: Sats = field(default_factory=Sats)
    script_pubkey: ScriptPubkey = field(default_factory=ScriptPubkey)

    def __post_init__(self) -> None:
        if not isinstance(self.value, Sats):
            object.__setattr__(self, "value", Sats(self.value))
        if not isinstance(self.script_pubkey, ScriptPubkey):
            object.__setattr__(self, "script_pubkey", ScriptPubkey(self.script_pubkey))


def _var_int(value: int) -> bytes:
    if value < 0xFD:
        return bytes([value])
    if value <= 0xFFFF:
        return b"\xfd" + struct.pack("<H", value)
    if value <= 0xFFFF_FFFF:
        return b"\xfe" + struct.pack("<I", value)
    return b"\xff" + struct.pack("<Q", value)


def _var_bytes(data: bytes) -> bytes:
    return _var_int(len(data)) + data


class _Reader:
    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)
        self._pos = 0

    @property
    def remaining(self) -> int:
        return len(self._data) - self._pos

    def take(self, size: int) -> bytes:
        end = self._pos + size
        if end > len(self._data):
            raise BlockDataParseError("unexpected end of transaction data")
        chunk = self._data[self._pos:end]
        self._pos = end
        return chunk

    def u8(self) -> int:
        return self.take(1)[0]

    def u32(self) -> int:
        return struct.unpack("<I", self.take(4))[0]

    def i32(self) -> int:
        return struct.unpack("<i", self.take(4))[0]

    def u64(self) -> int:
        return struct.unpack("<Q", self.take(8))[0]

    def var_int(self) -> int:
        prefix = self.u8()
        if prefix < 0xFD:
            return prefix
        if prefix == 0xFD:
            value, minimum = struct.unpack("<H", self.take(2))[0], 0xFD
        elif prefix == 0xFE:
            value, minimum = struct.unpack("<I", self.take(4))[0], 0x1_0000
        else:
            value, minimum = struct.unpack("<Q", self.take(8))[0], 0x1_0000_0000
        if value < minimum:
            raise BlockDataParseError("non-canonical variable-length integer")
        return value

    def var_bytes(self) -> bytes:
        size = self.var_int()
        if size > self.remaining:
            raise BlockDataParseError("unexpected end of transaction data")
        return self.take(size)


def _read_input(reader: _Reader) -> TxIn:
    txid = Txid(reader.take(32))
    vout = Vout(reader.u32())
    sig_script = SigScript(reader.var_bytes())
    sequence = reader.u32()
    return TxIn(Outpoint(txid, vout), sig_script, sequence)


def _read_output(reader: _Reader) -> TxOut:
    value = Sats(reader.u64())
    return TxOut(value, ScriptPubkey(reader.var_bytes()))


def _read_list(reader: _Reader, read, count: int) -> list:
    if count > reader.remaining:
        raise BlockDataParseError("unexpected end of transaction data")
    return [read(reader) for _ in range(count)]


def _sha256d(data: bytes) -> bytes:
    return hashlib.sha256(hashlib.sha256(data).digest()).digest()


@dataclass(frozen=True)
class Tx:
    """A bitcoin transaction."""

    version: TxVer = field(default_factory=TxVer)
    inputs: tuple = ()
    outputs: tuple = ()
    lock_time: int = 0

    def __post_init__(self) -> None:
        if not isinstance(self.version, TxVer):
            object.__setattr__(self, "version", TxVer(self.version))
        object.__setattr__(self, "inputs", tuple(self.inputs))
        object.__setattr__(self, "outputs", tuple(self.outputs))
        if not 0 <= self.lock_time <= U32_MAX:
            raise ValueError(f"lock time {self.lock_time} out of u32 range")

    @classmethod
    def parse(cls, s: str) -> Tx:
        """Decode a transaction from its hex serialization."""
        if len(s) % 2 != 0 or any(ch not in _HEX_DIGITS for ch in s):
            raise BlockDataParseError(f"invalid hex encoding of transaction data '{s}'")
        return cls.from_bytes(bytes.fromhex(s))

    @classmethod
    def from_bytes(cls, data: Union[bytes, bytearray, Sequence[int]]) -> Tx:
        """Decode a transaction from consensus bytes, rejecting trailing data."""
        reader = _Reader(bytes(data))
        version = TxVer(reader.i32())
        count = reader.var_int()
        segwit = False
        if count == 0 and reader.remaining > 0:
            flag = reader.u8()
            if flag != 1:
                raise BlockDataParseError(f"unsupported segwit flag {flag}")
            segwit = True
            count = reader.var_int()
        inputs = _read_list(reader, _read_input, count)
        outputs = _read_list(reader, _read_output, reader.var_int())
        if segwit:
            inputs = [
                replace(txin, witness=tuple(
                    reader.var_bytes() for _ in range(_checked_count(reader))
                ))
                for txin in inputs
            ]
        lock_time = reader.u32()
        if reader.remaining:
            raise BlockDataParseError(
                f"data are not entirely consumed: {reader.remaining} bytes left"
            )
        return cls(version, tuple(inputs), tuple(outputs), lock_time)

    def _encode(self, with_witness: bool) -> bytes:
        out = bytearray(struct.pack("<i", self.version.value))
        if with_witness:
            out += b"\x00\x01"
        out += _var_int(len(self.inputs))
        for txin in self.inputs:
            out += txin.prev_output.txid.data
            out += struct.pack("<I", txin.prev_output.vout.value)
            out += _var_bytes(bytes(txin.sig_script))
            out += struct.pack("<I", txin.sequence)
        out += _var_int(len(self.outputs))
        for txout in self.outputs:
            out += struct.pack("<Q", txout.value.value)
            out += _var_bytes(bytes(txout.script_pubkey))
        if with_witness:
            for txin in self.inputs:
                out += _var_int(len(txin.witness))
                for item in txin.witness:
                    out += _var_bytes(item)
        out += struct.pack("<I", self.lock_time)
        return bytes(out)

    def to_bytes(self) -> bytes:
        """Consensus serialization, with witness data for segwit transactions."""
        return self._encode(self.is_segwit())

    def to_hex(self) -> str:
        return self.to_bytes().hex()

    def is_segwit(self) -> bool:
        return any(txin.witness for txin in self.inputs)

    def to_unsigned_tx(self) -> Tx:
        """Copy with all signature scripts and witnesses removed."""
        inputs = tuple(replace(txin, sig_script=SigScript(), witness=()) for txin in self.inputs)
        return replace(self, inputs=inputs)

    def ntxid(self) -> bytes:
        """Normalized txid bytes, which do not cover any signatures."""
        return self.to_unsigned_tx().txid().data

    def txid(self) -> Txid:
        """Double SHA-256 of the serialization without witness data."""
        return Txid(_sha256d(self._encode(False)))

    def wtxid(self) -> Txid:
        """Double SHA-256 of the full serialization, including witness data."""
        return Txid(_sha256d(self.to_bytes()))

    def __str__(self) -> str:
        return self.to_hex()

    def __format__(self, spec: str) -> str:
        if spec in ("", "x"):
            return self.to_hex()
        if spec == "X":
            return self.to_hex().upper()
        return format(self.to_hex(), spec)


def _checked_count(reader: _Reader) -> int:
    count = reader.var_int()
    if count > reader.remaining:
        raise BlockDataParseError("unexpected end of transaction data")
    return count