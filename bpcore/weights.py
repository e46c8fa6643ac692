"""Transaction weight units and virtual bytes."""

from __future__ import annotations

import functools
from dataclasses import dataclass
from typing import Union

from .primitives import U32_MAX
from .tx import ScriptPubkey, SigScript, Tx, TxIn, TxOut


def _u32(value: int, what: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{what} must be an integer")
    if not 0 <= value <= U32_MAX:
        raise OverflowError(f"{what} {value} out of u32 range")
    return value


@dataclass(frozen=True, order=True)
class VBytes:
    """Virtual size in vbytes."""

    value: int = 0

    def __post_init__(self) -> None:
        _u32(self.value, "vbytes")

    def __add__(self, other: Union[VBytes, int]) -> VBytes:
        if isinstance(other, VBytes):
            return VBytes(self.value + other.value)
        if other == 0:
            return self
        return NotImplemented

    __radd__ = __add__

    def __int__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return f"{self.value} vbytes"


@dataclass(frozen=True, order=True)
class WeightUnits:
    """Transaction weight in weight units."""

    value: int = 0

    def __post_init__(self) -> None:
        _u32(self.value, "weight units")

    @classmethod
    def no_discount(cls, size: int) -> WeightUnits:
        """Weight of ``size`` non-witness bytes."""
        return cls(size * 4)

    @classmethod
    def witness_discount(cls, size: int) -> WeightUnits:
        """Weight of ``size`` witness bytes."""
        return cls(size)

    def to_vbytes(self) -> VBytes:
        """Virtual bytes, rounded up."""
        return VBytes(-(-self.value // 4))

    def __add__(self, other: Union[WeightUnits, int]) -> WeightUnits:
        if isinstance(other, WeightUnits):
            return WeightUnits(self.value + other.value)
        if other == 0:
            return self
        return NotImplemented

    __radd__ = __add__

    def __int__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return f"{self.value} WU"


def _var_int_size(value: int) -> int:
    if value < 0xFD:
        return 1
    if value <= 0xFFFF:
        return 3
    if value <= 0xFFFF_FFFF:
        return 5
    return 9


@functools.singledispatch
def weight_units(item) -> WeightUnits:
    """Weight of a transaction or one of its parts."""
    raise TypeError(f"no weight defined for {type(item).__name__}")


@weight_units.register(Tx)
def _tx_weight(item: Tx) -> WeightUnits:
    size = 4 + _var_int_size(len(item.inputs)) + _var_int_size(len(item.outputs)) + 4
    weight = WeightUnits.no_discount(size)
    weight += sum((weight_units(txin) for txin in item.inputs), WeightUnits())
    weight += sum((weight_units(txout) for txout in item.outputs), WeightUnits())
    if item.is_segwit():
        weight += WeightUnits.witness_discount(2)
        weight += sum((weight_units(txin.witness) for txin in item.inputs), WeightUnits())
    return weight


@weight_units.register(TxIn)
def _txin_weight(item: TxIn) -> WeightUnits:
    return WeightUnits.no_discount(32 + 4 + 4) + weight_units(item.sig_script)


@weight_units.register(TxOut)
def _txout_weight(item: TxOut) -> WeightUnits:
    return WeightUnits.no_discount(8) + weight_units(item.script_pubkey)


@weight_units.register(ScriptPubkey)
@weight_units.register(SigScript)
def _script_weight(item) -> WeightUnits:
    return WeightUnits.no_discount(_var_int_size(len(item)) + len(item))


@weight_units.register(tuple)
@weight_units.register(list)
def _witness_weight(item) -> WeightUnits:
    size = _var_int_size(len(item)) + sum(
        _var_int_size(len(element)) + len(element) for element in item
    )
    return WeightUnits.witness_discount(size)


def vbytes(item) -> VBytes:
    """Virtual size of a transaction or one of its parts."""
    return weight_units(item).to_vbytes()