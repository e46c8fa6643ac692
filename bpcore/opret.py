"""OP_RETURN-based deterministic bitcoin commitments ("opret")."""

from __future__ import annotations

import enum
import functools
from dataclasses import dataclass, replace
from typing import Optional, Tuple, Union

from .tx import OP_RETURN, ScriptPubkey, Tx, TxOut

Container = Union[ScriptPubkey, TxOut, Tx]

COMMITMENT_SIZE = 32
_COMMITTED_SCRIPT_SIZE = 34


class OpretError(ValueError):
    """Error embedding an opret commitment."""

    class Kind(enum.Enum):
        NO_OPRET_OUTPUT = "transaction doesn't contain OP_RETURN output."
        INVALID_OPRET_SCRIPT = (
            "first OP_RETURN output inside the transaction already contains some data."
        )

    def __init__(self, kind: OpretError.Kind) -> None:
        self.kind = kind
        super().__init__(kind.value)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, OpretError):
            return NotImplemented
        return self.kind is other.kind

    def __hash__(self) -> int:
        return hash(self.kind)


class OpretVerifyError(ValueError):
    """Error verifying an opret commitment against its proof."""

    class Kind(enum.Enum):
        COMMITMENT_MISMATCH = "commitment doesn't match the message"
        INVALID_MESSAGE = "the message is invalid since a commitment to it can't be created"
        INVALID_PROOF = "the proof is invalid and the commitment can't be verified"

    def __init__(self, kind: OpretVerifyError.Kind, error: Optional[OpretError] = None) -> None:
        self.kind = kind
        self.error = error
        message = kind.value if error is None else f"{kind.value}: {error}"
        super().__init__(message)


def _check_msg(msg: bytes) -> bytes:
    data = bytes(msg)
    if len(data) != COMMITMENT_SIZE:
        raise ValueError(f"commitment must be {COMMITMENT_SIZE} bytes, got {len(data)}")
    return data


@functools.singledispatch
def _embed(container, msg: bytes):
    raise TypeError(f"cannot embed opret commitment into {type(container).__name__}")


@_embed.register(ScriptPubkey)
def _embed_spk(container: ScriptPubkey, msg: bytes) -> ScriptPubkey:
    if not container.is_op_return():
        raise OpretError(OpretError.Kind.NO_OPRET_OUTPUT)
    if len(container) != 1:
        raise OpretError(OpretError.Kind.INVALID_OPRET_SCRIPT)
    return ScriptPubkey.op_return(msg)


@_embed.register(TxOut)
def _embed_txout(container: TxOut, msg: bytes) -> TxOut:
    return replace(container, script_pubkey=_embed(container.script_pubkey, msg))


@_embed.register(Tx)
def _embed_tx(container: Tx, msg: bytes) -> Tx:
    outputs = list(container.outputs)
    for index, txout in enumerate(outputs):
        if txout.script_pubkey.is_op_return():
            outputs[index] = _embed(txout, msg)
            return replace(container, outputs=tuple(outputs))
    raise OpretError(OpretError.Kind.NO_OPRET_OUTPUT)


def _invalid(kind: OpretError.Kind) -> OpretVerifyError:
    return OpretVerifyError(OpretVerifyError.Kind.INVALID_MESSAGE, OpretError(kind))


@functools.singledispatch
def _restore(container):
    raise TypeError(f"cannot restore opret container {type(container).__name__}")


@_restore.register(ScriptPubkey)
def _restore_spk(container: ScriptPubkey) -> ScriptPubkey:
    if not container.is_op_return():
        raise _invalid(OpretError.Kind.NO_OPRET_OUTPUT)
    if len(container) != _COMMITTED_SCRIPT_SIZE:
        raise _invalid(OpretError.Kind.INVALID_OPRET_SCRIPT)
    return ScriptPubkey(bytes([OP_RETURN]))


@_restore.register(TxOut)
def _restore_txout(container: TxOut) -> TxOut:
    return replace(container, script_pubkey=_restore(container.script_pubkey))


@_restore.register(Tx)
def _restore_tx(container: Tx) -> Tx:
    outputs = list(container.outputs)
    for index, txout in enumerate(outputs):
        if txout.script_pubkey.is_op_return():
            outputs[index] = _restore(txout)
            return replace(container, outputs=tuple(outputs))
    raise _invalid(OpretError.Kind.NO_OPRET_OUTPUT)


@dataclass(frozen=True, order=True)
class OpretProof:
    """Proof of an opret commitment; the scheme needs no extra data."""

    def restore_original_container(self, container: Container) -> Container:
        """Return the container as it was before the commitment was embedded."""
        return _restore(container)

    def verify(self, msg: bytes, container: Container) -> None:
        """Check that ``container`` commits to ``msg``; raise OpretVerifyError if not."""
        data = _check_msg(msg)
        original = self.restore_original_container(container)
        try:
            recommitted, proof = embed_commit(original, data)
        except OpretError as err:
            raise OpretVerifyError(OpretVerifyError.Kind.INVALID_MESSAGE, err) from err
        if proof != self:
            raise OpretVerifyError(OpretVerifyError.Kind.INVALID_PROOF)
        if recommitted != container:
            raise OpretVerifyError(OpretVerifyError.Kind.COMMITMENT_MISMATCH)


def embed_commit(container: Container, msg: bytes) -> Tuple[Container, OpretProof]:
    """Embed ``msg`` into the first OP_RETURN output; return the new container and proof."""
    return _embed(container, _check_msg(msg)), OpretProof()