"""Tapret commitments convolved into taproot keys, scripts, outputs and transactions."""

from __future__ import annotations

import enum
import functools
from dataclasses import dataclass, replace
from typing import Optional, Tuple, Union

from .tapret import LeafScript, TapretNodePartner, TapretPathProof, tagged_hash, tap_branch_hash
from .tapscript import TapretCommitment, tapret_script
from .tx import ScriptPubkey, Tx, TxOut

MSG_SIZE = 32
KEY_SIZE = 32

_P = 2**256 - 2**32 - 977
_N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
_G = (
    0x79BE667EF9DCBBAC55A06295CE870B07029BFCDB2DCE28D959F2815B16F81798,
    0x483ADA7726A3C4655DA4FBFC0E1108A8FD17B448A68554199C47D08FFB10D4B8,
)

_Point = Optional[Tuple[int, int]]


def _point_add(a: _Point, b: _Point) -> _Point:
    if a is None:
        return b
    if b is None:
        return a
    if a[0] == b[0] and (a[1] + b[1]) % _P == 0:
        return None
    if a == b:
        slope = 3 * a[0] * a[0] * pow(2 * a[1], -1, _P) % _P
    else:
        slope = (b[1] - a[1]) * pow(b[0] - a[0], -1, _P) % _P
    x = (slope * slope - a[0] - b[0]) % _P
    return x, (slope * (a[0] - x) - a[1]) % _P


def _point_mul(point: _Point, scalar: int) -> _Point:
    result: _Point = None
    addend = point
    while scalar:
        if scalar & 1:
            result = _point_add(result, addend)
        addend = _point_add(addend, addend)
        scalar >>= 1
    return result


def _lift_x(x: int) -> Tuple[int, int]:
    if x >= _P:
        raise ValueError("x-only public key is not a valid field element")
    c = (pow(x, 3, _P) + 7) % _P
    y = pow(c, (_P + 1) // 4, _P)
    if y * y % _P != c:
        raise ValueError("x-only public key is not on the secp256k1 curve")
    return x, y if y % 2 == 0 else _P - y


def _check_msg(msg: bytes) -> bytes:
    data = bytes(msg)
    if len(data) != MSG_SIZE:
        raise ValueError(f"commitment must be {MSG_SIZE} bytes, got {len(data)}")
    return data


class TapretKeyError(ValueError):
    """Error embedding a tapret commitment into an x-only key."""

    class Kind(enum.Enum):
        ALTERNATIVE_COMMITMENT = "alternative_commitment"
        INCORRECT_ORDERING = "incorrect_ordering"

    def __init__(
        self,
        kind: TapretKeyError.Kind,
        partner: TapretNodePartner,
        leaf_hash: Optional[bytes] = None,
    ) -> None:
        self.kind = kind
        self.partner = partner
        self.leaf_hash = leaf_hash
        if kind is TapretKeyError.Kind.ALTERNATIVE_COMMITMENT:
            message = f"tapret node partner {partner} contains alternative commitment"
        else:
            message = (
                f"tapret node partner {partner} has an invalid order with the "
                f"commitment node {leaf_hash.hex() if leaf_hash else ''}"
            )
        super().__init__(message)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TapretKeyError):
            return NotImplemented
        return (self.kind, self.partner, self.leaf_hash) == (
            other.kind,
            other.partner,
            other.leaf_hash,
        )

    def __hash__(self) -> int:
        return hash((self.kind, self.partner, self.leaf_hash))


class TapretError(ValueError):
    """Error convolving a tapret commitment into a transaction."""

    class Kind(enum.Enum):
        KEY_EMBEDDING = "key_embedding"
        NO_TAPROOT_OUTPUT = "no_taproot_output"

    def __init__(self, kind: TapretError.Kind, key_error: Optional[TapretKeyError] = None) -> None:
        self.kind = kind
        self.key_error = key_error
        if kind is TapretError.Kind.KEY_EMBEDDING:
            message = str(key_error)
        else:
            message = "tapret commitment in a transaction lacking any taproot outputs."
        super().__init__(message)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TapretError):
            return NotImplemented
        return (self.kind, self.key_error) == (other.kind, other.key_error)

    def __hash__(self) -> int:
        return hash((self.kind, self.key_error))


class TapretVerifyError(ValueError):
    """Error verifying a tapret commitment against its proof."""

    class Kind(enum.Enum):
        COMMITMENT_MISMATCH = "commitment doesn't match the message."
        IMPOSSIBLE_MESSAGE = (
            "the message is invalid since a valid commitment to it can't be created."
        )
        INVALID_PROOF = (
            "the proof is invalid and the commitment can't be verified since the "
            "original container can't be restored."
        )

    def __init__(self, kind: TapretVerifyError.Kind) -> None:
        self.kind = kind
        super().__init__(kind.value)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TapretVerifyError):
            return NotImplemented
        return self.kind is other.kind

    def __hash__(self) -> int:
        return hash(self.kind)


@dataclass(frozen=True, order=True)
class InternalPk:
    """Untweaked x-only taproot internal key."""

    key: bytes

    def __post_init__(self) -> None:
        if not isinstance(self.key, (bytes, bytearray, memoryview)):
            raise TypeError("internal key must be bytes")
        key = bytes(self.key)
        if len(key) != KEY_SIZE:
            raise ValueError(f"x-only key must be {KEY_SIZE} bytes, got {len(key)}")
        _lift_x(int.from_bytes(key, "big"))
        object.__setattr__(self, "key", key)

    @classmethod
    def from_hex(cls, s: str) -> InternalPk:
        """Parse a 64-digit hex x-only key."""
        try:
            raw = bytes.fromhex(s)
        except ValueError as err:
            raise ValueError(f"invalid hex encoding of x-only key '{s}'") from err
        return cls(raw)

    def to_output_pk(self, merkle_root: Optional[bytes]) -> Tuple[bytes, int]:
        """BIP-341 tweaked output key and its parity for an optional merkle root."""
        data = self.key
        if merkle_root is not None:
            root = bytes(merkle_root)
            if len(root) != 32:
                raise ValueError("merkle root must be 32 bytes")
            data += root
        tweak = int.from_bytes(tagged_hash("TapTweak", data), "big")
        if tweak >= _N:
            raise ValueError("taproot tweak exceeds the curve order")
        point = _lift_x(int.from_bytes(self.key, "big"))
        output = _point_add(point, _point_mul(_G, tweak))
        if output is None:
            raise ValueError("taproot tweak produced the point at infinity")
        return output[0].to_bytes(32, "big"), output[1] & 1

    def __bytes__(self) -> bytes:
        return self.key

    def __str__(self) -> str:
        return self.key.hex()


def commitment_merkle_root(path_proof: TapretPathProof, msg: bytes) -> bytes:
    """Merkle root of the script tree holding the tapret commitment to ``msg``."""
    script = tapret_script(TapretCommitment(_check_msg(msg), path_proof.nonce))
    commitment_leaf = LeafScript(script).tap_leaf_hash()
    partner = path_proof.partner_node
    if partner is None:
        return commitment_leaf
    if not partner.check_no_commitment():
        raise TapretKeyError(TapretKeyError.Kind.ALTERNATIVE_COMMITMENT, partner)
    if not partner.check_ordering(commitment_leaf):
        raise TapretKeyError(
            TapretKeyError.Kind.INCORRECT_ORDERING, partner, commitment_leaf
        )
    return tap_branch_hash(commitment_leaf, partner.tap_node_hash())


@dataclass(frozen=True, order=True)
class TapretProof:
    """Path proof and internal key needed to verify a tapret commitment."""

    path_proof: TapretPathProof
    internal_pk: InternalPk

    def original_pubkey_script(self) -> ScriptPubkey:
        """The taproot output script before the commitment was applied."""
        merkle_root = self.path_proof.original_merkle_root()
        output_key, _ = self.internal_pk.to_output_pk(merkle_root)
        return ScriptPubkey.p2tr_tweaked(output_key)

    def verify(self, msg: bytes, tx: Container) -> None:
        """Check that the container commits to ``msg``; raise TapretVerifyError if not."""
        data = _check_msg(msg)
        original = _restore(tx, self)
        try:
            commitment, proof = _convolve(original, self, data)
        except (TapretKeyError, TapretError) as err:
            raise TapretVerifyError(TapretVerifyError.Kind.IMPOSSIBLE_MESSAGE) from err
        if commitment != _normalize(tx):
            raise TapretVerifyError(TapretVerifyError.Kind.COMMITMENT_MISMATCH)
        if proof != self:
            raise TapretVerifyError(TapretVerifyError.Kind.INVALID_PROOF)


Container = Union[bytes, ScriptPubkey, TxOut, Tx]


def _normalize(container):
    if isinstance(container, (bytearray, memoryview)):
        return bytes(container)
    return container


def convolve_commit_key(
    internal_pk: InternalPk, path_proof: TapretPathProof, msg: bytes
) -> Tuple[bytes, TapretProof]:
    """Tweak ``internal_pk`` with a commitment to ``msg``; return output key and proof."""
    merkle_root = commitment_merkle_root(path_proof, msg)
    output_key, _ = internal_pk.to_output_pk(merkle_root)
    return output_key, TapretProof(path_proof, internal_pk)


def _convolve_commit_spk(
    proof: TapretProof, msg: bytes
) -> Tuple[ScriptPubkey, TapretProof]:
    output_key, _ = convolve_commit_key(proof.internal_pk, proof.path_proof, msg)
    return ScriptPubkey.p2tr_tweaked(output_key), proof


def convolve_commit_txout(
    txout: TxOut, proof: TapretProof, msg: bytes
) -> Tuple[TxOut, TapretProof]:
    """Replace the output script by the committed taproot script, keeping the value."""
    script_pubkey, proof = _convolve_commit_spk(proof, msg)
    return TxOut(txout.value, script_pubkey), proof


def convolve_commit_tx(tx: Tx, proof: TapretProof, msg: bytes) -> Tuple[Tx, TapretProof]:
    """Commit to ``msg`` in the first taproot output of ``tx``."""
    outputs = list(tx.outputs)
    for index, txout in enumerate(outputs):
        if txout.script_pubkey.is_p2tr():
            try:
                outputs[index], proof = convolve_commit_txout(txout, proof, msg)
            except TapretKeyError as err:
                raise TapretError(TapretError.Kind.KEY_EMBEDDING, err) from err
            return replace(tx, outputs=tuple(outputs)), proof
    raise TapretError(TapretError.Kind.NO_TAPROOT_OUTPUT)


@functools.singledispatch
def _restore(container, proof: TapretProof):
    raise TypeError(f"cannot verify tapret commitment in {type(container).__name__}")


@_restore.register(bytes)
@_restore.register(bytearray)
@_restore.register(memoryview)
def _restore_key(container, proof: TapretProof) -> InternalPk:
    return proof.internal_pk


@_restore.register(ScriptPubkey)
def _restore_spk(container: ScriptPubkey, proof: TapretProof) -> ScriptPubkey:
    return proof.original_pubkey_script()


@_restore.register(TxOut)
def _restore_txout(container: TxOut, proof: TapretProof) -> TxOut:
    return TxOut(container.value, proof.original_pubkey_script())


@_restore.register(Tx)
def _restore_tx(container: Tx, proof: TapretProof) -> Tx:
    outputs = list(container.outputs)
    for index, txout in enumerate(outputs):
        if txout.script_pubkey.is_p2tr():
            outputs[index] = replace(txout, script_pubkey=proof.original_pubkey_script())
            break
    return replace(container, outputs=tuple(outputs))


def _convolve(original, proof: TapretProof, msg: bytes):
    if isinstance(original, InternalPk):
        return convolve_commit_key(original, proof.path_proof, msg)
    if isinstance(original, ScriptPubkey):
        return _convolve_commit_spk(proof, msg)
    if isinstance(original, TxOut):
        return convolve_commit_txout(original, proof, msg)
    return convolve_commit_tx(original, proof, msg)