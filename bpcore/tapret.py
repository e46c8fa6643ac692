"""Taproot OP_RETURN ("tapret") path proofs within a taproot script tree."""

from __future__ import annotations

import enum
import hashlib
import struct
from dataclasses import dataclass, field
from typing import Optional, Union

from .tapscript import TAPRET_SCRIPT_COMMITMENT_PREFIX

TAPSCRIPT_LEAF_VERSION = 0xC0
HASH_SIZE = 32


def tagged_hash(tag: str, data: bytes) -> bytes:
    """BIP-340 tagged SHA-256 hash."""
    tag_hash = hashlib.sha256(tag.encode("utf-8")).digest()
    return hashlib.sha256(tag_hash + tag_hash + bytes(data)).digest()


def _node_hash(value) -> bytes:
    data = bytes(value)
    if len(data) != HASH_SIZE:
        raise ValueError(f"tap node hash must be {HASH_SIZE} bytes, got {len(data)}")
    return data


def tap_branch_hash(a: bytes, b: bytes) -> bytes:
    """Hash of a branch node over two children, ordered lexicographically."""
    left, right = sorted((_node_hash(a), _node_hash(b)))
    return tagged_hash("TapBranch", left + right)


def _var_int(value: int) -> bytes:
    if value < 0xFD:
        return bytes([value])
    if value <= 0xFFFF:
        return b"\xfd" + struct.pack("<H", value)
    if value <= 0xFFFF_FFFF:
        return b"\xfe" + struct.pack("<I", value)
    return b"\xff" + struct.pack("<Q", value)


@dataclass(frozen=True, order=True)
class LeafScript:
    """A script leaf of the taproot script tree."""

    script: bytes = b""
    version: int = TAPSCRIPT_LEAF_VERSION

    def __post_init__(self) -> None:
        object.__setattr__(self, "script", bytes(self.script))
        if not 0 <= self.version <= 0xFF:
            raise ValueError(f"leaf version {self.version} out of u8 range")

    def tap_leaf_hash(self) -> bytes:
        """Tagged leaf hash, which is also the leaf's node hash."""
        return tagged_hash(
            "TapLeaf", bytes([self.version]) + _var_int(len(self.script)) + self.script
        )

    def __len__(self) -> int:
        return len(self.script)


class TapretPathError(ValueError):
    """Error constructing a tapret path proof."""

    class Kind(enum.Enum):
        MAX_DEPTH_EXCEEDED = "max_depth_exceeded"
        INVALID_NODE_PARTNER = "invalid_node_partner"

    def __init__(
        self, kind: TapretPathError.Kind, partner: Optional[TapretNodePartner] = None
    ) -> None:
        self.kind = kind
        self.partner = partner
        if kind is TapretPathError.Kind.MAX_DEPTH_EXCEEDED:
            message = (
                "the length of the constructed tapret path proof exceeds taproot "
                "path length limit."
            )
        else:
            message = (
                f"the node partner {partner} at the level 1 can't be proven not to "
                "contain an alternative tapret commitment."
            )
        super().__init__(message)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TapretPathError):
            return NotImplemented
        return (self.kind, self.partner) == (other.kind, other.partner)

    def __hash__(self) -> int:
        return hash((self.kind, self.partner))


@dataclass(frozen=True, order=True)
class TapretRightBranch:
    """Right-side branch partner whose two children are in consensus order."""

    left_node_hash: bytes
    right_node_hash: bytes

    def __post_init__(self) -> None:
        left = _node_hash(self.left_node_hash)
        right = _node_hash(self.right_node_hash)
        if left > right:
            raise ValueError("non-consensus ordering of hashes in TapretRightBranch")
        object.__setattr__(self, "left_node_hash", left)
        object.__setattr__(self, "right_node_hash", right)

    @classmethod
    def with_nodes(cls, a: bytes, b: bytes) -> TapretRightBranch:
        """Build the branch, putting ``a`` and ``b`` in lexicographic order."""
        left, right = sorted((_node_hash(a), _node_hash(b)))
        return cls(left, right)

    def node_hash(self) -> bytes:
        """Node hash of the branch."""
        return tap_branch_hash(self.left_node_hash, self.right_node_hash)

    def __str__(self) -> str:
        return f"{self.left_node_hash.hex()}:{self.right_node_hash.hex()}"


class PartnerKind(enum.IntEnum):
    """Kinds of the level-1 sibling of a tapret commitment leaf."""

    LEFT_NODE = 0
    RIGHT_LEAF = 1
    RIGHT_BRANCH = 2


@dataclass(frozen=True, order=True)
class TapretNodePartner:
    """Proof that the level-1 sibling holds no alternative tapret commitment."""

    kind: PartnerKind
    value: Union[bytes, LeafScript, TapretRightBranch] = field(compare=True)

    def __post_init__(self) -> None:
        kind = PartnerKind(self.kind)
        object.__setattr__(self, "kind", kind)
        if kind is PartnerKind.LEFT_NODE:
            object.__setattr__(self, "value", _node_hash(self.value))
        elif kind is PartnerKind.RIGHT_LEAF and not isinstance(self.value, LeafScript):
            raise TypeError("right leaf partner requires a LeafScript")
        elif kind is PartnerKind.RIGHT_BRANCH and not isinstance(
            self.value, TapretRightBranch
        ):
            raise TypeError("right branch partner requires a TapretRightBranch")

    @classmethod
    def left_node(cls, node_hash: bytes) -> TapretNodePartner:
        """Commitment sits on the right; the left sibling is known by its hash."""
        return cls(PartnerKind.LEFT_NODE, node_hash)

    @classmethod
    def right_leaf(cls, leaf_script: LeafScript) -> TapretNodePartner:
        """A single pre-existing script leaf on the right."""
        return cls(PartnerKind.RIGHT_LEAF, leaf_script)

    @classmethod
    def right_branch(cls, a: bytes, b: bytes) -> TapretNodePartner:
        """A right-side branch with children ``a`` and ``b`` in consensus order."""
        return cls(PartnerKind.RIGHT_BRANCH, TapretRightBranch.with_nodes(a, b))

    def check_no_commitment(self) -> bool:
        """True when the sibling cannot hold another tapret commitment."""
        prefix = TAPRET_SCRIPT_COMMITMENT_PREFIX
        if self.kind is PartnerKind.LEFT_NODE:
            return True
        if self.kind is PartnerKind.RIGHT_LEAF:
            script = self.value.script
            if len(script) < 64:
                return True
            return script[:31] != prefix
        return self.value.left_node_hash[:31] != prefix

    def check_ordering(self, other_node: bytes) -> bool:
        """True when the sibling is on the correct side of ``other_node``."""
        other = _node_hash(other_node)
        if self.kind is PartnerKind.LEFT_NODE:
            return self.value <= other
        return other <= self.tap_node_hash()

    def tap_node_hash(self) -> bytes:
        """Node hash of the sibling."""
        if self.kind is PartnerKind.LEFT_NODE:
            return self.value
        if self.kind is PartnerKind.RIGHT_LEAF:
            return self.value.tap_leaf_hash()
        return self.value.node_hash()

    def __str__(self) -> str:
        if self.kind is PartnerKind.LEFT_NODE:
            return self.value.hex()
        if self.kind is PartnerKind.RIGHT_LEAF:
            return self.value.script.hex()
        return str(self.value)


@dataclass(frozen=True, order=True)
class TapretPathProof:
    """Level-1 sibling information and the nonce of a tapret commitment."""

    partner_node: Optional[TapretNodePartner] = None
    nonce: int = 0

    def __post_init__(self) -> None:
        if isinstance(self.nonce, bool) or not isinstance(self.nonce, int):
            raise TypeError("nonce must be an integer")
        if not 0 <= self.nonce <= 0xFF:
            raise ValueError(f"nonce {self.nonce} out of u8 range")

    @classmethod
    def root(cls, nonce: int) -> TapretPathProof:
        """Proof for a tree that had no script paths before the commitment."""
        return cls(None, nonce)

    @classmethod
    def with_partner(cls, partner: TapretNodePartner, nonce: int) -> TapretPathProof:
        """Proof with a sibling; raise TapretPathError if it may hold a commitment."""
        if not partner.check_no_commitment():
            raise TapretPathError(TapretPathError.Kind.INVALID_NODE_PARTNER, partner)
        return cls(partner, nonce)

    def check_no_commitment(self) -> bool:
        return self.partner_node is None or self.partner_node.check_no_commitment()

    def original_merkle_root(self) -> Optional[bytes]:
        """Merkle root before the commitment, or None without script paths."""
        if self.partner_node is None:
            return None
        return self.partner_node.tap_node_hash()