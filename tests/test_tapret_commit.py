import pytest

from bpcore.primitives import Sats
from bpcore.tapret import LeafScript, TapretNodePartner, TapretPathProof
from bpcore.tapret_commit import (
    InternalPk,
    TapretError,
    TapretKeyError,
    TapretProof,
    TapretVerifyError,
    commitment_merkle_root,
    convolve_commit_key,
    convolve_commit_tx,
    convolve_commit_txout,
)
from bpcore.tapscript import TapretCommitment, tapret_script
from bpcore.tx import ScriptPubkey, Tx, TxOut

INTERNAL_PK_HEX = "c5f93479093e2b8f724a79844cc10928dd44e9a390b539843fb83fbf842723f3"
MSG = bytes([8] * 32)

NO_COMMITMENT_TX = (
    "020000000001027763e2a0ad25d45b63a19c33491b67c5037e72709121290bac5481a5d5d0c933"
    "0100000000ffffffff7763e2a0ad25d45b63a19c33491b67c5037e72709121290bac5481a5d5d0"
    "c9330400000000ffffffff02026e010000000000225120455dfcc062ef80609b007377f127e4ab"
    "db5cb0052158af1fab7aa628c34563f1d508000000000000225120a2788d4208ec6b4b600aef4c"
    "13075cf1d47bda0299ed1e6eedce4e7a90fb2a2c0141150df5377a34deded048dc01bff3d4f5f3"
    "1d8a89fe2fbf1d0295993c1f899b3cefd1a63900ea6346b78edd476524c08ae094ff417bfa525b"
    "585ee66ebc26bb9e010141d959f21b498d90c2ff9f5b0bf3aee9158527501162eab2e3d5637171"
    "4877a97df80caab15e366855aa56443b7d081c234a4ce4d6414815a874624cbe46b64337010000"
    "0000"
)

RAW_XONLY = (
    "cb5271aa59fc637e29d034ec75363ca241fda5d3939684603b469b185be7e50f"
    "18ec6fd539e7dc1fd5fb4cf046d2cef5028a5ca0cdb09a252683e6a6eb2ad61d"
)


@pytest.fixture
def internal_pk():
    return InternalPk.from_hex(INTERNAL_PK_HEX)


def _taproot_tx(proof):
    return Tx(
        outputs=(
            TxOut(Sats(1000), ScriptPubkey(b"\x00\x14" + bytes(20))),
            TxOut(Sats(5000), proof.original_pubkey_script()),
        )
    )


def test_key_path(internal_pk):
    path_proof = TapretPathProof.root(0)
    outer_key, proof = convolve_commit_key(internal_pk, path_proof, MSG)

    script = tapret_script(TapretCommitment(MSG, path_proof.nonce))
    leaf_hash = LeafScript(script).tap_leaf_hash()
    real_key, _ = internal_pk.to_output_pk(leaf_hash)

    assert outer_key == real_key
    assert proof == TapretProof(path_proof, internal_pk)
    assert proof.verify(MSG, outer_key) is None


def test_single_script(internal_pk):
    path_proof = TapretPathProof.with_partner(TapretNodePartner.right_leaf(LeafScript()), 1)
    outer_key, proof = convolve_commit_key(internal_pk, path_proof, MSG)
    assert proof == TapretProof(path_proof, internal_pk)
    assert len(outer_key) == 32
    assert proof.verify(MSG, outer_key) is None


def test_invalid_partner_ordering(internal_pk):
    path_proof = TapretPathProof.with_partner(TapretNodePartner.right_leaf(LeafScript()), 11)
    with pytest.raises(TapretKeyError) as info:
        convolve_commit_key(internal_pk, path_proof, MSG)
    assert info.value.kind is TapretKeyError.Kind.INCORRECT_ORDERING


def test_no_commitment():
    tx = Tx.parse(NO_COMMITMENT_TX)
    key = bytes.fromhex(RAW_XONLY)[:32][::-1]
    proof = TapretProof(TapretPathProof(None, 0), InternalPk(key))
    with pytest.raises(TapretVerifyError) as info:
        proof.verify(bytes(32), tx)
    assert info.value.kind is TapretVerifyError.Kind.COMMITMENT_MISMATCH


def test_bip341_key_path_output_key():
    internal = InternalPk.from_hex(
        "d6889cb081036e0faefa3a35157ad71086b123b2b144b649798b494c300a961d"
    )
    output_key, _ = internal.to_output_pk(None)
    assert output_key.hex() == (
        "53a1f6e454df1aa2776a2814a721372d6258050de330b3c6d10ee8f4e0dda343"
    )
    proof = TapretProof(TapretPathProof.root(0), internal)
    assert proof.original_pubkey_script().to_hex() == (
        "512053a1f6e454df1aa2776a2814a721372d6258050de330b3c6d10ee8f4e0dda343"
    )


def test_merkle_root_without_partner_is_leaf_hash():
    path_proof = TapretPathProof.root(3)
    script = tapret_script(TapretCommitment(MSG, 3))
    assert commitment_merkle_root(path_proof, MSG) == LeafScript(script).tap_leaf_hash()


def test_tx_round_trip(internal_pk):
    proof = TapretProof(TapretPathProof.root(0), internal_pk)
    tx = _taproot_tx(proof)
    committed, returned = convolve_commit_tx(tx, proof, MSG)
    assert returned == proof
    assert committed.outputs[0] == tx.outputs[0]
    assert committed.outputs[1].value == Sats(5000)
    assert committed.outputs[1].script_pubkey != tx.outputs[1].script_pubkey
    assert committed.outputs[1].script_pubkey.is_p2tr()
    assert proof.verify(MSG, committed) is None


def test_tx_verify_wrong_message(internal_pk):
    proof = TapretProof(TapretPathProof.root(0), internal_pk)
    committed, _ = convolve_commit_tx(_taproot_tx(proof), proof, MSG)
    with pytest.raises(TapretVerifyError) as info:
        proof.verify(bytes(32), committed)
    assert info.value.kind is TapretVerifyError.Kind.COMMITMENT_MISMATCH


def test_tx_without_taproot_output(internal_pk):
    proof = TapretProof(TapretPathProof.root(0), internal_pk)
    tx = Tx(outputs=(TxOut(Sats(1), ScriptPubkey(b"\x6a")),))
    with pytest.raises(TapretError) as info:
        convolve_commit_tx(tx, proof, MSG)
    assert info.value.kind is TapretError.Kind.NO_TAPROOT_OUTPUT
    with pytest.raises(TapretVerifyError) as verify_info:
        proof.verify(MSG, tx)
    assert verify_info.value.kind is TapretVerifyError.Kind.IMPOSSIBLE_MESSAGE


def test_txout_round_trip(internal_pk):
    proof = TapretProof(TapretPathProof.root(7), internal_pk)
    txout = TxOut(Sats(42), proof.original_pubkey_script())
    committed, returned = convolve_commit_txout(txout, proof, MSG)
    assert committed.value == Sats(42)
    assert returned == proof
    assert proof.verify(MSG, committed) is None
    assert proof.verify(MSG, committed.script_pubkey) is None


def test_alternative_commitment_is_rejected(internal_pk):
    partner = TapretNodePartner.right_leaf(
        LeafScript(tapret_script(TapretCommitment(bytes(32), 0)))
    )
    path_proof = TapretPathProof(partner, 0)
    with pytest.raises(TapretKeyError) as info:
        commitment_merkle_root(path_proof, MSG)
    assert info.value.kind is TapretKeyError.Kind.ALTERNATIVE_COMMITMENT


def test_tx_wraps_key_error(internal_pk):
    partner = TapretNodePartner.right_leaf(LeafScript())
    proof = TapretProof(TapretPathProof(partner, 11), internal_pk)
    tx = Tx(outputs=(TxOut(Sats(1), ScriptPubkey.p2tr_tweaked(internal_pk.key)),))
    with pytest.raises(TapretError) as info:
        convolve_commit_tx(tx, proof, MSG)
    assert info.value.kind is TapretError.Kind.KEY_EMBEDDING
    assert info.value.key_error.kind is TapretKeyError.Kind.INCORRECT_ORDERING


def test_verify_rejects_mismatched_proof(internal_pk):
    proof = TapretProof(TapretPathProof.root(0), internal_pk)
    outer_key, _ = convolve_commit_key(internal_pk, proof.path_proof, MSG)
    other = TapretProof(TapretPathProof.root(1), internal_pk)
    with pytest.raises(TapretVerifyError) as info:
        other.verify(MSG, outer_key)
    assert info.value.kind is TapretVerifyError.Kind.COMMITMENT_MISMATCH


def test_invalid_internal_keys():
    with pytest.raises(ValueError):
        InternalPk.from_hex("ff" * 32)
    with pytest.raises(ValueError):
        InternalPk.from_hex("00" * 31)
    with pytest.raises(ValueError):
        InternalPk.from_hex("zz" * 32)


def test_message_size_is_checked(internal_pk):
    with pytest.raises(ValueError):
        convolve_commit_key(internal_pk, TapretPathProof.root(0), b"short")


def test_internal_pk_text(internal_pk):
    assert str(internal_pk) == INTERNAL_PK_HEX
    assert bytes(internal_pk) == bytes.fromhex(INTERNAL_PK_HEX)