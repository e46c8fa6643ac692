import pytest

from bpcore.opret import OpretError, OpretProof, OpretVerifyError, embed_commit
from bpcore.primitives import Outpoint, Sats, Txid, TxVer, Vout
from bpcore.tx import ScriptPubkey, Tx, TxIn, TxOut

MSG = bytes(range(32))
OTHER_MSG = bytes([8]) * 32


def _tx(*scripts):
    txin = TxIn(Outpoint(Txid.coinbase(), Vout(0)))
    outputs = tuple(TxOut(Sats(1000), ScriptPubkey(code)) for code in scripts)
    return Tx(TxVer(2), (txin,), outputs, 0)


P2TR = b"\x51\x20" + bytes(32)


def test_script_embed_produces_push32():
    committed, proof = embed_commit(ScriptPubkey(b"\x6a"), MSG)
    assert committed == ScriptPubkey(b"\x6a\x20" + MSG)
    assert proof == OpretProof()


def test_script_not_op_return():
    with pytest.raises(OpretError) as info:
        embed_commit(ScriptPubkey(P2TR), MSG)
    assert info.value.kind is OpretError.Kind.NO_OPRET_OUTPUT


def test_script_already_has_data():
    with pytest.raises(OpretError) as info:
        embed_commit(ScriptPubkey(b"\x6a\x01\x00"), MSG)
    assert info.value.kind is OpretError.Kind.INVALID_OPRET_SCRIPT


def test_txout_embed_keeps_value():
    txout = TxOut(Sats(55), ScriptPubkey(b"\x6a"))
    committed, proof = embed_commit(txout, MSG)
    assert committed.value == Sats(55)
    assert proof.restore_original_container(committed) == txout


def test_tx_round_trip_and_verify():
    tx = _tx(P2TR, b"\x6a")
    committed, proof = embed_commit(tx, MSG)
    assert committed.outputs[0] == tx.outputs[0]
    assert committed.outputs[1].script_pubkey.is_op_return()
    assert proof.restore_original_container(committed) == tx
    assert proof.verify(MSG, committed) is None


def test_tx_commits_only_first_op_return():
    tx = _tx(b"\x6a", b"\x6a")
    committed, _ = embed_commit(tx, MSG)
    assert len(committed.outputs[0].script_pubkey) == 34
    assert committed.outputs[1] == tx.outputs[1]


def test_tx_without_op_return():
    with pytest.raises(OpretError) as info:
        embed_commit(_tx(P2TR), MSG)
    assert info.value.kind is OpretError.Kind.NO_OPRET_OUTPUT


def test_verify_wrong_message():
    committed, proof = embed_commit(_tx(b"\x6a"), MSG)
    with pytest.raises(OpretVerifyError) as info:
        proof.verify(OTHER_MSG, committed)
    assert info.value.kind is OpretVerifyError.Kind.COMMITMENT_MISMATCH


def test_verify_uncommitted_tx():
    with pytest.raises(OpretVerifyError) as info:
        OpretProof().verify(MSG, _tx(b"\x6a"))
    assert info.value.kind is OpretVerifyError.Kind.INVALID_MESSAGE
    assert info.value.error == OpretError(OpretError.Kind.INVALID_OPRET_SCRIPT)


def test_verify_tx_without_op_return():
    with pytest.raises(OpretVerifyError) as info:
        OpretProof().verify(MSG, _tx(P2TR))
    assert info.value.error == OpretError(OpretError.Kind.NO_OPRET_OUTPUT)


def test_message_must_be_32_bytes():
    with pytest.raises(ValueError):
        embed_commit(ScriptPubkey(b"\x6a"), b"short")


def test_restore_script():
    restored = OpretProof().restore_original_container(ScriptPubkey(b"\x6a\x20" + MSG))
    assert restored == ScriptPubkey(b"\x6a")