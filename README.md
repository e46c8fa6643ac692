# bpcore

Bitcoin transaction primitives and deterministic bitcoin commitments
(OP_RETURN "opret" and taproot "tapret") in pure Python, with no
third-party dependencies. Hashing uses `hashlib`; the secp256k1 arithmetic
needed for taproot key tweaking is built in.

## Modules

- `bpcore.primitives`: `Txid`, `Vout`, `Outpoint`, `OutpointParseError`,
  `Sats` and `TxVer`. A `Txid` keeps its bytes in consensus order and is
  shown and parsed (`Txid.from_hex`) in bitcoin's reversed order.
  `Outpoint.parse` reads `<txid>:<vout>`. `Sats` is an unsigned 64-bit
  amount with `btc_round`, `btc_ceil`, `btc_floor`, `sats_rem`,
  checked and saturating arithmetic, and `Sats.total` for a saturating
  sum. `TxVer.try_from_standard` raises `bpcore.util.NonStandardValue`
  for versions above 2.
- `bpcore.util`: `NonStandardValue`, a `ValueError` for values that
  consensus accepts but the package refuses.
- `bpcore.tx`: `Tx`, `TxIn`, `TxOut`, `ScriptPubkey`, `SigScript` and
  `BlockDataParseError`. `Tx.parse` and `Tx.from_bytes` decode the
  consensus format, segwit included; `Tx.to_bytes` and `Tx.to_hex`
  encode it. `Tx.txid`, `Tx.wtxid` and `Tx.ntxid` compute the
  transaction ids. `ScriptPubkey.op_return` and
  `ScriptPubkey.p2tr_tweaked` build scripts; `is_op_return` and
  `is_p2tr` classify them.
- `bpcore.weights`: `WeightUnits`, `VBytes`, and the functions
  `weight_units(item)` and `vbytes(item)` for a `Tx`, `TxIn`, `TxOut`,
  `ScriptPubkey`, `SigScript` or witness (a tuple or list of byte
  strings).
- `bpcore.bp`: `Bp`, a value tagged with the chain it belongs to
  (`Chain.BITCOIN` or `Chain.LIQUID`), with `map`, `try_map` and
  `maybe_map`.
- `bpcore.opret`: `embed_commit(container, msg)` puts a 32-byte message
  into a bare `OP_RETURN` script, the output holding it, or the first
  `OP_RETURN` output of a transaction, and returns the new container with
  an `OpretProof`. `OpretProof.verify` raises `OpretVerifyError` when the
  commitment does not hold; embedding raises `OpretError`.
- `bpcore.tapscript`: `TapretCommitment` (32-byte message and a nonce,
  with a Base85 text form via `str()` and `TapretCommitment.parse`),
  `tapret_script` building the 64-byte commitment leaf, and
  `TAPRET_SCRIPT_COMMITMENT_PREFIX`.
- `bpcore.tapret`: `tagged_hash`, `tap_branch_hash`, `LeafScript`,
  `TapretRightBranch`, `TapretNodePartner` (`left_node`, `right_leaf`,
  `right_branch`) and `TapretPathProof` (`root`, `with_partner`), plus
  `TapretPathError`.
- `bpcore.tapret_commit`: `InternalPk` with BIP-341 `to_output_pk`,
  `commitment_merkle_root`, `convolve_commit_key`,
  `convolve_commit_txout` and `convolve_commit_tx`, and `TapretProof`
  whose `verify` accepts an output key, a `ScriptPubkey`, a `TxOut` or a
  `Tx`. Errors are `TapretKeyError`, `TapretError` and
  `TapretVerifyError`.

## Install

```
pip install .
```

## Examples

Parsing a transaction:

```python
from bpcore.tx import Tx

tx = Tx.parse(
    "0100000001a15d57094aa7a21a28cb20b59aab8fc7d1149a3bdbcddba9c622e4f5f6a99ece"
    "010000006c493046022100f93bb0e7d8db7bd46e40132d1f8242026e045f03a0efe71bbb8e"
    "3f475e970d790221009337cd7f1f929f00cc6ff01f03729b069a7c21b59b1736ddfee5db59"
    "46c5da8c0121033b9b137ee87d5a812d6f506efdd37f0affa7ffc310711c06c7f3e097c944"
    "7c52ffffffff0100e1f505000000001976a9140389035a9225b3839e2bbf32d826a1e22203"
    "1fd888ac00000000"
)
print(tx.txid())       # a6eab3c14ab5272a58a5ba91505ba1a4b6d7a3a9fcbd187b6cd99a7b6d548cb7
print(tx.is_segwit())  # False
```

OP_RETURN commitment:

```python
from bpcore.opret import embed_commit
from bpcore.primitives import Sats
from bpcore.tx import ScriptPubkey, TxOut

out = TxOut(value=Sats(0), script_pubkey=ScriptPubkey(b"\x6a"))
committed, proof = embed_commit(out, bytes(32))
proof.verify(bytes(32), committed)
```

Tapret commitment into a taproot key:

```python
from bpcore.tapret import TapretPathProof
from bpcore.tapret_commit import InternalPk, convolve_commit_key

internal_pk = InternalPk.from_hex(
    "c5f93479093e2b8f724a79844cc10928dd44e9a390b539843fb83fbf842723f3"
)
msg = bytes([8]) * 32
output_key, proof = convolve_commit_key(internal_pk, TapretPathProof.root(0), msg)
proof.verify(msg, output_key)
```

## What it does not do

The package is a library only: it has no command-line tool. It does not
sign or validate scripts, does not talk to the bitcoin network, does not
store anything, and provides no single-use-seal types or type-library
generation. Key-tweak and signature-tweak commitment schemes are not
included; only opret and tapret are.

## Tests

```
pip install .[test]
pytest
```