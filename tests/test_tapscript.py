import hashlib

import pytest

from bpcore.tapscript import (
    TAPRET_SCRIPT_COMMITMENT_PREFIX,
    TapretCommitment,
    tapret_script,
)


def commitment() -> TapretCommitment:
    msg = hashlib.sha256(b"test data").digest()
    return TapretCommitment(mpc=msg, nonce=8)


def test_commitment_prefix():
    script = tapret_script(commitment())
    assert script[0:31] == TAPRET_SCRIPT_COMMITMENT_PREFIX


def test_commitment_serialization():
    c = commitment()
    script = tapret_script(c)
    assert len(script) == 64
    assert script[63] == c.nonce
    assert script[31:63] == c.mpc


def test_tapret_commitment_base85():
    c = commitment()
    s = str(c)
    assert s == "k#7JerF92P=PEN7cf&`GWfS*?rIEdfEup1%zausI2m"
    assert TapretCommitment.parse(s) == c


def test_bytes_round_trip():
    c = commitment()
    data = c.to_bytes()
    assert len(data) == 33
    assert data[-1] == 8
    assert TapretCommitment.from_bytes(data) == c


def test_from_bytes_wrong_length():
    with pytest.raises(ValueError):
        TapretCommitment.from_bytes(bytes(32))


def test_parse_invalid_base85():
    with pytest.raises(ValueError, match="invalid Base85"):
        TapretCommitment.parse("\"\"\"\"")


def test_parse_wrong_length():
    with pytest.raises(ValueError):
        TapretCommitment.parse(str(commitment())[:-5])


def test_invalid_fields():
    with pytest.raises(ValueError):
        TapretCommitment(bytes(31), 0)
    with pytest.raises(ValueError):
        TapretCommitment(bytes(32), 256)