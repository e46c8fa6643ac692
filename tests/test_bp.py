import pytest

from bpcore.bp import Bp, Chain


def test_bitcoin_variant_accessors():
    item = Bp.bitcoin(5)
    assert item.is_bitcoin()
    assert not item.is_liquid()
    assert item.as_bitcoin() == 5
    assert item.as_liquid() is None
    assert item.chain is Chain.BITCOIN


def test_liquid_variant_accessors():
    item = Bp.liquid("x")
    assert item.is_liquid()
    assert not item.is_bitcoin()
    assert item.as_liquid() == "x"
    assert item.as_bitcoin() is None


def test_chain_tags_fixed_by_format():
    assert int(Bp.bitcoin(3).chain) == 0
    assert int(Bp.liquid(3).chain) == 1
    assert Bp(Chain(0), "a").is_bitcoin()
    assert Bp(Chain(1), "a").is_liquid()


def test_map_keeps_chain():
    mapped = Bp.liquid(3).map(str)
    assert mapped == Bp.liquid("3")
    assert mapped.is_liquid()


def test_try_map_success_and_error():
    assert Bp.bitcoin("7").try_map(int) == Bp.bitcoin(7)
    with pytest.raises(ValueError):
        Bp.bitcoin("nope").try_map(int)


def test_maybe_map():
    assert Bp.bitcoin(4).maybe_map(lambda v: None) is None
    assert Bp.liquid(4).maybe_map(lambda v: v * 2) == Bp.liquid(8)


def test_ordering_by_chain_first():
    assert Bp.bitcoin(100) < Bp.liquid(1)
    assert Bp.bitcoin(1) < Bp.bitcoin(2)
    assert sorted([Bp.liquid(0), Bp.bitcoin(9)]) == [Bp.bitcoin(9), Bp.liquid(0)]


def test_equality_and_hash():
    assert Bp.bitcoin(1) == Bp(Chain.BITCOIN, 1)
    assert Bp.bitcoin(1) != Bp.liquid(1)
    assert len({Bp.bitcoin(1), Bp(0, 1)}) == 1