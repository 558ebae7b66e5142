import dataclasses
import hashlib

import pytest

from chainvote.blocks import (
    Block,
    canonical_json,
    compute_hash,
    genesis_data,
    meets_difficulty,
    mine_block,
    vote_data,
)
from chainvote.exceptions import MalformedBlockError, MiningError


def test_compute_hash_matches_concatenated_fields():
    data = {"voterId": "abc", "candidateId": "c1", "timestamp": 5}
    expected = hashlib.sha256(
        ('3' + 'prev' + '1700000000000' + canonical_json(data) + '7').encode()
    ).hexdigest()
    assert compute_hash(3, "prev", 1700000000000, data, 7) == expected


def test_compute_hash_ignores_key_order():
    a = {"voterId": "v", "candidateId": "c", "timestamp": 1}
    b = {"timestamp": 1, "candidateId": "c", "voterId": "v"}
    assert compute_hash(1, "x", 2, a, 3) == compute_hash(1, "x", 2, b, 3)


def test_mine_block_meets_difficulty_with_smallest_nonce():
    block = mine_block(1, vote_data("v", "c1", 10), "prevhash", difficulty=2, timestamp=1234)
    assert block.index == 1
    assert block.timestamp == 1234
    assert block.previous_hash == "prevhash"
    assert meets_difficulty(block.hash, 2)
    assert block.hash == block.compute_hash()
    # no smaller nonce satisfies the predicate
    for nonce in range(block.nonce):
        assert not meets_difficulty(compute_hash(1, "prevhash", 1234, block.data, nonce), 2)


def test_mine_block_is_deterministic_for_fixed_inputs():
    first = mine_block(2, genesis_data(), "abc", timestamp=99)
    second = mine_block(2, genesis_data(), "abc", timestamp=99)
    assert first == second


def test_mine_block_respects_attempt_cap():
    with pytest.raises(MiningError):
        mine_block(1, genesis_data(), "0", difficulty=12, max_attempts=5)


def test_block_payload_is_read_only():
    block = mine_block(0, genesis_data(), "0")
    with pytest.raises(TypeError):
        block.data["candidateId"] = "c9"
    with pytest.raises(dataclasses.FrozenInstanceError):
        block.nonce = 1


def test_block_wire_format_round_trip():
    block = mine_block(4, vote_data("v", "c1", 10), "prev")
    wire = block.to_dict()
    assert set(wire) == {"index", "timestamp", "data", "previousHash", "hash", "nonce"}
    assert Block.from_dict(wire) == block


@pytest.mark.parametrize(
    "raw",
    [
        None,
        [],
        {"index": 0},
        {"index": -1, "timestamp": 1, "nonce": 0, "data": {}, "previousHash": "0", "hash": "x"},
        {"index": 0, "timestamp": "1", "nonce": 0, "data": {}, "previousHash": "0", "hash": "x"},
        {"index": 0, "timestamp": 1, "nonce": 0, "data": [], "previousHash": "0", "hash": "x"},
        {"index": 0, "timestamp": 1, "nonce": True, "data": {}, "previousHash": "0", "hash": "x"},
        {"index": 1, "timestamp": 1, "nonce": 0, "data": {"voterId": "v", "candidateId": ["c1"]}, "previousHash": "0", "hash": "x"},
        {"index": 1, "timestamp": 1, "nonce": 0, "data": {"candidateId": "c1"}, "previousHash": "0", "hash": "x"},
    ],
)
def test_block_from_dict_rejects_malformed(raw):
    with pytest.raises(MalformedBlockError):
        Block.from_dict(raw)
