"""
blocks.py - Block definition and proof-of-work mining for the vote ledger.

A block hash is the SHA-256 hex digest of the concatenation
``index + previousHash + timestamp + json(data) + nonce`` where ``json(data)``
is the compact, key-sorted JSON encoding of the payload.
"""
import hashlib
import json
import time
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from .exceptions import MalformedBlockError, MiningError

GENESIS_ID = "GENESIS"
GENESIS_PREVIOUS_HASH = "0"
DEFAULT_DIFFICULTY = 2


def now_ms() -> int:
    """Current time in milliseconds since the epoch."""
    return int(time.time() * 1000)


def canonical_json(data: Mapping[str, Any]) -> str:
    """Deterministic JSON encoding of a block payload."""
    return json.dumps(dict(data), sort_keys=True, separators=(",", ":"))


def sha256_hex(message: str) -> str:
    return hashlib.sha256(message.encode("utf-8")).hexdigest()


def compute_hash(index: int, previous_hash: str, timestamp: int, data: Mapping[str, Any], nonce: int) -> str:
    """
    Compute the hash of a block from its fields.
    """
    return sha256_hex(f"{index}{previous_hash}{timestamp}{canonical_json(data)}{nonce}")


def meets_difficulty(block_hash: str, difficulty: int) -> bool:
    """True if the hex digest starts with ``difficulty`` zero characters."""
    return block_hash.startswith("0" * difficulty)


def genesis_data() -> Dict[str, str]:
    return {"voterId": GENESIS_ID, "candidateId": GENESIS_ID}


def vote_data(voter_id: str, candidate_id: str, timestamp: Optional[int] = None) -> Dict[str, Any]:
    return {
        "voterId": voter_id,
        "candidateId": candidate_id,
        "timestamp": now_ms() if timestamp is None else timestamp,
    }


@dataclass(frozen=True)
class Block:
    """
    One immutable ledger entry: a vote record or the genesis sentinel.
    """

    index: int
    timestamp: int
    data: Mapping[str, Any]
    previous_hash: str
    hash: str
    nonce: int = 0

    def __post_init__(self) -> None:
        # payload is copied and exposed read-only
        object.__setattr__(self, "data", MappingProxyType(dict(self.data)))

    @property
    def voter_id(self) -> Optional[str]:
        return self.data.get("voterId")

    @property
    def candidate_id(self) -> Optional[str]:
        return self.data.get("candidateId")

    def compute_hash(self) -> str:
        """Recompute the hash from the stored fields."""
        return compute_hash(self.index, self.previous_hash, self.timestamp, self.data, self.nonce)

    def to_dict(self) -> Dict[str, Any]:
        """Wire format of the block."""
        return {
            "index": self.index,
            "timestamp": self.timestamp,
            "data": dict(self.data),
            "previousHash": self.previous_hash,
            "hash": self.hash,
            "nonce": self.nonce,
        }

    @classmethod
    def from_dict(cls, raw: Any) -> "Block":
        """
        Build a block from its wire format.

        Raises:
            MalformedBlockError: if a field is missing or has the wrong type.
        """
        if not isinstance(raw, dict):
            raise MalformedBlockError("Block must be a JSON object")
        try:
            index, timestamp, nonce = raw["index"], raw["timestamp"], raw["nonce"]
            data, previous_hash, block_hash = raw["data"], raw["previousHash"], raw["hash"]
        except KeyError as e:
            raise MalformedBlockError(f"Block is missing field {e.args[0]!r}") from e
        for name, value in (("index", index), ("timestamp", timestamp), ("nonce", nonce)):
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise MalformedBlockError(f"Block field {name!r} must be a non-negative integer")
        if not isinstance(data, dict):
            raise MalformedBlockError("Block field 'data' must be an object")
        for key in ("voterId", "candidateId"):
            if not isinstance(data.get(key), str):
                raise MalformedBlockError(f"Block data field {key!r} must be a string")
        if not isinstance(previous_hash, str) or not isinstance(block_hash, str):
            raise MalformedBlockError("Block hashes must be strings")
        return cls(
            index=index,
            timestamp=timestamp,
            data=data,
            previous_hash=previous_hash,
            hash=block_hash,
            nonce=nonce,
        )


def mine_block(
    index: int,
    data: Mapping[str, Any],
    previous_hash: str,
    difficulty: int = DEFAULT_DIFFICULTY,
    max_attempts: Optional[int] = None,
    timestamp: Optional[int] = None,
) -> Block:
    """
    Search nonces from 0 upward until the block hash meets the difficulty.

    The timestamp is taken once and held fixed for every attempt. Mining has no
    side effects; appending the block is left to the caller.

    Args:
        index: Position the block will occupy in the chain.
        data: Block payload.
        previous_hash: Hash of the current chain tail.
        difficulty: Required number of leading zero hex characters.
        max_attempts: Give up after this many nonces. None or 0 means unbounded.
        timestamp: Fixed creation time in ms; defaults to now.
    Returns:
        The mined Block.
    Raises:
        MiningError: if max_attempts nonces were tried without success.
    """
    if timestamp is None:
        timestamp = now_ms()
    nonce = 0
    while True:
        block_hash = compute_hash(index, previous_hash, timestamp, data, nonce)
        if meets_difficulty(block_hash, difficulty):
            return Block(
                index=index,
                timestamp=timestamp,
                data=data,
                previous_hash=previous_hash,
                hash=block_hash,
                nonce=nonce,
            )
        nonce += 1
        if max_attempts and nonce >= max_attempts:
            raise MiningError(
                f"No nonce found for block {index} after {max_attempts} attempts",
                index=index,
                attempts=max_attempts,
            )
