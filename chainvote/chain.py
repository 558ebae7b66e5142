"""
chain.py - Append-only vote ledger with hash linkage and proof-of-work.
"""

import logging
from threading import Lock
from typing import Any, List, Mapping, Optional, Sequence, Tuple

from . import metrics
from .blocks import (
    DEFAULT_DIFFICULTY,
    GENESIS_PREVIOUS_HASH,
    Block,
    genesis_data,
    meets_difficulty,
    mine_block,
)
from .exceptions import ChainIntegrityError

logger = logging.getLogger(__name__)


def validate_chain(blocks: Sequence[Block], difficulty: int = DEFAULT_DIFFICULTY, strict: bool = False) -> bool:
    """
    Validate linkage and hash reproducibility of a sequence of blocks.

    Stops at the first mismatch. With ``strict`` the proof-of-work condition,
    contiguous indices and the genesis payload are checked as well.
    """
    if strict and blocks:
        genesis = blocks[0]
        if genesis.index != 0 or dict(genesis.data) != genesis_data():
            return False
        if genesis.previous_hash != GENESIS_PREVIOUS_HASH or genesis.compute_hash() != genesis.hash:
            return False
        if not meets_difficulty(genesis.hash, difficulty):
            return False
    for i in range(1, len(blocks)):
        prev = blocks[i - 1]
        curr = blocks[i]
        if curr.previous_hash != prev.hash:
            return False
        if curr.compute_hash() != curr.hash:
            return False
        if strict and (curr.index != i or not meets_difficulty(curr.hash, difficulty)):
            return False
    return True


class Ledger:
    """
    Owns the chain of blocks. One instance per process holds the authoritative chain.

    Writers are serialized on an internal lock; readers get immutable tuple snapshots.
    """

    def __init__(self, difficulty: int = DEFAULT_DIFFICULTY, max_attempts: Optional[int] = None) -> None:
        self.difficulty = difficulty
        self.max_attempts = max_attempts
        self._chain: List[Block] = []
        self.lock = Lock()

    def initialize(self, reset: bool = False) -> Block:
        """
        Create the genesis block.

        A no-op on a non-empty chain unless ``reset`` is set, in which case the
        chain is discarded and a fresh genesis block is mined.
        """
        with self.lock:
            if self._chain and not reset:
                return self._chain[0]
            genesis = mine_block(
                0,
                genesis_data(),
                GENESIS_PREVIOUS_HASH,
                difficulty=self.difficulty,
                max_attempts=self.max_attempts,
            )
            self._chain = [genesis]
            metrics.CHAIN_LENGTH.set(1)
            logger.info("Ledger initialized with genesis block %s", genesis.hash[:12])
            return genesis

    def __len__(self) -> int:
        return len(self._chain)

    @property
    def last_block(self) -> Block:
        with self.lock:
            if not self._chain:
                raise ChainIntegrityError("Ledger has not been initialized")
            return self._chain[-1]

    def blocks(self) -> Tuple[Block, ...]:
        """Snapshot of the chain. Never reflects a partially appended block."""
        with self.lock:
            return tuple(self._chain)

    def mine_block(self, data: Mapping[str, Any], previous_hash: str) -> Block:
        """
        Mine a block at index ``len(chain)`` without appending it.
        """
        index = len(self._chain)
        block = mine_block(
            index,
            data,
            previous_hash,
            difficulty=self.difficulty,
            max_attempts=self.max_attempts,
        )
        metrics.BLOCKS_MINED.inc()
        metrics.MINING_ATTEMPTS.observe(block.nonce + 1)
        return block

    def append(self, block: Block) -> None:
        """
        Append a block that extends the current tail.

        Raises:
            ChainIntegrityError: if the index or previous hash does not match the tail.
        """
        with self.lock:
            if not self._chain:
                raise ChainIntegrityError("Ledger has not been initialized")
            last = self._chain[-1]
            if block.index != len(self._chain):
                logger.error(
                    "Rejected block with index %d, expected %d", block.index, len(self._chain)
                )
                raise ChainIntegrityError(
                    "Invalid index for new block.", index=block.index, expected=len(self._chain)
                )
            if block.previous_hash != last.hash:
                logger.error("Rejected block %d: previous hash does not match tail", block.index)
                raise ChainIntegrityError("Invalid previous hash for new block.", index=block.index)
            self._chain.append(block)
            metrics.CHAIN_LENGTH.set(len(self._chain))
        logger.info("Appended block %d (%s)", block.index, block.hash[:12])

    def validate(self, strict: bool = False) -> bool:
        """
        Validate the entire chain for integrity.
        """
        return validate_chain(self.blocks(), difficulty=self.difficulty, strict=strict)

    def to_list(self) -> List[dict]:
        return [block.to_dict() for block in self.blocks()]
