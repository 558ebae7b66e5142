"""
chainvote - Hash-chained vote ledger and election service.

This package provides the ledger engine, the voting rules on top of it, and
the login/AI collaborators used by the web application.
"""

from .blocks import Block, compute_hash, genesis_data, meets_difficulty, mine_block
from .chain import Ledger, validate_chain
from .exceptions import (
    ChainIntegrityError,
    ChainVoteError,
    DuplicateVoteError,
    MiningError,
    PollClosedError,
    UnknownCandidateError,
)
from .otp import OTPStore
from .voting import Candidate, CandidateRegistry, VotingService, anonymize, has_voted, tally_chain

__all__ = [
    "Block",
    "compute_hash",
    "genesis_data",
    "meets_difficulty",
    "mine_block",
    "Ledger",
    "validate_chain",
    "ChainVoteError",
    "ChainIntegrityError",
    "DuplicateVoteError",
    "MiningError",
    "PollClosedError",
    "UnknownCandidateError",
    "OTPStore",
    "Candidate",
    "CandidateRegistry",
    "VotingService",
    "anonymize",
    "has_voted",
    "tally_chain",
]

__version__ = "0.1.0"
