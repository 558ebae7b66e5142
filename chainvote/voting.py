"""
voting.py - Election rules on top of the vote ledger.

The chain is the source of truth. Candidate vote counts are a cache that is
kept equal to a replay of the chain.
"""

import logging
from dataclasses import dataclass
from threading import Lock
from typing import Any, Dict, Iterable, List, Optional, Sequence

from . import metrics
from .blocks import Block, sha256_hex, vote_data
from .chain import Ledger
from .exceptions import (
    DuplicateCandidateError,
    DuplicateVoteError,
    ElectionInProgressError,
    InvalidCandidateError,
    InvalidVoteError,
    PollClosedError,
    UnknownCandidateError,
    VotingError,
)

logger = logging.getLogger(__name__)


def normalize_identity(raw_identity: str) -> str:
    return raw_identity.strip().lower()


def anonymize(raw_identity: str) -> str:
    """One-way digest of a normalized voter identity (email)."""
    return sha256_hex(normalize_identity(raw_identity))


def has_voted(blocks: Sequence[Block], digest: str) -> bool:
    """True if any non-genesis block carries the voter digest."""
    return any(block.voter_id == digest for block in blocks[1:])


def tally_chain(blocks: Sequence[Block], candidate_ids: Optional[Iterable[str]] = None) -> Dict[str, int]:
    """
    Count votes per candidate by replaying the chain, genesis excluded.

    With ``candidate_ids`` every listed candidate appears (possibly with 0) and
    votes for other ids are ignored.
    """
    if candidate_ids is None:
        counts: Dict[str, int] = {}
        for block in blocks[1:]:
            counts[block.candidate_id] = counts.get(block.candidate_id, 0) + 1
        return counts
    counts = {cid: 0 for cid in candidate_ids}
    for block in blocks[1:]:
        if block.candidate_id in counts:
            counts[block.candidate_id] += 1
    return counts


@dataclass
class Candidate:
    id: str
    name: str
    department: str = ""
    manifesto: str = ""
    vote_count: int = 0

    @classmethod
    def from_dict(cls, raw: Any) -> "Candidate":
        if not isinstance(raw, dict):
            raise InvalidCandidateError()
        cid, name = raw.get("id"), raw.get("name")
        if not isinstance(cid, str) or not cid.strip():
            raise InvalidCandidateError()
        if not isinstance(name, str) or not name.strip():
            raise InvalidCandidateError("Candidate name is required")
        return cls(
            id=cid.strip(),
            name=name.strip(),
            department=str(raw.get("department") or ""),
            manifesto=str(raw.get("manifesto") or ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "department": self.department,
            "manifesto": self.manifesto,
            "voteCount": self.vote_count,
        }


class CandidateRegistry:
    """Ordered registry of candidates. Never touches the chain."""

    def __init__(self, candidates: Optional[Iterable[Candidate]] = None) -> None:
        self._candidates: Dict[str, Candidate] = {}
        for candidate in candidates or ():
            self.add(candidate)

    def __contains__(self, candidate_id: object) -> bool:
        return candidate_id in self._candidates

    def __len__(self) -> int:
        return len(self._candidates)

    def __iter__(self):
        return iter(list(self._candidates.values()))

    def ids(self) -> List[str]:
        return list(self._candidates)

    def get(self, candidate_id: str) -> Candidate:
        try:
            return self._candidates[candidate_id]
        except KeyError:
            raise UnknownCandidateError(f"Unknown candidate: {candidate_id}") from None

    def add(self, candidate: Candidate) -> Candidate:
        if candidate.id in self._candidates:
            raise DuplicateCandidateError(f"Candidate {candidate.id} already exists.")
        self._candidates[candidate.id] = candidate
        return candidate

    def remove(self, candidate_id: str) -> Candidate:
        candidate = self.get(candidate_id)
        del self._candidates[candidate_id]
        return candidate

    def increment(self, candidate_id: str) -> None:
        if candidate_id in self._candidates:
            self._candidates[candidate_id].vote_count += 1

    def counts(self) -> Dict[str, int]:
        return {cid: c.vote_count for cid, c in self._candidates.items()}

    def to_list(self) -> List[Dict[str, Any]]:
        return [c.to_dict() for c in self._candidates.values()]


class VotingService:
    """
    Voter-facing operations on a Ledger.

    ``cast_vote`` runs its duplicate check, mining, append and tally update as
    one critical section, so two concurrent votes from the same voter cannot
    both pass the duplicate check.
    """

    def __init__(
        self,
        ledger: Ledger,
        registry: Optional[CandidateRegistry] = None,
        require_registered_candidate: bool = True,
        poll_open: bool = False,
    ) -> None:
        self.ledger = ledger
        self.registry = registry if registry is not None else CandidateRegistry()
        self.require_registered_candidate = require_registered_candidate
        self.poll_open = poll_open
        self.lock = Lock()
        if not len(self.ledger):
            self.ledger.initialize()
        metrics.POLL_OPEN.set(int(poll_open))

    def _reject(self, error: VotingError, reason: str) -> VotingError:
        metrics.VOTES_REJECTED.labels(reason=reason).inc()
        logger.info("Vote rejected: %s", reason)
        return error

    def cast_vote(self, raw_identity: str, candidate_id: str) -> Block:
        """
        Record a vote on the ledger.

        Raises:
            PollClosedError: polling is closed, checked before anything else.
            InvalidVoteError: identity or candidate id is missing.
            UnknownCandidateError: candidate is not registered (when enforced).
            DuplicateVoteError: the voter digest is already on the chain.
        """
        with self.lock:
            if not self.poll_open:
                raise self._reject(PollClosedError(), "poll_closed")
            if not isinstance(raw_identity, str) or not raw_identity.strip():
                raise self._reject(InvalidVoteError(), "invalid")
            if not isinstance(candidate_id, str) or not candidate_id:
                raise self._reject(InvalidVoteError(), "invalid")
            if self.require_registered_candidate and candidate_id not in self.registry:
                raise self._reject(
                    UnknownCandidateError(f"Unknown candidate: {candidate_id}"), "unknown_candidate"
                )
            digest = anonymize(raw_identity)
            if has_voted(self.ledger.blocks(), digest):
                raise self._reject(DuplicateVoteError(), "duplicate")
            tail = self.ledger.last_block
            block = self.ledger.mine_block(vote_data(digest, candidate_id), tail.hash)
            self.ledger.append(block)
            self.registry.increment(candidate_id)
        metrics.VOTES_CAST.labels(candidate=candidate_id).inc()
        return block

    def has_voted(self, raw_identity: str) -> bool:
        return has_voted(self.ledger.blocks(), anonymize(raw_identity))

    def toggle_election(self) -> bool:
        """Flip the polling flag and return the new value."""
        with self.lock:
            self.poll_open = not self.poll_open
            metrics.POLL_OPEN.set(int(self.poll_open))
            logger.info("Voting toggled: %s", self.poll_open)
            return self.poll_open

    def add_candidate(self, candidate: Candidate) -> List[Dict[str, Any]]:
        """
        Register a candidate. Its vote count is seeded from the chain.

        Raises:
            ElectionInProgressError: polling is open.
            DuplicateCandidateError: the id is already registered.
        """
        with self.lock:
            if self.poll_open:
                raise ElectionInProgressError()
            candidate.vote_count = tally_chain(self.ledger.blocks(), [candidate.id])[candidate.id]
            self.registry.add(candidate)
            logger.info("Candidate added: %s. Total: %d", candidate.name, len(self.registry))
            return self.registry.to_list()

    def remove_candidate(self, candidate_id: str) -> List[Dict[str, Any]]:
        with self.lock:
            if self.poll_open:
                raise ElectionInProgressError()
            removed = self.registry.remove(candidate_id)
            logger.info("Candidate removed: %s", removed.name)
            return self.registry.to_list()

    def tallies(self) -> Dict[str, int]:
        """Per-candidate counts recomputed from the chain."""
        with self.lock:
            return tally_chain(self.ledger.blocks(), self.registry.ids())

    def cached_tallies(self) -> Dict[str, int]:
        """Per-candidate counts maintained incrementally by cast_vote."""
        with self.lock:
            return self.registry.counts()

    def validate(self, strict: bool = False) -> bool:
        return self.ledger.validate(strict=strict)

    def state(self) -> Dict[str, Any]:
        """Read-only snapshot of candidates, chain and polling state."""
        with self.lock:
            return {
                "candidates": self.registry.to_list(),
                "chain": [block.to_dict() for block in self.ledger.blocks()],
                "pollOpen": self.poll_open,
            }

    def results(self) -> Dict[str, Any]:
        """
        Election outcome from a chain replay.

        The winner is the registered candidate with the most votes, the first
        registered one on ties, and None before any vote is cast.
        """
        with self.lock:
            blocks = self.ledger.blocks()
            candidates = list(self.registry)
            counts = tally_chain(blocks, [c.id for c in candidates])
        winner = None
        for candidate in candidates:
            if counts[candidate.id] and (winner is None or counts[candidate.id] > counts[winner.id]):
                winner = candidate
        return {
            "totalVotes": len(blocks) - 1,
            "tallies": counts,
            "candidates": [dict(c.to_dict(), voteCount=counts[c.id]) for c in candidates],
            "winner": dict(winner.to_dict(), voteCount=counts[winner.id]) if winner else None,
        }
