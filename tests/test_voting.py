import hashlib
import threading

import pytest

from chainvote.chain import Ledger
from chainvote.exceptions import (
    DuplicateCandidateError,
    DuplicateVoteError,
    ElectionInProgressError,
    InvalidCandidateError,
    InvalidVoteError,
    PollClosedError,
    UnknownCandidateError,
)
from chainvote.voting import Candidate, VotingService, anonymize, has_voted, tally_chain


def test_anonymize_normalizes_and_hashes():
    digest = anonymize("  Alice@X.edu ")
    assert digest == anonymize("alice@x.edu")
    assert digest == hashlib.sha256(b"alice@x.edu").hexdigest()
    assert digest != anonymize("bob@x.edu")


def test_election_scenario():
    ledger = Ledger()
    ledger.initialize()
    assert len(ledger) == 1
    service = VotingService(ledger)
    service.add_candidate(Candidate(id="c1", name="Asha"))
    assert service.toggle_election() is True

    block = service.cast_vote("alice@x.edu", "c1")
    assert block.index == 1
    assert len(ledger) == 2
    assert service.tallies()["c1"] == 1

    with pytest.raises(DuplicateVoteError):
        service.cast_vote("alice@x.edu", "c1")
    assert len(ledger) == 2

    assert service.toggle_election() is False
    with pytest.raises(PollClosedError):
        service.cast_vote("bob@x.edu", "c1")
    assert len(ledger) == 2


def test_vote_block_never_stores_raw_email(open_service):
    block = open_service.cast_vote("Alice@X.edu", "c1")
    assert block.voter_id == anonymize("alice@x.edu")
    assert "alice" not in str(dict(block.data)).lower()
    assert set(block.data) == {"voterId", "candidateId", "timestamp"}


@pytest.mark.parametrize("second_choice", ["c1", "c2"])
def test_duplicate_rejected_for_any_candidate(open_service, second_choice):
    open_service.cast_vote("alice@x.edu", "c1")
    with pytest.raises(DuplicateVoteError):
        open_service.cast_vote(" ALICE@x.edu", second_choice)
    assert open_service.tallies() == {"c1": 1, "c2": 0}


def test_unknown_candidate_rejected_before_mining(open_service):
    with pytest.raises(UnknownCandidateError):
        open_service.cast_vote("alice@x.edu", "nobody")
    assert len(open_service.ledger) == 1
    assert not open_service.has_voted("alice@x.edu")


def test_unknown_candidate_accepted_when_not_enforced(ledger):
    service = VotingService(ledger, require_registered_candidate=False, poll_open=True)
    service.cast_vote("alice@x.edu", "write-in")
    assert tally_chain(ledger.blocks()) == {"write-in": 1}
    assert service.tallies() == {}


@pytest.mark.parametrize("identity, candidate", [("", "c1"), ("   ", "c1"), ("a@x.edu", ""), (None, "c1")])
def test_invalid_vote_requests(open_service, identity, candidate):
    with pytest.raises(InvalidVoteError):
        open_service.cast_vote(identity, candidate)


@pytest.mark.parametrize("identity, candidate", [("", "c1"), ("a@x.edu", ""), (None, None), ("a@x.edu", "ghost")])
def test_closed_poll_is_reported_before_bad_input(service, identity, candidate):
    service.add_candidate(Candidate(id="c1", name="Asha"))
    with pytest.raises(PollClosedError):
        service.cast_vote(identity, candidate)


def test_closed_poll_is_reported_before_duplicate(open_service):
    open_service.cast_vote("alice@x.edu", "c1")
    open_service.toggle_election()
    with pytest.raises(PollClosedError):
        open_service.cast_vote("alice@x.edu", "c2")
    assert len(open_service.ledger) == 2


def test_tallies_match_incremental_counts(open_service):
    votes = [("a@x.edu", "c1"), ("b@x.edu", "c2"), ("c@x.edu", "c1"), ("d@x.edu", "c1")]
    for email, cid in votes:
        open_service.cast_vote(email, cid)
        assert open_service.tallies() == open_service.cached_tallies()
    assert open_service.tallies() == {"c1": 3, "c2": 1}


def test_genesis_excluded_from_counts_and_duplicate_checks(service):
    blocks = service.ledger.blocks()
    assert dict(blocks[0].data) == {"voterId": "GENESIS", "candidateId": "GENESIS"}
    assert tally_chain(blocks) == {}
    assert not has_voted(blocks, "GENESIS")


def test_service_initializes_empty_ledger():
    ledger = Ledger()
    VotingService(ledger)
    assert len(ledger) == 1


def test_candidate_changes_blocked_while_poll_open(open_service):
    with pytest.raises(ElectionInProgressError):
        open_service.add_candidate(Candidate(id="c3", name="Meera"))
    with pytest.raises(ElectionInProgressError):
        open_service.remove_candidate("c1")


def test_candidate_registry_rules(service):
    service.add_candidate(Candidate(id="c1", name="Asha"))
    with pytest.raises(DuplicateCandidateError):
        service.add_candidate(Candidate(id="c1", name="Other"))
    with pytest.raises(UnknownCandidateError):
        service.remove_candidate("c9")
    assert [c["id"] for c in service.remove_candidate("c1")] == []


@pytest.mark.parametrize("raw", [None, {}, {"id": "c1"}, {"id": " ", "name": "A"}, {"name": "A"}])
def test_candidate_from_dict_validation(raw):
    with pytest.raises(InvalidCandidateError):
        Candidate.from_dict(raw)


def test_readded_candidate_count_is_replayed_from_chain(open_service):
    open_service.cast_vote("a@x.edu", "c2")
    open_service.toggle_election()
    open_service.remove_candidate("c2")
    state = open_service.add_candidate(Candidate(id="c2", name="Ravi"))
    assert {c["id"]: c["voteCount"] for c in state}["c2"] == 1
    assert open_service.tallies() == open_service.cached_tallies()


def test_results_winner_and_totals(open_service):
    assert open_service.results()["winner"] is None
    open_service.cast_vote("a@x.edu", "c2")
    open_service.cast_vote("b@x.edu", "c2")
    open_service.cast_vote("c@x.edu", "c1")
    results = open_service.results()
    assert results["totalVotes"] == 3
    assert results["tallies"] == {"c1": 1, "c2": 2}
    assert results["winner"]["id"] == "c2"
    assert results["winner"]["voteCount"] == 2


def test_results_tie_goes_to_first_registered(open_service):
    open_service.cast_vote("a@x.edu", "c2")
    open_service.cast_vote("b@x.edu", "c1")
    assert open_service.results()["winner"]["id"] == "c1"


def test_state_snapshot(open_service):
    open_service.cast_vote("a@x.edu", "c1")
    state = open_service.state()
    assert state["pollOpen"] is True
    assert len(state["chain"]) == 2
    assert state["chain"][1]["previousHash"] == state["chain"][0]["hash"]
    assert {c["id"]: c["voteCount"] for c in state["candidates"]} == {"c1": 1, "c2": 0}


def test_concurrent_votes_from_same_voter_record_once(open_service):
    barrier = threading.Barrier(8)
    outcomes = []

    def vote():
        barrier.wait()
        try:
            open_service.cast_vote("alice@x.edu", "c1")
            outcomes.append("ok")
        except DuplicateVoteError:
            outcomes.append("duplicate")

    threads = [threading.Thread(target=vote) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert outcomes.count("ok") == 1
    assert outcomes.count("duplicate") == 7
    assert len(open_service.ledger) == 2
    assert open_service.validate(strict=True)


def test_concurrent_votes_from_distinct_voters_keep_chain_valid(open_service):
    threads = [
        threading.Thread(target=open_service.cast_vote, args=(f"v{i}@x.edu", "c1" if i % 2 else "c2"))
        for i in range(10)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(open_service.ledger) == 11
    assert open_service.validate(strict=True)
    assert open_service.tallies() == {"c1": 5, "c2": 5}
    assert open_service.tallies() == open_service.cached_tallies()
