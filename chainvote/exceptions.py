"""
exceptions.py - Custom exceptions for the chainvote package.
"""


class ChainVoteError(Exception):
    """Base exception for chainvote errors."""

    status_code = 400
    message = "Request could not be processed."

    def __init__(self, message=None, **details):
        super().__init__(message or self.message)
        self.message = message or self.message
        self.details = details


class LedgerError(ChainVoteError):
    """Raised for ledger-level failures. These signal bugs, not user input."""

    status_code = 500
    message = "Internal error"


class ChainIntegrityError(LedgerError):
    """Raised when a block does not extend the current chain tail."""
    pass


class MiningError(LedgerError):
    """Raised when the nonce search exceeds the configured attempt cap."""
    pass


class VotingError(ChainVoteError):
    """Base class for rejected votes."""

    status_code = 409


class PollClosedError(VotingError):
    """Raised when a vote is cast while polling is closed."""

    message = "Voting is closed."


class DuplicateVoteError(VotingError):
    """Raised when the voter digest is already on the chain."""

    message = "You have already voted."


class UnknownCandidateError(VotingError):
    """Raised when a vote references a candidate that is not registered."""

    status_code = 404
    message = "Unknown candidate."


class InvalidVoteError(VotingError):
    """Raised when a vote request is missing the voter identity or candidate."""

    status_code = 400
    message = "Voter identity and candidate are required."


class CandidateError(ChainVoteError):
    """Base class for candidate registry errors."""
    pass


class InvalidCandidateError(CandidateError):
    """Raised for malformed candidate data."""

    message = "Invalid candidate data"


class DuplicateCandidateError(CandidateError):
    """Raised when a candidate id is registered twice."""

    status_code = 409
    message = "Candidate already exists."


class ElectionInProgressError(CandidateError):
    """Raised when the registry is changed while polling is open."""

    status_code = 409
    message = "Cannot change candidates while voting is live."


class AuthError(ChainVoteError):
    """Base class for login failures."""
    pass


class OTPNotRequestedError(AuthError):
    """Raised when no OTP was issued for the email."""

    message = "No OTP requested for this email"


class OTPExpiredError(AuthError):
    """Raised when the OTP is past its expiry."""

    message = "OTP expired. Please request a new one."


class InvalidOTPError(AuthError):
    """Raised when the submitted OTP does not match."""

    status_code = 401
    message = "Invalid OTP"


class MailDeliveryError(AuthError):
    """Raised when the OTP email could not be sent."""

    status_code = 502
    message = "Failed to send email. Please check server logs."


class MalformedBlockError(ChainVoteError):
    """Raised when a block in wire format is missing fields or has wrong types."""

    message = "Malformed block data"


class InvalidRequestError(ChainVoteError):
    """Raised when a request body is not a JSON object."""

    message = "Request body must be a JSON object"
