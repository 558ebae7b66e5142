from flask import current_app, request

from chainvote.exceptions import InvalidRequestError

EXTENSION_KEY = 'chainvote'


def _ext():
    return current_app.extensions[EXTENSION_KEY]


def get_voting_service():
    """VotingService bound to the current application"""
    return _ext()['voting']


def get_otp_store():
    return _ext()['otp']


def get_settings():
    return _ext()['settings']


def json_body():
    """The request's JSON object; an absent or unparsable body reads as empty."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InvalidRequestError()
    return data
