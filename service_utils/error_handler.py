from flask import Blueprint, current_app, jsonify
from werkzeug.exceptions import HTTPException

from chainvote.exceptions import ChainVoteError, LedgerError

# Blueprint for handling errors across the API
error_bp = Blueprint('error_handler', __name__)


@error_bp.app_errorhandler(ChainVoteError)
def handle_chainvote_error(e):
    """Return JSON for domain errors; ledger errors stay generic"""
    if isinstance(e, LedgerError):
        current_app.logger.exception("Ledger failure: %s", e)
        return jsonify({'error': 'Internal error', 'message': LedgerError.message}), e.status_code
    return jsonify({'error': type(e).__name__, 'message': e.message}), e.status_code


@error_bp.app_errorhandler(HTTPException)
def handle_http_exception(e):
    """Return JSON for HTTP exceptions"""
    return jsonify({'error': e.name, 'description': e.description}), e.code


@error_bp.app_errorhandler(Exception)
def handle_generic_exception(e):
    """Return JSON for uncaught exceptions"""
    current_app.logger.exception("Unhandled exception")
    return jsonify({'error': 'Internal Server Error', 'message': 'Internal error'}), 500
