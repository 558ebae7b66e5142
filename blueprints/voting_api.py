"""
Voting API Blueprint

Public election state, vote casting, chain export/validation and results.
"""
from flask import Blueprint, jsonify, request
from flask_jwt_extended import get_jwt_identity

from chainvote import assistant
from chainvote.blocks import Block
from chainvote.chain import validate_chain
from chainvote.voting import normalize_identity
from service_utils.auth import VOTER_ROLE, roles_required
from service_utils.context import get_settings, get_voting_service, json_body
from service_utils.metrics import metrics

voting_api = Blueprint('voting_api', __name__)


def _flag(name):
    return request.args.get(name, '').lower() in ('1', 'true', 'yes')


@voting_api.route('/state', methods=['GET'])
@metrics
def api_state():
    return jsonify(get_voting_service().state())


@voting_api.route('/vote', methods=['POST'])
@roles_required([VOTER_ROLE])
@metrics
def api_cast_vote():
    """Cast a vote as the voter identified by the JWT."""
    data = json_body()
    identity = get_jwt_identity()
    claimed = data.get('voterIdentity')
    if claimed is not None and normalize_identity(str(claimed)) != identity:
        return jsonify({'error': 'Forbidden', 'message': 'Voter identity does not match login.'}), 403
    block = get_voting_service().cast_vote(identity, data.get('candidateId'))
    return jsonify({'success': True, 'block': block.to_dict()}), 201


@voting_api.route('/chain', methods=['GET'])
@metrics
def api_chain():
    blocks = get_voting_service().ledger.blocks()
    return jsonify({'chain': [b.to_dict() for b in blocks], 'length': len(blocks)})


@voting_api.route('/chain/validate', methods=['GET'])
@metrics
def api_validate_chain():
    service = get_voting_service()
    return jsonify({'valid': service.validate(strict=_flag('strict')), 'length': len(service.ledger)})


@voting_api.route('/chain/verify', methods=['POST'])
@metrics
def api_verify_chain():
    """Validate an externally supplied chain without touching the live ledger."""
    data = request.get_json(silent=True)
    raw = data.get('chain') if isinstance(data, dict) else data
    if not isinstance(raw, list):
        return jsonify({'error': 'Expected a list of blocks under "chain"'}), 400
    blocks = [Block.from_dict(item) for item in raw]
    strict = _flag('strict') or (isinstance(data, dict) and bool(data.get('strict')))
    valid = validate_chain(blocks, difficulty=get_settings().difficulty, strict=strict)
    return jsonify({'valid': valid, 'length': len(blocks)})


@voting_api.route('/results', methods=['GET'])
@metrics
def api_results():
    return jsonify(get_voting_service().results())


@voting_api.route('/results/summary', methods=['GET'])
@metrics
def api_results_summary():
    results = get_voting_service().results()
    results['summary'] = assistant.summarize_results(
        results['candidates'], results['totalVotes'], results['winner']
    )
    return jsonify(results)
