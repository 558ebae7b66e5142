"""
Admin API Blueprint

Election control and candidate management. Every route needs the 'admin' role.
"""
from flask import Blueprint, jsonify

from chainvote import assistant
from chainvote.exceptions import ElectionInProgressError
from chainvote.voting import Candidate
from service_utils.auth import ADMIN_ROLE, roles_required
from service_utils.context import get_voting_service, json_body
from service_utils.metrics import metrics

admin_api = Blueprint('admin_api', __name__)


@admin_api.route('/toggle', methods=['POST'])
@roles_required([ADMIN_ROLE])
@metrics
def api_toggle_election():
    poll_open = get_voting_service().toggle_election()
    return jsonify({'success': True, 'pollOpen': poll_open})


@admin_api.route('/candidate', methods=['POST'])
@roles_required([ADMIN_ROLE])
@metrics
def api_add_candidate():
    """Register a candidate; a missing manifesto is written by the assistant."""
    service = get_voting_service()
    if service.poll_open:
        raise ElectionInProgressError()
    candidate = Candidate.from_dict(json_body())
    if not candidate.manifesto:
        candidate.manifesto = assistant.generate_manifesto(candidate.name, candidate.department)
    candidates = service.add_candidate(candidate)
    return jsonify({'success': True, 'candidates': candidates}), 201


@admin_api.route('/candidate/<string:candidate_id>', methods=['DELETE'])
@roles_required([ADMIN_ROLE])
@metrics
def api_remove_candidate(candidate_id):
    candidates = get_voting_service().remove_candidate(candidate_id)
    return jsonify({'success': True, 'candidates': candidates})


@admin_api.route('/manifesto', methods=['POST'])
@roles_required([ADMIN_ROLE])
@metrics
def api_generate_manifesto():
    data = json_body()
    name = data.get('name')
    if not name:
        return jsonify({'error': 'Candidate name is required'}), 400
    return jsonify({'manifesto': assistant.generate_manifesto(name, data.get('department', ''))})
