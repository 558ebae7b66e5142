from flask import Blueprint, jsonify

from service_utils.context import get_voting_service

# Health check endpoints
health_bp = Blueprint('health_check', __name__)


@health_bp.route('/health', methods=['GET'])
def health():
    """Application health endpoint, including ledger integrity"""
    service = get_voting_service()
    valid = service.validate()
    body = {
        'status': 'ok' if valid else 'degraded',
        'chainValid': valid,
        'chainLength': len(service.ledger),
        'pollOpen': service.poll_open,
    }
    return jsonify(body), 200 if valid else 503
