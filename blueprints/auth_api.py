"""
Auth API Blueprint

Email OTP login. A verified OTP is exchanged for a JWT whose identity is the
normalized email and whose 'roles' claim is either admin or voter.
"""
import re

from flask import Blueprint, current_app, jsonify
from flask_jwt_extended import create_access_token

from chainvote import mailer
from chainvote.voting import normalize_identity
from service_utils.auth import ADMIN_ROLE, limiter, roles_for
from service_utils.context import get_otp_store, get_settings, get_voting_service, json_body
from service_utils.logging import get_logger
from service_utils.metrics import metrics

auth_api = Blueprint('auth_api', __name__)

logger = get_logger(__name__)

EMAIL_RE = re.compile(r'[^@\s]+@[^@\s]+\.[^@\s]+')


def _email_from(data):
    email = data.get('email')
    if not isinstance(email, str) or not EMAIL_RE.fullmatch(email.strip()):
        return None
    return normalize_identity(email)


@auth_api.route('/send-otp', methods=['POST'])
@limiter.limit(lambda: get_settings().otp_rate_limit)
@metrics
def send_otp():
    data = json_body()
    email = _email_from(data)
    if not email:
        return jsonify({'error': 'Email required'}), 400
    settings = get_settings()
    code = get_otp_store().issue(email)
    logger.info(f"Generated OTP for {email}")
    sent = mailer.send_otp(current_app, email, code, settings.otp_ttl_seconds)
    message = 'OTP sent to email' if sent else 'OTP generated (Check Server Logs - Email Config Missing)'
    return jsonify({'success': True, 'message': message})


@auth_api.route('/verify-otp', methods=['POST'])
@metrics
def verify_otp():
    data = json_body()
    email = _email_from(data)
    otp = data.get('otp')
    if not email or not otp:
        return jsonify({'error': 'Email and OTP required'}), 400
    get_otp_store().verify(email, str(otp).strip())
    roles = roles_for(email, get_settings().admin_emails)
    token = create_access_token(identity=email, additional_claims={'roles': roles})
    logger.info(f"Login verified for {email} as {roles[0]}")
    return jsonify({
        'success': True,
        'accessToken': token,
        'email': email,
        'role': roles[0],
        'isAdmin': ADMIN_ROLE in roles,
        'hasVoted': get_voting_service().has_voted(email),
    })
