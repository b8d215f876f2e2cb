# controllers/auth_controller.py

from flask import Blueprint, request, jsonify, g

from app.auth import login_required, current_user
from schemas.common import load
from schemas.user import RegisterRequest, ProfileUpdateRequest, EmailOTPRequest, VerifyEmailOTPRequest
from services.otp_service import OTPService
from services.user_service import UserService

auth_bp = Blueprint('auth', __name__)


@auth_bp.route('/auth/register', methods=['POST'])
@login_required
def register():
    payload = load(RegisterRequest, request.get_json(silent=True) or {})
    user = UserService.register(payload, current_user())
    return jsonify({
        'success': True,
        'message': 'User registered successfully',
        'data': user
    }), 201


@auth_bp.route('/auth/profile', methods=['GET'])
@login_required
def get_profile():
    user = UserService.get_profile(current_user())
    return jsonify({
        'success': True,
        'message': 'Profile retrieved successfully',
        'data': user
    }), 200


@auth_bp.route('/auth/profile', methods=['PUT'])
@login_required
def update_profile():
    payload = load(ProfileUpdateRequest, request.get_json(silent=True))
    user = UserService.update_profile(payload, current_user())
    return jsonify({
        'success': True,
        'message': 'Profile updated successfully',
        'data': user
    }), 200


@auth_bp.route('/auth/verify', methods=['GET'])
@login_required
def verify_token():
    user = current_user()
    claims = g.get('identity_claims') or {}
    return jsonify({
        'success': True,
        'message': 'Token is valid',
        'data': {
            'user': user.to_dict(),
            'tokenExpiresAt': claims.get('exp'),
        }
    }), 200


@auth_bp.route('/otp/send-email', methods=['POST'])
def send_email_otp():
    payload = load(EmailOTPRequest, request.get_json(silent=True))
    result = OTPService.send_otp(payload.email)
    return jsonify(result), 200


@auth_bp.route('/otp/verify-email', methods=['POST'])
def verify_email_otp():
    payload = load(VerifyEmailOTPRequest, request.get_json(silent=True))
    result = OTPService.verify_otp(payload.email, payload.otp)
    return jsonify(result), 200 if result['success'] else 400


@auth_bp.route('/otp/resend-email', methods=['POST'])
def resend_email_otp():
    payload = load(EmailOTPRequest, request.get_json(silent=True))
    result = OTPService.resend_otp(payload.email)
    return jsonify(result), 200
