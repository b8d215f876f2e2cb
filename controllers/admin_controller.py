# controllers/admin_controller.py

from flask import Blueprint, request, jsonify

from app.auth import roles_required, current_user
from app.errors import ValidationError
from models.user import Role
from schemas.common import load
from schemas.review import ReviewModerationRequest
from schemas.user import UpdateRoleRequest, UpdateStatusRequest, GroundStatusRequest
from services.admin_service import AdminService
from services.utils import get_pagination_args

admin_bp = Blueprint('admin', __name__)


def _bool_arg(name):
    value = request.args.get(name)
    if value is None:
        return None
    if value.lower() in ('true', '1', 'yes'):
        return True
    if value.lower() in ('false', '0', 'no'):
        return False
    raise ValidationError(f"{name} must be true or false")


@admin_bp.route('/admin/dashboard', methods=['GET'])
@roles_required(Role.ADMIN)
def dashboard():
    stats = AdminService.get_dashboard_stats()
    return jsonify({
        'success': True,
        'message': 'Dashboard statistics retrieved successfully',
        'data': stats
    }), 200


@admin_bp.route('/admin/users', methods=['GET'])
@roles_required(Role.ADMIN)
def list_users():
    page, limit = get_pagination_args()
    filters = {
        'role': request.args.get('role'),
        'status': request.args.get('status'),
        'search': request.args.get('search'),
    }
    result = AdminService.list_users(filters, page, limit)
    return jsonify({
        'success': True,
        'message': 'Users retrieved successfully',
        'data': result
    }), 200


@admin_bp.route('/admin/users/<user_id>', methods=['GET'])
@roles_required(Role.ADMIN)
def get_user(user_id):
    user = AdminService.get_user(user_id)
    return jsonify({
        'success': True,
        'message': 'User retrieved successfully',
        'data': user
    }), 200


@admin_bp.route('/admin/users/<user_id>/role', methods=['PUT'])
@roles_required(Role.ADMIN)
def update_user_role(user_id):
    payload = load(UpdateRoleRequest, request.get_json(silent=True))
    user = AdminService.update_user_role(user_id, payload.role, current_user())
    return jsonify({
        'success': True,
        'message': f"User role updated to {payload.role}",
        'data': user
    }), 200


@admin_bp.route('/admin/users/<user_id>/status', methods=['PUT'])
@roles_required(Role.ADMIN)
def update_user_status(user_id):
    payload = load(UpdateStatusRequest, request.get_json(silent=True))
    user = AdminService.update_user_status(user_id, payload.status, payload.reason, current_user())
    return jsonify({
        'success': True,
        'message': f"User status updated to {payload.status}",
        'data': user
    }), 200


@admin_bp.route('/admin/grounds', methods=['GET'])
@roles_required(Role.ADMIN)
def list_grounds():
    page, limit = get_pagination_args()
    filters = {
        'status': request.args.get('status'),
        'verified': _bool_arg('verified'),
        'search': request.args.get('search'),
    }
    result = AdminService.list_grounds(filters, page, limit)
    return jsonify({
        'success': True,
        'message': 'Grounds retrieved successfully',
        'data': result
    }), 200


@admin_bp.route('/admin/grounds/<ground_id>/status', methods=['PUT'])
@roles_required(Role.ADMIN)
def update_ground_status(ground_id):
    payload = load(GroundStatusRequest, request.get_json(silent=True))
    ground = AdminService.update_ground_status(ground_id, payload.status, payload.reason, current_user())
    return jsonify({
        'success': True,
        'message': f"Ground status updated to {payload.status}",
        'data': ground
    }), 200


@admin_bp.route('/admin/grounds/<ground_id>/verify', methods=['PUT'])
@roles_required(Role.ADMIN)
def verify_ground(ground_id):
    ground = AdminService.verify_ground(ground_id, current_user())
    return jsonify({
        'success': True,
        'message': 'Ground verified successfully',
        'data': ground
    }), 200


@admin_bp.route('/admin/reviews/<review_id>/moderate', methods=['PUT'])
@roles_required(Role.ADMIN)
def moderate_review(review_id):
    payload = load(ReviewModerationRequest, request.get_json(silent=True))
    review = AdminService.moderate_review(review_id, payload.status, payload.reason, current_user())
    return jsonify({
        'success': True,
        'message': f"Review {payload.status}",
        'data': review
    }), 200
