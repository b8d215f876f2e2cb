# controllers/ground_controller.py

from flask import Blueprint, request, jsonify

from app.auth import login_required, roles_required, optional_auth, current_user
from app.errors import ValidationError
from models.user import Role
from schemas.common import load
from schemas.ground import (
    GroundCreateRequest, GroundUpdateRequest, GroundImagesRequest, GroundImageDeleteRequest
)
from services.ground_service import GroundService
from services.utils import get_pagination_args

ground_bp = Blueprint('ground', __name__)


def _float_arg(name):
    value = request.args.get(name)
    if value in (None, ''):
        return None
    try:
        return float(value)
    except ValueError:
        raise ValidationError(f"{name} must be a number")


def _list_filters():
    return {
        'city': request.args.get('city'),
        'state': request.args.get('state'),
        'sport': request.args.get('sport'),
        'minPrice': _float_arg('minPrice'),
        'maxPrice': _float_arg('maxPrice'),
        'rating': _float_arg('rating'),
        'sortBy': request.args.get('sortBy'),
        'sortOrder': request.args.get('sortOrder'),
    }


@ground_bp.route('/grounds', methods=['POST'])
@roles_required(Role.FACILITY_OWNER, Role.ADMIN)
def create_ground():
    payload = load(GroundCreateRequest, request.get_json(silent=True))
    ground = GroundService.create_ground(payload, current_user())
    return jsonify({
        'success': True,
        'message': 'Ground created successfully',
        'data': ground
    }), 201


@ground_bp.route('/grounds', methods=['GET'])
def list_grounds():
    page, limit = get_pagination_args()
    result = GroundService.list_grounds(_list_filters(), page, limit)
    return jsonify({
        'success': True,
        'message': 'Grounds retrieved successfully',
        'data': result
    }), 200


@ground_bp.route('/grounds/search', methods=['GET'])
def search_grounds():
    page, limit = get_pagination_args()
    filters = _list_filters()
    filters['priceRange'] = request.args.get('priceRange')
    result = GroundService.search_grounds(request.args.get('q', '').strip(), filters, page, limit)
    return jsonify({
        'success': True,
        'message': 'Search completed successfully',
        'data': result
    }), 200


@ground_bp.route('/grounds/owner/my-grounds', methods=['GET'])
@roles_required(Role.FACILITY_OWNER, Role.ADMIN)
def my_grounds():
    page, limit = get_pagination_args()
    result = GroundService.get_owner_grounds(current_user(), request.args.get('status'), page, limit)
    return jsonify({
        'success': True,
        'message': 'Your grounds retrieved successfully',
        'data': result
    }), 200


@ground_bp.route('/grounds/<ground_id>', methods=['GET'])
@optional_auth
def get_ground(ground_id):
    result = GroundService.get_ground(ground_id, current_user())
    return jsonify({
        'success': True,
        'message': 'Ground retrieved successfully',
        'data': result
    }), 200


@ground_bp.route('/grounds/<ground_id>', methods=['PUT'])
@login_required
def update_ground(ground_id):
    payload = load(GroundUpdateRequest, request.get_json(silent=True))
    ground = GroundService.update_ground(ground_id, payload, current_user())
    return jsonify({
        'success': True,
        'message': 'Ground updated successfully',
        'data': ground
    }), 200


@ground_bp.route('/grounds/<ground_id>', methods=['DELETE'])
@login_required
def delete_ground(ground_id):
    GroundService.delete_ground(ground_id, current_user())
    return jsonify({
        'success': True,
        'message': 'Ground deleted successfully'
    }), 200


@ground_bp.route('/grounds/<ground_id>/images', methods=['POST'])
@login_required
def add_images(ground_id):
    """Accepts either a multipart 'image' file or a JSON list of already-hosted images."""
    if 'image' in request.files:
        result = GroundService.upload_image_file(
            ground_id, request.files['image'], request.form.get('caption'), current_user()
        )
    else:
        payload = load(GroundImagesRequest, request.get_json(silent=True))
        result = GroundService.add_images(ground_id, payload, current_user())

    return jsonify({
        'success': True,
        'message': 'Images uploaded successfully',
        'data': result
    }), 200


@ground_bp.route('/grounds/<ground_id>/images', methods=['DELETE'])
@login_required
def remove_image(ground_id):
    payload = load(GroundImageDeleteRequest, request.get_json(silent=True))
    result = GroundService.remove_image(ground_id, payload.public_id, current_user())
    return jsonify({
        'success': True,
        'message': 'Image removed successfully',
        'data': result
    }), 200


@ground_bp.route('/grounds/<ground_id>/stats', methods=['GET'])
@login_required
def ground_stats(ground_id):
    result = GroundService.get_ground_stats(ground_id, current_user())
    return jsonify({
        'success': True,
        'message': 'Ground statistics retrieved successfully',
        'data': result
    }), 200
