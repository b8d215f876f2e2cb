# controllers/review_controller.py

from flask import Blueprint, request, jsonify

from app.auth import login_required, roles_required, optional_auth, current_user
from app.errors import ValidationError
from models.user import Role
from schemas.common import load
from schemas.review import (
    ReviewCreateRequest, ReviewUpdateRequest, ReviewReportRequest, OwnerReplyRequest
)
from services.review_service import ReviewService
from services.utils import get_pagination_args

review_bp = Blueprint('review', __name__)


@review_bp.route('/reviews', methods=['POST'])
@login_required
def create_review():
    payload = load(ReviewCreateRequest, request.get_json(silent=True))
    review = ReviewService.create_review(payload, current_user())
    return jsonify({
        'success': True,
        'message': 'Review created successfully',
        'data': review
    }), 201


@review_bp.route('/reviews/ground/<ground_id>', methods=['GET'])
@optional_auth
def ground_reviews(ground_id):
    page, limit = get_pagination_args()
    rating = request.args.get('rating')
    if rating is not None:
        if not rating.isdigit() or not 1 <= int(rating) <= 5:
            raise ValidationError('rating must be an integer between 1 and 5')
        rating = int(rating)

    filters = {
        'rating': rating,
        'category': request.args.get('category'),
        'sortBy': request.args.get('sortBy'),
        'sortOrder': request.args.get('sortOrder'),
    }
    result = ReviewService.get_ground_reviews(ground_id, filters, page, limit, current_user())
    return jsonify({
        'success': True,
        'message': 'Reviews retrieved successfully',
        'data': result
    }), 200


@review_bp.route('/reviews/user/my-reviews', methods=['GET'])
@login_required
def my_reviews():
    page, limit = get_pagination_args()
    result = ReviewService.get_user_reviews(current_user(), page, limit)
    return jsonify({
        'success': True,
        'message': 'Your reviews retrieved successfully',
        'data': result
    }), 200


@review_bp.route('/reviews/owner/all', methods=['GET'])
@roles_required(Role.FACILITY_OWNER, Role.ADMIN)
def owner_reviews():
    page, limit = get_pagination_args()
    result = ReviewService.get_owner_reviews(current_user(), page, limit)
    return jsonify({
        'success': True,
        'message': 'Reviews for your grounds retrieved successfully',
        'data': result
    }), 200


@review_bp.route('/reviews/<review_id>', methods=['GET'])
@optional_auth
def get_review(review_id):
    review = ReviewService.get_review(review_id, current_user())
    return jsonify({
        'success': True,
        'message': 'Review retrieved successfully',
        'data': review
    }), 200


@review_bp.route('/reviews/<review_id>', methods=['PUT'])
@login_required
def update_review(review_id):
    payload = load(ReviewUpdateRequest, request.get_json(silent=True))
    review = ReviewService.update_review(review_id, payload, current_user())
    return jsonify({
        'success': True,
        'message': 'Review updated successfully',
        'data': review
    }), 200


@review_bp.route('/reviews/<review_id>', methods=['DELETE'])
@login_required
def delete_review(review_id):
    ReviewService.delete_review(review_id, current_user())
    return jsonify({
        'success': True,
        'message': 'Review deleted successfully'
    }), 200


@review_bp.route('/reviews/<review_id>/helpful', methods=['POST'])
@login_required
def toggle_helpful(review_id):
    result = ReviewService.toggle_helpful(review_id, current_user())
    return jsonify({
        'success': True,
        'message': 'Marked as helpful' if result['isHelpful'] else 'Removed helpful mark',
        'data': result
    }), 200


@review_bp.route('/reviews/<review_id>/report', methods=['POST'])
@login_required
def report_review(review_id):
    payload = load(ReviewReportRequest, request.get_json(silent=True))
    result = ReviewService.report_review(review_id, payload.reason, current_user())
    return jsonify({
        'success': True,
        'message': 'Review reported successfully',
        'data': result
    }), 200


@review_bp.route('/reviews/<review_id>/reply', methods=['POST'])
@roles_required(Role.FACILITY_OWNER, Role.ADMIN)
def reply_to_review(review_id):
    payload = load(OwnerReplyRequest, request.get_json(silent=True))
    review = ReviewService.add_owner_reply(review_id, payload.content, payload.is_public, current_user())
    return jsonify({
        'success': True,
        'message': 'Reply added successfully',
        'data': review
    }), 200
