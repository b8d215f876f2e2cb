# controllers/booking_controller.py

from flask import Blueprint, request, jsonify

from app.auth import login_required, roles_required, current_user
from app.errors import NotFoundError
from models.ground import Ground
from models.user import Role
from schemas.booking import (
    BookingCreateRequest, AvailabilityCheckRequest, VerifyPaymentRequest,
    MockPaymentRequest, CancelBookingRequest
)
from schemas.common import load
from services.availability_service import AvailabilityService
from services.booking_service import BookingService
from services.utils import get_pagination_args, parse_date_arg

booking_bp = Blueprint('booking', __name__)


@booking_bp.route('/bookings', methods=['POST'])
@login_required
def create_booking():
    payload = load(BookingCreateRequest, request.get_json(silent=True))
    booking = BookingService.create_booking(payload, current_user())
    return jsonify({
        'success': True,
        'message': 'Booking created successfully. Please complete payment to confirm.',
        'data': booking
    }), 201


@booking_bp.route('/bookings/check-availability', methods=['POST'])
@login_required
def check_availability():
    payload = load(AvailabilityCheckRequest, request.get_json(silent=True))
    result = BookingService.quote(payload, current_user())
    return jsonify({
        'success': True,
        'message': result['message'],
        'data': result
    }), 200


@booking_bp.route('/bookings/available-slots/<ground_id>', methods=['GET'])
@login_required
def available_slots(ground_id):
    day = parse_date_arg('date', required=True)
    ground = Ground.query.filter_by(ground_id=ground_id).first()
    if not ground or not ground.is_active():
        raise NotFoundError('Ground not found or inactive')

    grid = AvailabilityService.list_available_slots(ground, day)
    return jsonify({
        'success': True,
        'message': 'Available slots retrieved successfully',
        'data': grid
    }), 200


@booking_bp.route('/bookings/verify-payment', methods=['POST'])
@login_required
def verify_payment():
    payload = load(VerifyPaymentRequest, request.get_json(silent=True))
    result = BookingService.verify_payment(payload, current_user())
    return jsonify({
        'success': True,
        'message': 'Payment verified and booking confirmed successfully',
        'data': result
    }), 200


@booking_bp.route('/bookings/mock-payment-success', methods=['POST'])
@login_required
def mock_payment_success():
    payload = load(MockPaymentRequest, request.get_json(silent=True))
    result = BookingService.mock_payment_success(payload.booking_id, current_user())
    return jsonify({
        'success': True,
        'message': 'Mock payment completed successfully',
        'data': result
    }), 200


@booking_bp.route('/bookings/user', methods=['GET'])
@login_required
def user_bookings():
    page, limit = get_pagination_args()
    result = BookingService.get_user_bookings(current_user(), request.args.get('status'), page, limit)
    return jsonify({
        'success': True,
        'message': 'Bookings retrieved successfully',
        'data': result
    }), 200


@booking_bp.route('/bookings/ground/<ground_id>', methods=['GET'])
@roles_required(Role.FACILITY_OWNER, Role.ADMIN)
def ground_bookings(ground_id):
    page, limit = get_pagination_args()
    result = BookingService.get_ground_bookings(
        ground_id, current_user(), parse_date_arg('date'), request.args.get('status'), page, limit
    )
    return jsonify({
        'success': True,
        'message': 'Ground bookings retrieved successfully',
        'data': result
    }), 200


@booking_bp.route('/bookings/owner/all', methods=['GET'])
@roles_required(Role.FACILITY_OWNER, Role.ADMIN)
def owner_bookings():
    page, limit = get_pagination_args()
    result = BookingService.get_owner_bookings(
        current_user(), parse_date_arg('date'), request.args.get('status'), page, limit
    )
    return jsonify({
        'success': True,
        'message': 'Owner bookings retrieved successfully',
        'data': result
    }), 200


@booking_bp.route('/bookings/<booking_id>/cancel', methods=['PUT'])
@login_required
def cancel_booking(booking_id):
    payload = load(CancelBookingRequest, request.get_json(silent=True) or {})
    result = BookingService.cancel_booking(booking_id, current_user(), payload.reason)
    return jsonify({
        'success': True,
        'message': 'Booking cancelled successfully',
        'data': result
    }), 200


@booking_bp.route('/bookings/<booking_id>', methods=['GET'])
@login_required
def booking_details(booking_id):
    booking = BookingService.get_booking_details(booking_id, current_user())
    return jsonify({
        'success': True,
        'message': 'Booking details retrieved successfully',
        'data': booking
    }), 200
