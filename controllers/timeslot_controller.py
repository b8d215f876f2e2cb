# controllers/timeslot_controller.py

from flask import Blueprint, request, jsonify

from app.auth import roles_required, current_user
from models.user import Role
from schemas.common import load
from schemas.timeslot import BlockTimeSlotRequest
from services.timeslot_service import TimeSlotService
from services.utils import parse_date_arg

timeslot_bp = Blueprint('timeslot', __name__)


@timeslot_bp.route('/timeslots/block', methods=['POST'])
@roles_required(Role.FACILITY_OWNER, Role.ADMIN)
def block_time_slot():
    payload = load(BlockTimeSlotRequest, request.get_json(silent=True))
    block = TimeSlotService.block_time_slot(payload, current_user())
    return jsonify({
        'success': True,
        'message': 'Time slot blocked successfully',
        'data': block
    }), 201


@timeslot_bp.route('/timeslots/<int:slot_id>', methods=['DELETE'])
@roles_required(Role.FACILITY_OWNER, Role.ADMIN)
def unblock_time_slot(slot_id):
    TimeSlotService.unblock_time_slot(slot_id, current_user())
    return jsonify({
        'success': True,
        'message': 'Time slot unblocked successfully'
    }), 200


@timeslot_bp.route('/timeslots/ground/<ground_id>/blocked', methods=['GET'])
@roles_required(Role.FACILITY_OWNER, Role.ADMIN)
def blocked_time_slots(ground_id):
    result = TimeSlotService.get_blocked_time_slots(
        ground_id,
        current_user(),
        day=parse_date_arg('date'),
        start_date=parse_date_arg('startDate'),
        end_date=parse_date_arg('endDate'),
    )
    return jsonify({
        'success': True,
        'message': 'Blocked time slots retrieved successfully',
        'data': result
    }), 200


@timeslot_bp.route('/timeslots/ground/<ground_id>/availability', methods=['GET'])
def ground_availability(ground_id):
    start_date = parse_date_arg('startDate') or parse_date_arg('date')
    result = TimeSlotService.get_ground_availability(ground_id, start_date, parse_date_arg('endDate'))
    return jsonify({
        'success': True,
        'message': 'Ground availability retrieved successfully',
        'data': result
    }), 200
