# tests/test_bookings.py

from datetime import timedelta

import pytest

from db.extensions import db
from models.booking import Booking
from models.payment import Payment
from services import booking_service
from services.booking_policy import start_datetime
from services.booking_service import BookingService
from services.utils import local_now


def booking_body(ground, day, start='10:00', duration=2, courts=('Court 1',), **extra):
    body = {
        'groundId': ground.ground_id,
        'sport': 'Football',
        'date': day.isoformat(),
        'startTime': start,
        'duration': duration,
        'selectedCourts': list(courts),
    }
    body.update(extra)
    return body


def create(client, headers, body):
    return client.post('/api/bookings', json=body, headers=headers)


def test_create_booking_prices_on_the_server(client, auth_headers, player, ground, weekend_date):
    resp = create(client, auth_headers(player),
                  booking_body(ground, weekend_date, courts=['Court 1', 'Court 2'], totalAmount=1))

    assert resp.status_code == 201
    data = resp.get_json()['data']
    assert data['endTime'] == '12:00'
    assert data['pricing']['pricePerHour'] == 800
    assert data['pricing']['totalAmount'] == 800 * 2 * 2
    assert data['status'] == 'confirmed'
    assert data['paymentStatus'] == 'pending'
    assert data['payment']['amount'] == 3200
    assert data['payment']['gatewayOrderId'].startswith('mock_order_')

    booking = Booking.query.filter_by(booking_id=data['bookingId']).one()
    assert booking.selected_courts == ['Court 1', 'Court 2']
    assert Payment.query.filter_by(booking_id=booking.booking_id).one().status == 'pending'


def test_weekday_rate(client, auth_headers, player, ground, weekday_date):
    resp = create(client, auth_headers(player), booking_body(ground, weekday_date, duration=1))
    assert resp.status_code == 201
    assert resp.get_json()['data']['pricing']['totalAmount'] == 500


def test_same_court_cannot_be_double_booked(client, auth_headers, player, other_player, ground, weekday_date):
    first = create(client, auth_headers(player), booking_body(ground, weekday_date))
    assert first.status_code == 201

    second = create(client, auth_headers(other_player), booking_body(ground, weekday_date, start='11:00'))
    assert second.status_code == 409
    payload = second.get_json()
    assert payload['success'] is False
    assert payload['error'] == 'TIME_SLOT_UNAVAILABLE'
    assert payload['errors'][0]['type'] == 'booking'

    other_court = create(client, auth_headers(other_player),
                         booking_body(ground, weekday_date, start='11:00', courts=['Court 2']))
    assert other_court.status_code == 201


def test_user_cannot_hold_two_overlapping_bookings(client, auth_headers, player, ground, weekday_date):
    assert create(client, auth_headers(player), booking_body(ground, weekday_date)).status_code == 201

    resp = create(client, auth_headers(player), booking_body(ground, weekday_date, courts=['Court 2']))
    assert resp.status_code == 409
    assert resp.get_json()['error'] == 'USER_DOUBLE_BOOKING'


def test_booking_validation(client, auth_headers, player, ground, weekday_date):
    headers = auth_headers(player)

    missing = client.post('/api/bookings', json={'groundId': ground.ground_id}, headers=headers)
    assert missing.status_code == 400
    assert missing.get_json()['errors']

    assert create(client, headers, booking_body(ground, weekday_date, start='21:00', duration=2)).status_code == 400
    assert create(client, headers, booking_body(ground, weekday_date, start='05:00', duration=1)).status_code == 400
    assert create(client, headers, booking_body(ground, weekday_date, courts=['Court 9'])).status_code == 400
    assert create(client, headers, booking_body(ground, weekday_date, sport='Tennis')).status_code == 400

    unknown = create(client, headers, dict(booking_body(ground, weekday_date), groundId='GRD-NOPE'))
    assert unknown.status_code == 404


def test_booking_requires_a_token(client, ground, weekday_date):
    resp = client.post('/api/bookings', json=booking_body(ground, weekday_date))
    assert resp.status_code == 401
    assert resp.get_json()['error'] == 'MISSING_TOKEN'


def test_payment_can_be_verified_only_once(client, auth_headers, player, ground, weekday_date):
    headers = auth_headers(player)
    data = create(client, headers, booking_body(ground, weekday_date)).get_json()['data']
    body = {'bookingId': data['bookingId'], 'gatewayOrderId': data['payment']['gatewayOrderId']}

    first = client.post('/api/bookings/verify-payment', json=body, headers=headers)
    assert first.status_code == 200
    assert first.get_json()['data']['booking']['paymentStatus'] == 'completed'

    second = client.post('/api/bookings/verify-payment', json=body, headers=headers)
    assert second.status_code == 409

    db.session.refresh(ground)
    assert ground.total_bookings == 1
    assert ground.total_revenue == 1000


def test_other_user_cannot_pay_for_booking(client, auth_headers, player, other_player, ground, weekday_date):
    data = create(client, auth_headers(player), booking_body(ground, weekday_date)).get_json()['data']
    resp = client.post('/api/bookings/mock-payment-success',
                       json={'bookingId': data['bookingId']}, headers=auth_headers(other_player))
    assert resp.status_code == 403


def test_book_pay_cancel_round_trip_refunds_in_full(client, auth_headers, player, ground, weekday_date):
    headers = auth_headers(player)
    data = create(client, headers, booking_body(ground, weekday_date)).get_json()['data']
    booking_id = data['bookingId']

    paid = client.post('/api/bookings/mock-payment-success', json={'bookingId': booking_id}, headers=headers)
    assert paid.status_code == 200

    resp = client.put(f'/api/bookings/{booking_id}/cancel', json={'reason': 'Rain'}, headers=headers)
    assert resp.status_code == 200
    result = resp.get_json()['data']
    assert result['status'] == 'cancelled'
    assert result['paymentStatus'] == 'refunded'
    assert result['refundAmount'] == data['pricing']['totalAmount']

    payment = Payment.query.filter_by(booking_id=booking_id).one()
    assert payment.status == 'refunded'
    assert payment.refund_amount == data['pricing']['totalAmount']

    again = client.put(f'/api/bookings/{booking_id}/cancel', json={}, headers=headers)
    assert again.status_code == 400


def test_cancelling_unpaid_booking_fails_payment(client, auth_headers, player, ground, weekday_date):
    headers = auth_headers(player)
    booking_id = create(client, headers, booking_body(ground, weekday_date)).get_json()['data']['bookingId']

    resp = client.put(f'/api/bookings/{booking_id}/cancel', json={}, headers=headers)
    assert resp.status_code == 200
    result = resp.get_json()['data']
    assert result['paymentStatus'] == 'failed'
    assert result['refundAmount'] == 0
    assert Payment.query.filter_by(booking_id=booking_id).one().status == 'cancelled'

    rebook = create(client, headers, booking_body(ground, weekday_date))
    assert rebook.status_code == 201


def test_only_the_booker_can_cancel(client, auth_headers, player, other_player, ground, weekday_date):
    booking_id = create(client, auth_headers(player), booking_body(ground, weekday_date)).get_json()['data']['bookingId']
    resp = client.put(f'/api/bookings/{booking_id}/cancel', json={}, headers=auth_headers(other_player))
    assert resp.status_code == 404


def test_stale_unpaid_bookings_expire(client, auth_headers, player, other_player, ground, weekday_date):
    booking_id = create(client, auth_headers(player), booking_body(ground, weekday_date)).get_json()['data']['bookingId']

    assert BookingService.expire_stale_bookings(now=local_now()) == 0
    assert BookingService.expire_stale_bookings(now=local_now() + timedelta(minutes=20)) == 1

    booking = Booking.query.filter_by(booking_id=booking_id).one()
    assert booking.status == 'cancelled'
    assert booking.cancelled_by == 'system'
    assert Payment.query.filter_by(booking_id=booking_id).one().status == 'cancelled'

    resp = create(client, auth_headers(other_player), booking_body(ground, weekday_date))
    assert resp.status_code == 201


def test_check_availability_quotes_price(client, auth_headers, player, ground, weekday_date):
    resp = client.post('/api/bookings/check-availability',
                       json=booking_body(ground, weekday_date, courts=['Court 1', 'Court 2']),
                       headers=auth_headers(player))
    assert resp.status_code == 200
    data = resp.get_json()['data']
    assert data['available'] is True
    assert data['endTime'] == '12:00'
    assert data['pricing']['totalAmount'] == 2000
    assert Booking.query.count() == 0


def test_available_slots_endpoint(client, auth_headers, player, ground, weekday_date):
    create(client, auth_headers(player), booking_body(ground, weekday_date))

    resp = client.get(f'/api/bookings/available-slots/{ground.ground_id}?date={weekday_date.isoformat()}',
                      headers=auth_headers(player))
    assert resp.status_code == 200
    slots = {s['startTime']: s for s in resp.get_json()['data']['slots']}
    assert slots['10:00']['isAvailable'] is False
    assert slots['12:00']['isAvailable'] is True

    missing_date = client.get(f'/api/bookings/available-slots/{ground.ground_id}', headers=auth_headers(player))
    assert missing_date.status_code == 400


def test_listings_and_details(client, auth_headers, player, other_player, owner, ground, weekday_date):
    booking_id = create(client, auth_headers(player), booking_body(ground, weekday_date)).get_json()['data']['bookingId']

    mine = client.get('/api/bookings/user', headers=auth_headers(player)).get_json()['data']
    assert [b['bookingId'] for b in mine['bookings']] == [booking_id]
    assert mine['pagination']['total'] == 1

    owned = client.get(f'/api/bookings/ground/{ground.ground_id}', headers=auth_headers(owner))
    assert owned.status_code == 200
    assert owned.get_json()['data']['bookings'][0]['user']['id'] == player.id

    assert client.get('/api/bookings/owner/all', headers=auth_headers(owner)).get_json()['data']['pagination']['total'] == 1
    assert client.get(f'/api/bookings/ground/{ground.ground_id}', headers=auth_headers(player)).status_code == 403

    details = client.get(f'/api/bookings/{booking_id}', headers=auth_headers(player)).get_json()['data']
    assert details['canCancel'] is True
    assert details['payment']['status'] == 'pending'
    assert client.get(f'/api/bookings/{booking_id}', headers=auth_headers(owner)).status_code == 200
    assert client.get(f'/api/bookings/{booking_id}', headers=auth_headers(other_player)).status_code == 403


def test_expire_bookings_cli_command(app):
    result = app.test_cli_runner().invoke(args=['expire-bookings'])
    assert result.exit_code == 0
    assert 'Expired 0 booking(s)' in result.output


def pay(client, headers, booking_id):
    return client.post('/api/bookings/mock-payment-success', json={'bookingId': booking_id}, headers=headers)


def freeze_clock(monkeypatch, moment):
    monkeypatch.setattr('services.booking_service.local_now', lambda: moment)


def test_friday_is_priced_at_the_weekend_rate(client, auth_headers, player, ground, friday_date):
    resp = create(client, auth_headers(player), booking_body(ground, friday_date, duration=1))
    assert resp.status_code == 201
    pricing = resp.get_json()['data']['pricing']
    assert pricing['pricePerHour'] == 800
    assert pricing['totalAmount'] == 800


@pytest.mark.parametrize('notice, expected_status', [
    (timedelta(minutes=90), 400),
    (timedelta(hours=3), 200),
])
def test_cancellation_needs_two_hours_notice(client, auth_headers, player, ground, weekday_date,
                                             monkeypatch, notice, expected_status):
    headers = auth_headers(player)
    booking_id = create(client, headers, booking_body(ground, weekday_date)).get_json()['data']['bookingId']
    assert pay(client, headers, booking_id).status_code == 200

    freeze_clock(monkeypatch, start_datetime(weekday_date, '10:00') - notice)
    resp = client.put(f'/api/bookings/{booking_id}/cancel', json={}, headers=headers)
    assert resp.status_code == expected_status


def test_cancel_within_a_day_refunds_half(client, auth_headers, player, ground, weekday_date, monkeypatch):
    headers = auth_headers(player)
    data = create(client, headers, booking_body(ground, weekday_date)).get_json()['data']
    booking_id = data['bookingId']
    total = data['pricing']['totalAmount']
    assert pay(client, headers, booking_id).status_code == 200

    freeze_clock(monkeypatch, start_datetime(weekday_date, '10:00') - timedelta(hours=10))
    resp = client.put(f'/api/bookings/{booking_id}/cancel', json={}, headers=headers)
    assert resp.status_code == 200
    result = resp.get_json()['data']
    assert result['paymentStatus'] == 'refunded'
    assert result['refundAmount'] == total / 2

    payment = Payment.query.filter_by(booking_id=booking_id).one()
    assert payment.status == 'refunded'
    assert payment.refund_amount == total / 2


def test_payment_landing_during_cancel_is_kept(client, auth_headers, player, ground, weekday_date, monkeypatch):
    headers = auth_headers(player)
    data = create(client, headers, booking_body(ground, weekday_date)).get_json()['data']
    booking_id = data['bookingId']

    real_hours = booking_service.hours_until_start

    def paid_meanwhile(*args):
        monkeypatch.setattr(booking_service, 'hours_until_start', real_hours)
        BookingService.mock_payment_success(booking_id, player)
        return real_hours(*args)

    monkeypatch.setattr(booking_service, 'hours_until_start', paid_meanwhile)

    resp = client.put(f'/api/bookings/{booking_id}/cancel', json={}, headers=headers)
    assert resp.status_code == 409
    assert resp.get_json()['error'] == 'BOOKING_CHANGED'

    booking = Booking.query.filter_by(booking_id=booking_id).one()
    assert booking.status == 'confirmed'
    assert booking.payment_status == 'completed'
    assert Payment.query.filter_by(booking_id=booking_id).one().status == 'completed'

    retry = client.put(f'/api/bookings/{booking_id}/cancel', json={}, headers=headers)
    assert retry.status_code == 200
    assert retry.get_json()['data']['paymentStatus'] == 'refunded'
    assert retry.get_json()['data']['refundAmount'] == data['pricing']['totalAmount']


def test_payment_is_rejected_when_hold_lapses_mid_request(client, auth_headers, player, ground, weekday_date,
                                                          monkeypatch):
    headers = auth_headers(player)
    booking_id = create(client, headers, booking_body(ground, weekday_date)).get_json()['data']['bookingId']

    real_check = Booking.is_hold_expired
    checks = []

    def lapses_after_first_check(self, now):
        checks.append(now)
        return False if len(checks) == 1 else real_check(self, now)

    monkeypatch.setattr(Booking, 'is_hold_expired', lapses_after_first_check)
    freeze_clock(monkeypatch, local_now() + timedelta(minutes=20))

    resp = pay(client, headers, booking_id)
    assert resp.status_code == 409
    assert resp.get_json()['error'] == 'BOOKING_EXPIRED'

    booking = Booking.query.filter_by(booking_id=booking_id).one()
    assert booking.payment_status == 'pending'
    assert Payment.query.filter_by(booking_id=booking_id).one().status == 'pending'
    db.session.refresh(ground)
    assert ground.total_bookings == 0
