# tests/test_timeslots.py

from datetime import timedelta

from sqlalchemy.orm import Query

from models.ground import Ground, WEEKDAY_NAMES
from models.user import Role
from models.timeSlot import TimeSlot


def block_body(ground, day, start='18:00', end='19:00', **extra):
    body = {
        'groundId': ground.ground_id,
        'date': day.isoformat(),
        'startTime': start,
        'endTime': end,
        'reason': 'Resurfacing',
    }
    body.update(extra)
    return body


def test_owner_blocks_and_unblocks(client, auth_headers, owner, player, ground, weekday_date):
    resp = client.post('/api/timeslots/block', json=block_body(ground, weekday_date), headers=auth_headers(owner))
    assert resp.status_code == 201
    block = resp.get_json()['data']
    assert block['status'] == 'blocked'
    assert block['blockedBy'] == owner.id

    booking = client.post('/api/bookings', json={
        'groundId': ground.ground_id,
        'sport': 'Football',
        'date': weekday_date.isoformat(),
        'startTime': '18:00',
        'duration': 1,
        'selectedCourts': ['Court 2'],
    }, headers=auth_headers(player))
    assert booking.status_code == 409
    assert booking.get_json()['errors'][0]['type'] == 'blocked'

    resp = client.delete(f"/api/timeslots/{block['id']}", headers=auth_headers(owner))
    assert resp.status_code == 200
    assert TimeSlot.query.count() == 0


def test_only_the_ground_owner_may_block(client, auth_headers, make_user, player, ground, weekday_date):
    rival = make_user('owner-2', role=Role.FACILITY_OWNER)

    assert client.post('/api/timeslots/block', json=block_body(ground, weekday_date),
                       headers=auth_headers(rival)).status_code == 403
    assert client.post('/api/timeslots/block', json=block_body(ground, weekday_date),
                       headers=auth_headers(player)).status_code == 403


def test_cannot_block_over_existing_bookings(client, auth_headers, owner, player, ground, weekday_date):
    client.post('/api/bookings', json={
        'groundId': ground.ground_id,
        'sport': 'Football',
        'date': weekday_date.isoformat(),
        'startTime': '18:00',
        'duration': 2,
        'selectedCourts': ['Court 1'],
    }, headers=auth_headers(player))

    resp = client.post('/api/timeslots/block', json=block_body(ground, weekday_date, start='19:00', end='21:00'),
                       headers=auth_headers(owner))
    assert resp.status_code == 409
    assert resp.get_json()['errors'][0]['startTime'] == '18:00'

    clear = client.post('/api/timeslots/block', json=block_body(ground, weekday_date, start='20:00', end='21:00'),
                        headers=auth_headers(owner))
    assert clear.status_code == 201


def test_recurring_block_checks_future_bookings(client, auth_headers, owner, player, ground, weekday_date):
    later = weekday_date + timedelta(days=14)
    client.post('/api/bookings', json={
        'groundId': ground.ground_id,
        'sport': 'Football',
        'date': later.isoformat(),
        'startTime': '07:00',
        'duration': 1,
        'selectedCourts': ['Court 1'],
    }, headers=auth_headers(player))

    body = block_body(
        ground, weekday_date, start='07:00', end='08:00',
        isRecurring=True,
        recurringDays=[WEEKDAY_NAMES[weekday_date.weekday()]],
        endDate=(weekday_date + timedelta(days=28)).isoformat(),
    )
    resp = client.post('/api/timeslots/block', json=body, headers=auth_headers(owner))
    assert resp.status_code == 409
    assert resp.get_json()['errors'][0]['date'] == later.isoformat()


def test_block_validation(client, auth_headers, owner, ground, weekday_date):
    headers = auth_headers(owner)
    backwards = client.post('/api/timeslots/block', json=block_body(ground, weekday_date, start='19:00', end='18:00'),
                            headers=headers)
    assert backwards.status_code == 400

    no_days = client.post('/api/timeslots/block', json=block_body(ground, weekday_date, isRecurring=True),
                          headers=headers)
    assert no_days.status_code == 400


def test_list_blocked_slots_and_public_availability(client, auth_headers, owner, ground, weekday_date):
    client.post('/api/timeslots/block', json=block_body(ground, weekday_date), headers=auth_headers(owner))

    listed = client.get(f'/api/timeslots/ground/{ground.ground_id}/blocked?date={weekday_date.isoformat()}',
                        headers=auth_headers(owner))
    assert listed.status_code == 200
    assert listed.get_json()['data']['total'] == 1

    resp = client.get(f'/api/timeslots/ground/{ground.ground_id}/availability'
                      f'?startDate={weekday_date.isoformat()}&endDate={(weekday_date + timedelta(days=1)).isoformat()}')
    assert resp.status_code == 200
    data = resp.get_json()['data']
    assert data['groundName'] == 'Riverside Arena'
    assert len(data['availability']) == 2
    first = data['availability'][0]
    assert first['blockedSlots'][0]['startTime'] == '18:00'
    assert '18:00' not in first['availableSlots']
    assert '18:00' in data['availability'][1]['availableSlots']


def test_blocking_locks_the_ground_like_booking_does(client, auth_headers, owner, ground, weekday_date,
                                                      monkeypatch):
    locked = []
    real_lock = Query.with_for_update

    def recording_lock(self, *args, **kwargs):
        locked.append(kwargs.get('of'))
        return real_lock(self, *args, **kwargs)

    monkeypatch.setattr(Query, 'with_for_update', recording_lock)

    resp = client.post('/api/timeslots/block', json=block_body(ground, weekday_date), headers=auth_headers(owner))
    assert resp.status_code == 201
    assert locked == [Ground]
