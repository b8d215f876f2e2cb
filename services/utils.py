# services/utils.py

import math
import random
import string
import time
from datetime import datetime
from flask import current_app, request
from pytz import timezone

from app.errors import ValidationError


def _random_suffix(length):
    return ''.join(random.choices(string.ascii_lowercase + string.digits, k=length))


def _millis():
    return str(int(time.time() * 1000))


def generate_booking_id():
    return f"BK{_millis()}{_random_suffix(5)}".upper()


def generate_payment_id():
    return f"PAY{_millis()}{_random_suffix(5)}".upper()


def generate_ground_id():
    return f"GRD-{_millis()}-{_random_suffix(6).upper()}"


def generate_review_id():
    return f"REV-{_millis()}-{_random_suffix(9).upper()}"


def generate_mock_order_id():
    return f"mock_order_{_millis()}"


def local_now():
    """Current wall-clock time at the facilities, as a naive datetime."""
    tz = timezone(current_app.config.get('APP_TIMEZONE', 'Asia/Kolkata'))
    return datetime.now(tz).replace(tzinfo=None)


def get_pagination_args():
    """Read page/limit from the query string, clamped to sane bounds."""
    default_limit = current_app.config.get('DEFAULT_PAGE_SIZE', 10)
    max_limit = current_app.config.get('MAX_PAGE_SIZE', 100)
    try:
        page = int(request.args.get('page', 1))
        limit = int(request.args.get('limit', default_limit))
    except (TypeError, ValueError):
        raise ValidationError('page and limit must be integers')
    if page < 1 or limit < 1:
        raise ValidationError('page and limit must be positive')
    return page, min(limit, max_limit)


def build_pagination(page, limit, total):
    total_pages = math.ceil(total / limit) if limit else 0
    return {
        'currentPage': page,
        'totalPages': total_pages,
        'total': total,
        'limit': limit,
        'hasNext': page < total_pages,
        'hasPrev': page > 1,
    }


def paginate_query(query, page, limit):
    """Returns (items, pagination) for a SQLAlchemy query."""
    total = query.order_by(None).count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    return items, build_pagination(page, limit, total)


def parse_date_arg(name, required=False):
    """Read a YYYY-MM-DD query parameter as a date."""
    value = request.args.get(name)
    if not value:
        if required:
            raise ValidationError(f"{name} query parameter is required (YYYY-MM-DD)")
        return None
    try:
        return datetime.strptime(value, '%Y-%m-%d').date()
    except ValueError:
        raise ValidationError(f"{name} must be a valid date (YYYY-MM-DD)")
