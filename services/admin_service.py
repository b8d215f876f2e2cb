# services/admin_service.py

from datetime import datetime, timedelta
from flask import current_app
from sqlalchemy import func, or_

from app.errors import NotFoundError, AuthorizationError
from db.extensions import db
from models.booking import Booking, BookingStatus, BookingPaymentStatus
from models.ground import Ground, GroundStatus
from models.review import Review
from models.user import User, Role, UserStatus
from services.notification_service import NotificationService
from services.review_service import ReviewService
from services.utils import paginate_query


def _count_by(column):
    rows = db.session.query(column, func.count()).group_by(column).all()
    return {key: count for key, count in rows}


class AdminService:

    @staticmethod
    def get_dashboard_stats():
        users_by_role = _count_by(User.role)
        users_by_status = _count_by(User.status)
        grounds_by_status = _count_by(Ground.status)
        bookings_by_status = _count_by(Booking.status)

        revenue = db.session.query(func.coalesce(func.sum(Booking.total_amount), 0))\
            .filter(Booking.payment_status == BookingPaymentStatus.COMPLETED.value).scalar()
        refunded = db.session.query(func.coalesce(func.sum(Booking.refund_amount), 0))\
            .filter(Booking.payment_status == BookingPaymentStatus.REFUNDED.value).scalar()

        week_ago = datetime.utcnow() - timedelta(days=7)
        new_users = User.query.filter(User.created_at >= week_ago).count()
        new_bookings = Booking.query.filter(Booking.created_at >= week_ago).count()

        review_stats = db.session.query(func.count(Review.id), func.avg(Review.rating))\
            .filter(Review.status == Review.STATUS_PUBLISHED).one()
        flagged_reviews = Review.query.filter_by(status=Review.STATUS_FLAGGED).count()

        return {
            'users': {
                'total': sum(users_by_role.values()),
                'byRole': {role.value: users_by_role.get(role.value, 0) for role in Role},
                'byStatus': {status.value: users_by_status.get(status.value, 0) for status in UserStatus},
                'newThisWeek': new_users,
            },
            'grounds': {
                'total': sum(grounds_by_status.values()),
                'byStatus': {status.value: grounds_by_status.get(status.value, 0) for status in GroundStatus},
                'unverified': Ground.query.filter_by(is_verified=False).count(),
            },
            'bookings': {
                'total': sum(bookings_by_status.values()),
                'byStatus': {status.value: bookings_by_status.get(status.value, 0) for status in BookingStatus},
                'newThisWeek': new_bookings,
            },
            'revenue': {
                'total': float(revenue or 0),
                'refunded': float(refunded or 0),
            },
            'reviews': {
                'total': review_stats[0] or 0,
                'averageRating': round(float(review_stats[1]), 1) if review_stats[1] is not None else 0,
                'flagged': flagged_reviews,
            },
        }

    @staticmethod
    def list_users(filters, page, limit):
        query = User.query
        if filters.get('role'):
            query = query.filter(User.role == filters['role'])
        if filters.get('status'):
            query = query.filter(User.status == filters['status'])
        if filters.get('search'):
            like = f"%{filters['search']}%"
            query = query.filter(or_(User.email.ilike(like), User.display_name.ilike(like)))

        users, pagination = paginate_query(query.order_by(User.created_at.desc()), page, limit)
        return {'users': [u.to_dict() for u in users], 'pagination': pagination}

    @staticmethod
    def _get_user_or_404(user_id):
        user = db.session.get(User, user_id)
        if not user:
            raise NotFoundError('User not found')
        return user

    @staticmethod
    def get_user(user_id):
        user = AdminService._get_user_or_404(user_id)
        data = user.to_dict()
        data['stats'] = {
            'totalBookings': Booking.query.filter_by(user_id=user.id).count(),
            'totalReviews': Review.query.filter_by(user_id=user.id).count(),
            'totalGrounds': Ground.query.filter_by(owner_id=user.id).count(),
        }
        return data

    @staticmethod
    def update_user_role(user_id, role, admin):
        if user_id == admin.id:
            raise AuthorizationError('You cannot change your own role')
        user = AdminService._get_user_or_404(user_id)

        old_role = user.role
        user.role = role
        db.session.commit()
        current_app.logger.info(f"🔄 Role of {user.id} changed {old_role} -> {role} by {admin.id}")

        if old_role != role:
            NotificationService.send_role_change(user, old_role, role)
        return user.to_dict()

    @staticmethod
    def update_user_status(user_id, status, reason, admin):
        if user_id == admin.id:
            raise AuthorizationError('You cannot change your own status')
        user = AdminService._get_user_or_404(user_id)

        old_status = user.status
        user.status = status
        db.session.commit()
        current_app.logger.info(f"🔄 Status of {user.id} changed {old_status} -> {status} by {admin.id}")

        if old_status != status:
            NotificationService.send_status_change(user, old_status, status, reason)
        return user.to_dict()

    @staticmethod
    def list_grounds(filters, page, limit):
        query = Ground.query
        if filters.get('status'):
            query = query.filter(Ground.status == filters['status'])
        if filters.get('verified') is not None:
            query = query.filter(Ground.is_verified == filters['verified'])
        if filters.get('search'):
            like = f"%{filters['search']}%"
            query = query.filter(or_(Ground.name.ilike(like), Ground.city.ilike(like)))

        grounds, pagination = paginate_query(query.order_by(Ground.created_at.desc()), page, limit)
        return {'grounds': [g.to_dict() for g in grounds], 'pagination': pagination}

    @staticmethod
    def _get_ground_or_404(ground_id):
        ground = Ground.query.filter_by(ground_id=ground_id).first()
        if not ground:
            raise NotFoundError('Ground not found')
        return ground

    @staticmethod
    def update_ground_status(ground_id, status, reason, admin):
        ground = AdminService._get_ground_or_404(ground_id)
        old_status = ground.status
        ground.status = status
        ground.last_activity_at = datetime.utcnow()
        db.session.commit()
        current_app.logger.info(
            f"🔄 Ground {ground_id} status {old_status} -> {status} by {admin.id}"
            + (f" ({reason})" if reason else '')
        )
        return ground.to_dict()

    @staticmethod
    def verify_ground(ground_id, admin):
        ground = AdminService._get_ground_or_404(ground_id)
        ground.is_verified = True
        ground.verified_at = datetime.utcnow()
        ground.verified_by = admin.id
        db.session.commit()
        current_app.logger.info(f"✅ Ground {ground_id} verified by {admin.id}")
        return ground.to_dict()

    @staticmethod
    def moderate_review(review_id, status, reason, admin):
        return ReviewService.moderate_review(review_id, status, reason, admin)
