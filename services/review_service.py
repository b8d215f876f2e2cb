# services/review_service.py

from datetime import datetime
from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from app.errors import NotFoundError, ConflictError, AuthorizationError, ValidationError
from db.extensions import db
from models.ground import Ground
from models.review import Review
from models.user import Role
from services.utils import generate_review_id, paginate_query, build_pagination

REVIEW_SORT_FIELDS = {
    'createdAt': Review.created_at,
    'rating': Review.rating,
    'helpfulCount': Review.helpful_count,
}


class ReviewService:

    @staticmethod
    def refresh_ground_rating(ground_id):
        """
        Recompute the ground's average rating (1 decimal) and review count
        from published reviews. Best effort: a failure is logged, never raised.
        """
        try:
            avg, count = db.session.query(func.avg(Review.rating), func.count(Review.id))\
                .filter(Review.ground_id == ground_id, Review.status == Review.STATUS_PUBLISHED)\
                .one()
            Ground.query.filter(Ground.ground_id == ground_id).update({
                Ground.average_rating: round(float(avg), 1) if avg is not None else 0,
                Ground.total_reviews: count or 0,
            }, synchronize_session=False)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.warning(f"⚠️  Rating refresh failed for ground {ground_id}: {str(e)}")

    @staticmethod
    def _get_review_or_404(review_id):
        review = Review.query.filter_by(review_id=review_id).first()
        if not review:
            raise NotFoundError('Review not found')
        return review

    @staticmethod
    def create_review(payload, user):
        ground = Ground.query.filter_by(ground_id=payload.ground_id).first()
        if not ground or not ground.is_active():
            raise NotFoundError('Ground not found or inactive')

        existing = Review.query.filter_by(ground_id=payload.ground_id, user_id=user.id).first()
        if existing:
            raise ConflictError('You have already reviewed this ground')

        review = Review(
            review_id=generate_review_id(),
            ground_id=payload.ground_id,
            user_id=user.id,
            rating=payload.rating,
            category_ratings=dict(payload.category_ratings),
            title=payload.title,
            content=payload.content,
            status=Review.STATUS_PUBLISHED,
            helpful_users=[],
            reported_by=[],
            report_reasons=[],
        )
        db.session.add(review)
        db.session.commit()
        current_app.logger.info(f"✅ Review {review.review_id} created for {payload.ground_id} by {user.id}")

        ReviewService.refresh_ground_rating(payload.ground_id)
        return review.to_dict(user.id)

    @staticmethod
    def get_ground_reviews(ground_id, filters, page, limit, viewer=None):
        if not Ground.query.filter_by(ground_id=ground_id).first():
            raise NotFoundError('Ground not found')

        query = Review.query.filter(Review.ground_id == ground_id, Review.status == Review.STATUS_PUBLISHED)
        if filters.get('rating'):
            query = query.filter(Review.rating == filters['rating'])

        column = REVIEW_SORT_FIELDS.get(filters.get('sortBy') or 'createdAt', Review.created_at)
        order = column.asc() if filters.get('sortOrder') == 'asc' else column.desc()
        query = query.order_by(order, Review.id.desc())

        category = filters.get('category')
        if category:
            # category_ratings is JSON; filtered in Python
            matching = [r for r in query.all() if category in (r.category_ratings or {})]
            start = (page - 1) * limit
            reviews, pagination = matching[start:start + limit], build_pagination(page, limit, len(matching))
        else:
            reviews, pagination = paginate_query(query, page, limit)

        stats = db.session.query(func.avg(Review.rating), func.count(Review.id))\
            .filter(Review.ground_id == ground_id, Review.status == Review.STATUS_PUBLISHED).one()
        distribution = dict(
            db.session.query(Review.rating, func.count(Review.id))
            .filter(Review.ground_id == ground_id, Review.status == Review.STATUS_PUBLISHED)
            .group_by(Review.rating).all()
        )
        viewer_id = viewer.id if viewer else None
        return {
            'reviews': [r.to_dict(viewer_id) for r in reviews],
            'averageRating': round(float(stats[0]), 1) if stats[0] is not None else 0,
            'totalReviews': stats[1] or 0,
            'ratingDistribution': {str(star): distribution.get(star, 0) for star in range(1, 6)},
            'pagination': pagination,
        }

    @staticmethod
    def get_review(review_id, viewer=None):
        review = ReviewService._get_review_or_404(review_id)
        if review.status != Review.STATUS_PUBLISHED:
            is_author = viewer is not None and viewer.id == review.user_id
            is_admin = viewer is not None and viewer.role == Role.ADMIN.value
            if not (is_author or is_admin):
                raise NotFoundError('Review not found')
        return review.to_dict(viewer.id if viewer else None)

    @staticmethod
    def update_review(review_id, payload, user):
        review = ReviewService._get_review_or_404(review_id)
        if review.user_id != user.id:
            raise AuthorizationError('You can only update your own reviews')
        if review.status == Review.STATUS_HIDDEN:
            raise NotFoundError('Review not found')

        fields = payload.model_fields_set
        if 'rating' in fields and payload.rating is not None:
            review.rating = payload.rating
        if 'category_ratings' in fields and payload.category_ratings is not None:
            review.category_ratings = dict(payload.category_ratings)
        if 'title' in fields:
            review.title = payload.title
        if 'content' in fields and payload.content is not None:
            review.content = payload.content
        db.session.commit()

        ReviewService.refresh_ground_rating(review.ground_id)
        return review.to_dict(user.id)

    @staticmethod
    def delete_review(review_id, user):
        """Soft delete: the review is hidden and drops out of the ground's rating."""
        review = ReviewService._get_review_or_404(review_id)
        if review.user_id != user.id and user.role != Role.ADMIN.value:
            raise AuthorizationError('You can only delete your own reviews')

        review.status = Review.STATUS_HIDDEN
        db.session.commit()
        current_app.logger.info(f"🗑️  Review {review_id} hidden by {user.id}")

        ReviewService.refresh_ground_rating(review.ground_id)

    @staticmethod
    def toggle_helpful(review_id, user):
        review = ReviewService._get_review_or_404(review_id)
        if review.user_id == user.id:
            raise ValidationError('You cannot mark your own review as helpful')

        marked = review.toggle_helpful(user.id)
        db.session.commit()
        return {'helpfulCount': review.helpful_count, 'isHelpful': marked}

    @staticmethod
    def report_review(review_id, reason, user):
        review = ReviewService._get_review_or_404(review_id)
        if not review.add_report(user.id, reason):
            raise ConflictError('You have already reported this review')

        threshold = current_app.config.get('REVIEW_REPORT_THRESHOLD', 5)
        flagged = False
        if review.report_count >= threshold and review.status == Review.STATUS_PUBLISHED:
            review.status = Review.STATUS_FLAGGED
            flagged = True
        db.session.commit()

        if flagged:
            current_app.logger.warning(f"⚠️  Review {review_id} flagged after {review.report_count} reports")
            ReviewService.refresh_ground_rating(review.ground_id)
        return {'reportCount': review.report_count, 'status': review.status}

    @staticmethod
    def add_owner_reply(review_id, content, is_public, user):
        review = ReviewService._get_review_or_404(review_id)
        ground = Ground.query.filter_by(ground_id=review.ground_id).first()
        if not ground or ground.owner_id != user.id:
            raise AuthorizationError('Only the ground owner can reply to reviews')

        review.set_owner_reply(content, is_public)
        db.session.commit()
        return review.to_dict(user.id)

    @staticmethod
    def get_user_reviews(user, page, limit):
        query = Review.query.filter(Review.user_id == user.id, Review.status != Review.STATUS_HIDDEN)\
            .order_by(Review.created_at.desc())
        reviews, pagination = paginate_query(query, page, limit)
        return {
            'reviews': [dict(r.to_dict(user.id), ground=r.ground.to_summary_dict() if r.ground else None)
                        for r in reviews],
            'pagination': pagination,
        }

    @staticmethod
    def get_owner_reviews(user, page, limit):
        query = Review.query.join(Ground, Ground.ground_id == Review.ground_id)\
            .filter(Ground.owner_id == user.id, Review.status != Review.STATUS_HIDDEN)\
            .order_by(Review.created_at.desc())
        reviews, pagination = paginate_query(query, page, limit)
        return {
            'reviews': [dict(r.to_dict(), ground=r.ground.to_summary_dict() if r.ground else None)
                        for r in reviews],
            'pagination': pagination,
        }

    @staticmethod
    def moderate_review(review_id, status, reason, admin):
        review = ReviewService._get_review_or_404(review_id)
        review.status = status
        review.is_moderated = True
        review.moderated_at = datetime.utcnow()
        review.moderated_by = admin.id
        review.moderation_reason = reason
        db.session.commit()
        current_app.logger.info(f"✅ Review {review_id} moderated to {status} by {admin.id}")

        ReviewService.refresh_ground_rating(review.ground_id)
        return review.to_dict()
