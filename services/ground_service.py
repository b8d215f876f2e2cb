# services/ground_service.py

from datetime import datetime
from flask import current_app
from sqlalchemy import or_, func
from sqlalchemy.exc import IntegrityError

from app.errors import NotFoundError, AuthorizationError, ConflictError, ValidationError
from db.extensions import db
from models.ground import Ground, GroundStatus
from models.review import Review
from models.user import Role
from services.cloudinary_services import CloudinaryImageService
from services.utils import generate_ground_id, paginate_query, build_pagination

SORTABLE_FIELDS = {
    'createdAt': Ground.created_at,
    'name': Ground.name,
    'price': Ground.weekday_price,
    'rating': Ground.average_rating,
    'totalBookings': Ground.total_bookings,
}


def _apply_payload(ground, payload):
    """Copies the fields present on a create/update schema onto the model."""
    fields = payload.model_fields_set

    if 'name' in fields and payload.name is not None:
        ground.name = payload.name
    if 'description' in fields and payload.description is not None:
        ground.description = payload.description
    if 'address' in fields and payload.address is not None:
        ground.street = payload.address.street
        ground.city = payload.address.city
        ground.state = payload.address.state
        ground.country = payload.address.country
        ground.postal_code = payload.address.postal_code
    if 'coordinates' in fields and payload.coordinates is not None:
        ground.latitude = payload.coordinates.latitude
        ground.longitude = payload.coordinates.longitude
    if payload.timings is not None:
        ground.open_time = payload.timings.open_time
        ground.close_time = payload.timings.close_time
        ground.working_days = list(payload.timings.working_days)
    if payload.sports is not None:
        ground.sports = list(payload.sports)
    if payload.amenities is not None:
        ground.amenities = list(payload.amenities)
    if payload.courts is not None:
        ground.courts = list(payload.courts)
    if payload.pricing is not None:
        ground.weekday_price = payload.pricing.weekday_price
        ground.weekend_price = payload.pricing.weekend_price
        ground.currency = payload.pricing.currency
        ground.per_hour = payload.pricing.per_hour
    if 'dimensions' in fields:
        ground.dimensions = payload.dimensions
    if payload.features is not None:
        ground.features = dict(payload.features)
    if payload.contact is not None:
        ground.contact = payload.contact.model_dump(by_alias=True)


def _check_owner(ground, user, action):
    if ground.owner_id != user.id and user.role != Role.ADMIN.value:
        raise AuthorizationError(f"You can only {action} your own grounds")


class GroundService:

    @staticmethod
    def get_ground_or_404(ground_id):
        ground = Ground.query.filter_by(ground_id=ground_id).first()
        if not ground:
            raise NotFoundError('Ground not found')
        return ground

    @staticmethod
    def create_ground(payload, user):
        ground = Ground(
            ground_id=payload.ground_id or generate_ground_id(),
            owner_id=user.id,
            status=GroundStatus.ACTIVE.value,
            images=[
                dict(img.to_stored(), uploadedAt=datetime.utcnow().isoformat())
                for img in payload.images
            ],
        )
        _apply_payload(ground, payload)

        db.session.add(ground)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise ConflictError(f"Ground ID '{ground.ground_id}' is already in use")

        current_app.logger.info(f"✅ Ground {ground.ground_id} created by {user.id}")
        return ground.to_dict()

    @staticmethod
    def list_grounds(filters, page, limit):
        query = Ground.query.filter(Ground.status == (filters.get('status') or GroundStatus.ACTIVE.value))

        if filters.get('ids') is not None:
            query = query.filter(Ground.id.in_(filters['ids']))
        if filters.get('city'):
            query = query.filter(Ground.city.ilike(f"%{filters['city']}%"))
        if filters.get('state'):
            query = query.filter(Ground.state.ilike(f"%{filters['state']}%"))
        if filters.get('minPrice') is not None:
            query = query.filter(Ground.weekday_price >= filters['minPrice'])
        if filters.get('maxPrice') is not None:
            query = query.filter(Ground.weekday_price <= filters['maxPrice'])
        if filters.get('rating') is not None:
            query = query.filter(Ground.average_rating >= filters['rating'])

        column = SORTABLE_FIELDS.get(filters.get('sortBy') or 'createdAt', Ground.created_at)
        order = column.asc() if filters.get('sortOrder') == 'asc' else column.desc()
        query = query.order_by(order, Ground.id.desc())

        sport = filters.get('sport')
        if sport:
            # sports is a JSON list; matched in Python to stay portable across databases
            matching = [g for g in query.all() if any(sport.lower() in s.lower() for s in (g.sports or []))]
            start = (page - 1) * limit
            return {
                'grounds': [g.to_dict() for g in matching[start:start + limit]],
                'pagination': build_pagination(page, limit, len(matching)),
            }

        grounds, pagination = paginate_query(query, page, limit)
        return {'grounds': [g.to_dict() for g in grounds], 'pagination': pagination}

    @staticmethod
    def search_grounds(term, filters, page, limit):
        """Free-text search over name, description, city and state, best rated first."""
        search_filters = dict(filters, sortBy='rating', sortOrder='desc', status=GroundStatus.ACTIVE.value)
        if filters.get('priceRange'):
            try:
                low, high = (float(part) if part else None for part in filters['priceRange'].split('-', 1))
            except ValueError:
                raise ValidationError('priceRange must look like "min-max"')
            search_filters['minPrice'] = low
            search_filters['maxPrice'] = high

        if term:
            like = f"%{term}%"
            search_filters['ids'] = [
                row.id for row in db.session.query(Ground.id).filter(
                    or_(
                        Ground.name.ilike(like),
                        Ground.description.ilike(like),
                        Ground.city.ilike(like),
                        Ground.state.ilike(like),
                    )
                ).all()
            ]

        result = GroundService.list_grounds(search_filters, page, limit)
        result['searchQuery'] = term
        return result

    @staticmethod
    def get_ground(ground_id, viewer=None):
        ground = GroundService.get_ground_or_404(ground_id)

        Ground.query.filter(Ground.id == ground.id).update(
            {Ground.view_count: Ground.view_count + 1}, synchronize_session=False
        )
        db.session.commit()
        db.session.refresh(ground)

        reviews = Review.query.filter_by(ground_id=ground_id, status=Review.STATUS_PUBLISHED)\
            .order_by(Review.created_at.desc()).limit(5).all()
        return {
            'ground': ground.to_dict(),
            'reviews': [r.to_dict(viewer.id if viewer else None) for r in reviews],
            'ratingStats': {
                'averageRating': ground.average_rating or 0,
                'totalReviews': ground.total_reviews or 0,
            },
        }

    @staticmethod
    def get_owner_grounds(user, status=None, page=1, limit=10):
        query = Ground.query.filter(Ground.owner_id == user.id)
        if status:
            query = query.filter(Ground.status == status)
        grounds, pagination = paginate_query(query.order_by(Ground.created_at.desc()), page, limit)
        return {'grounds': [g.to_dict(include_owner=False) for g in grounds], 'pagination': pagination}

    @staticmethod
    def update_ground(ground_id, payload, user):
        ground = GroundService.get_ground_or_404(ground_id)
        _check_owner(ground, user, 'update')

        _apply_payload(ground, payload)
        ground.last_activity_at = datetime.utcnow()
        db.session.commit()
        current_app.logger.info(f"✅ Ground {ground_id} updated by {user.id}")
        return ground.to_dict()

    @staticmethod
    def delete_ground(ground_id, user):
        """Soft delete: the ground goes inactive so bookings keep their reference."""
        ground = GroundService.get_ground_or_404(ground_id)
        _check_owner(ground, user, 'delete')
        ground.status = GroundStatus.INACTIVE.value
        db.session.commit()
        current_app.logger.info(f"🗑️  Ground {ground_id} deactivated by {user.id}")

    @staticmethod
    def add_images(ground_id, payload, user):
        ground = GroundService.get_ground_or_404(ground_id)
        _check_owner(ground, user, 'upload images to')

        images = list(ground.images or [])
        has_primary = any(img.get('isPrimary') for img in images)
        for img in payload.images:
            stored = dict(img.to_stored(), uploadedAt=datetime.utcnow().isoformat())
            if not stored['url']:
                raise ValidationError('Each image needs a url or secureUrl')
            if not has_primary:
                stored['isPrimary'] = True
                has_primary = True
            images.append(stored)
        ground.images = images
        db.session.commit()
        return {'images': ground.images}

    @staticmethod
    def upload_image_file(ground_id, file, caption, user):
        ground = GroundService.get_ground_or_404(ground_id)
        _check_owner(ground, user, 'upload images to')

        result = CloudinaryImageService.upload_ground_image(file, ground.ground_id)
        if not result['success']:
            raise ValidationError(result['error'] or 'Image upload failed')

        images = list(ground.images or [])
        images.append({
            'publicId': result['public_id'],
            'url': result['url'],
            'thumbnailUrl': result.get('thumbnail_url') or result['url'],
            'caption': caption or '',
            'isPrimary': not any(img.get('isPrimary') for img in images),
            'uploadedAt': datetime.utcnow().isoformat(),
        })
        ground.images = images
        db.session.commit()
        return {'images': ground.images}

    @staticmethod
    def remove_image(ground_id, public_id, user):
        ground = GroundService.get_ground_or_404(ground_id)
        _check_owner(ground, user, 'remove images from')

        images = list(ground.images or [])
        remaining = [img for img in images if img.get('publicId') != public_id]
        if len(remaining) == len(images):
            raise NotFoundError('Image not found')
        if remaining and not any(img.get('isPrimary') for img in remaining):
            remaining[0] = dict(remaining[0], isPrimary=True)
        ground.images = remaining
        db.session.commit()

        # CDN cleanup is best effort
        CloudinaryImageService.delete_image(public_id)
        return {'images': ground.images}

    @staticmethod
    def get_ground_stats(ground_id, user):
        ground = GroundService.get_ground_or_404(ground_id)
        _check_owner(ground, user, 'view stats for')

        distribution = dict(
            db.session.query(Review.rating, func.count(Review.id))
            .filter(Review.ground_id == ground_id, Review.status == Review.STATUS_PUBLISHED)
            .group_by(Review.rating).all()
        )
        recent = Review.query.filter_by(ground_id=ground_id, status=Review.STATUS_PUBLISHED)\
            .order_by(Review.created_at.desc()).limit(10).all()
        return {
            'groundStats': ground.stats_dict(),
            'reviewStats': {
                'averageRating': ground.average_rating or 0,
                'totalReviews': ground.total_reviews or 0,
                'ratingDistribution': {str(star): distribution.get(star, 0) for star in range(1, 6)},
            },
            'recentReviews': [r.to_dict() for r in recent],
        }
