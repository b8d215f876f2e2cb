# services/user_service.py

from datetime import datetime
from flask import current_app

from app.errors import ValidationError
from db.extensions import db
from models.user import Role, DEFAULT_PREFERENCES
from services.notification_service import NotificationService


def _merge(base, updates):
    """Shallow-merges one level of nested dicts. Returns a new dict."""
    merged = dict(base or {})
    for key, value in (updates or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = dict(merged[key], **value)
        else:
            merged[key] = value
    return merged


class UserService:

    @staticmethod
    def register(payload, user):
        """
        Completes the local profile of a user who signed up at the identity
        provider. The user row itself already exists from token verification.
        A player may pick facility_owner here; elevated roles are never lowered.
        """
        first_registration = not (user.profile or {}).get('registeredAt')

        profile_updates = payload.model_dump(
            by_alias=True, exclude_unset=True, exclude={'role', 'preferences'}
        )
        profile = _merge(user.profile, profile_updates)
        profile.setdefault('registeredAt', datetime.utcnow().isoformat())
        user.profile = profile

        if payload.preferences is not None:
            user.preferences = _merge(user.preferences or DEFAULT_PREFERENCES, payload.preferences)

        if payload.role and user.role == Role.PLAYER.value:
            user.role = payload.role

        first, last = profile.get('firstName'), profile.get('lastName')
        if first or last:
            user.display_name = f"{first or ''} {last or ''}".strip()

        db.session.commit()
        current_app.logger.info(f"✅ User {user.id} registered with role {user.role}")

        if first_registration:
            NotificationService.send_welcome_email(user)

        return user.to_dict()

    @staticmethod
    def get_profile(user):
        user.last_active_at = datetime.utcnow()
        db.session.commit()
        return user.to_dict()

    @staticmethod
    def update_profile(payload, user):
        fields = payload.model_fields_set
        if not fields:
            raise ValidationError('No profile fields provided')

        if 'display_name' in fields and payload.display_name:
            user.display_name = payload.display_name
        if 'photo_url' in fields:
            user.photo_url = payload.photo_url
        if payload.profile is not None:
            user.profile = _merge(user.profile, payload.profile.model_dump(by_alias=True, exclude_unset=True))
        if payload.preferences is not None:
            user.preferences = _merge(user.preferences or DEFAULT_PREFERENCES, payload.preferences)

        user.last_active_at = datetime.utcnow()
        db.session.commit()
        current_app.logger.info(f"✅ Profile updated for {user.id}")
        return user.to_dict()
