# models/user.py

from enum import Enum
from sqlalchemy import Column, String, Boolean, DateTime, JSON
from db.extensions import db
from datetime import datetime


class Role(str, Enum):
    PLAYER = 'player'
    FACILITY_OWNER = 'facility_owner'
    ADMIN = 'admin'


class UserStatus(str, Enum):
    ACTIVE = 'active'
    INACTIVE = 'inactive'
    SUSPENDED = 'suspended'
    PENDING = 'pending'


DEFAULT_PREFERENCES = {
    'theme': 'system',
    'notifications': {'email': True, 'push': True, 'sms': False},
    'privacy': {'profileVisibility': 'public', 'showEmail': False, 'showPhone': False},
}

PROFILE_FIELDS = ('firstName', 'lastName', 'phoneNumber', 'bio', 'dateOfBirth', 'location')


class User(db.Model):
    __tablename__ = 'users'

    # Identity provider subject
    id = Column(String(128), primary_key=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    display_name = Column(String(100), nullable=False)
    photo_url = Column(String(500), nullable=True)

    profile = Column(JSON, nullable=False, default=dict)
    preferences = Column(JSON, nullable=False, default=lambda: dict(DEFAULT_PREFERENCES))

    role = Column(String(20), nullable=False, default=Role.PLAYER.value)
    status = Column(String(20), nullable=False, default=UserStatus.ACTIVE.value)
    auth_provider = Column(String(20), nullable=False, default='email')
    is_email_verified = Column(Boolean, nullable=False, default=False)

    last_login_at = Column(DateTime, nullable=True)
    last_active_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<User id={self.id} email={self.email} role={self.role}>"

    def is_active(self):
        return self.status == UserStatus.ACTIVE.value

    def has_role(self, *roles):
        return self.role in [r.value if isinstance(r, Role) else r for r in roles]

    @property
    def full_name(self):
        profile = self.profile or {}
        name = f"{profile.get('firstName') or ''} {profile.get('lastName') or ''}".strip()
        return name or self.display_name

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'displayName': self.display_name,
            'fullName': self.full_name,
            'photoURL': self.photo_url,
            'profile': self.profile or {},
            'preferences': self.preferences or {},
            'role': self.role,
            'status': self.status,
            'authProvider': self.auth_provider,
            'isEmailVerified': self.is_email_verified,
            'lastLoginAt': self.last_login_at.isoformat() if self.last_login_at else None,
            'lastActiveAt': self.last_active_at.isoformat() if self.last_active_at else None,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'updatedAt': self.updated_at.isoformat() if self.updated_at else None,
        }

    def to_public_dict(self):
        return {
            'id': self.id,
            'displayName': self.display_name,
            'fullName': self.full_name,
            'photoURL': self.photo_url,
        }
