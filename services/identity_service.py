# services/identity_service.py

from datetime import datetime
from flask import current_app
from jose import jwt, JWTError, ExpiredSignatureError
from sqlalchemy.exc import IntegrityError

from app.errors import AuthError
from db.extensions import db
from models.user import User, Role, UserStatus


def _auth_provider(claims):
    provider = (claims.get('firebase') or {}).get('sign_in_provider') or claims.get('provider')
    return {
        'google.com': 'google',
        'facebook.com': 'facebook',
        'github.com': 'github',
        'password': 'email',
    }.get(provider, provider or 'email')


class IdentityService:
    """Verifies identity-provider bearer tokens and maps them onto local users."""

    @staticmethod
    def _verification_key():
        config = current_app.config
        algorithms = config.get('IDENTITY_JWT_ALGORITHMS') or ['RS256']
        if any(alg.startswith('HS') for alg in algorithms):
            return config.get('IDENTITY_JWT_SECRET'), algorithms
        return config.get('IDENTITY_JWT_PUBLIC_KEY'), algorithms

    @staticmethod
    def verify_token(token):
        key, algorithms = IdentityService._verification_key()
        if not key:
            current_app.logger.error("❌ Identity token key is not configured")
            raise AuthError('Authentication failed.', error_code='AUTH_FAILED')

        audience = current_app.config.get('IDENTITY_AUDIENCE')
        try:
            claims = jwt.decode(
                token,
                key,
                algorithms=algorithms,
                audience=audience,
                issuer=current_app.config.get('IDENTITY_ISSUER'),
                options={'verify_aud': audience is not None}
            )
        except ExpiredSignatureError:
            raise AuthError('Token has expired. Please sign in again.', error_code='TOKEN_EXPIRED')
        except JWTError as e:
            current_app.logger.warning(f"⚠️  Token rejected: {str(e)}")
            raise AuthError('Invalid token.', error_code='INVALID_TOKEN')

        uid = claims.get('uid') or claims.get('user_id') or claims.get('sub')
        if not uid:
            raise AuthError('Invalid token.', error_code='INVALID_TOKEN')
        claims['uid'] = uid
        return claims

    @staticmethod
    def find_or_create_user(claims):
        """Creates the local user on first sight, otherwise syncs profile claims."""
        now = datetime.utcnow()
        email = (claims.get('email') or '').lower() or None
        user = db.session.get(User, claims['uid'])

        if user is None:
            user = User(
                id=claims['uid'],
                email=email or f"{claims['uid']}@users.quickcourt.invalid",
                display_name=claims.get('name') or (email.split('@')[0] if email else 'Player'),
                photo_url=claims.get('picture'),
                is_email_verified=bool(claims.get('email_verified', False)),
                auth_provider=_auth_provider(claims),
                role=Role.PLAYER.value,
                status=UserStatus.ACTIVE.value,
                profile={},
                last_login_at=now,
                last_active_at=now,
            )
            db.session.add(user)
            try:
                db.session.commit()
            except IntegrityError:
                # A concurrent request created the same user first
                db.session.rollback()
                user = db.session.get(User, claims['uid'])
                if user is None:
                    raise AuthError('Authentication failed.', error_code='AUTH_FAILED')
            else:
                current_app.logger.info(f"✨ New user created: {user.email} ({user.id}) with role: {user.role}")
                return user

        user.last_login_at = now
        user.last_active_at = now
        if email and user.email != email:
            user.email = email
        if claims.get('name') and user.display_name != claims['name']:
            user.display_name = claims['name']
        if claims.get('picture') and user.photo_url != claims['picture']:
            user.photo_url = claims['picture']
        if 'email_verified' in claims and claims['email_verified'] and not user.is_email_verified:
            user.is_email_verified = True
        db.session.commit()
        return user
