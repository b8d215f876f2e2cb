# services/otp_service.py

import random
import string
import logging
from datetime import datetime
from flask import current_app

from app.errors import ValidationError, UpstreamError
from db.extensions import db, redis_client
from models.user import User
from services.notification_service import NotificationService

logger = logging.getLogger(__name__)


class OTPService:
    VERIFICATION_EXPIRY_SECONDS = 1800  # 30 minutes

    @staticmethod
    def generate_otp(length=6):
        """Generate a random numeric OTP"""
        return ''.join(random.choices(string.digits, k=length))

    @staticmethod
    def _otp_key(email):
        return f'email_otp:{email}'

    @staticmethod
    def _verified_key(email):
        return f'email_verified:{email}'

    @staticmethod
    def send_otp(email):
        """
        Store a fresh OTP for the email and mail it.
        The mail is sent synchronously: if it fails the stored code is
        removed again and the caller gets a 500.
        """
        start_time = datetime.now()
        email = email.strip().lower()

        already_verified = User.query.filter_by(email=email, is_email_verified=True).first()
        if already_verified:
            raise ValidationError('Email is already verified by another user')

        expiry = current_app.config.get('OTP_EXPIRY_SECONDS', 300)
        otp = OTPService.generate_otp()

        redis_key = OTPService._otp_key(email)
        pipe = redis_client.pipeline()
        pipe.delete(redis_key)
        pipe.hset(redis_key, mapping={'otp': otp, 'attempts': 0})
        pipe.expire(redis_key, expiry)
        pipe.execute()

        try:
            NotificationService.send_otp_email(email, otp, expiry // 60)
        except UpstreamError:
            redis_client.delete(redis_key)
            logger.error(f"❌ OTP email to {email} failed, code discarded")
            raise UpstreamError('Failed to send OTP email. Please try again.')

        elapsed = (datetime.now() - start_time).total_seconds() * 1000
        logger.info(f"✅ OTP generated for {email} in {elapsed:.2f}ms")

        data = {'email': email}
        if current_app.config.get('DEBUG'):
            data['otp'] = otp
        return {
            'success': True,
            'message': 'OTP sent successfully to your email',
            'data': data
        }

    @staticmethod
    def verify_otp(email, provided_otp):
        email = email.strip().lower()
        redis_key = OTPService._otp_key(email)
        stored = redis_client.hgetall(redis_key)

        if not stored:
            logger.warning(f"⚠️  OTP not found or expired for {email}")
            return {'success': False, 'message': 'OTP expired or not found. Please request a new OTP.'}

        max_attempts = current_app.config.get('OTP_MAX_ATTEMPTS', 3)
        if int(stored.get('attempts', 0)) >= max_attempts:
            redis_client.delete(redis_key)
            logger.warning(f"⚠️  Too many OTP attempts for {email}")
            return {'success': False, 'message': 'Too many failed attempts. Please request a new OTP.'}

        if provided_otp.strip() != stored.get('otp', ''):
            redis_client.hincrby(redis_key, 'attempts', 1)
            logger.warning(f"⚠️  Invalid OTP for {email}")
            return {'success': False, 'message': 'Invalid OTP. Please try again.'}

        redis_client.delete(redis_key)
        redis_client.setex(
            OTPService._verified_key(email),
            OTPService.VERIFICATION_EXPIRY_SECONDS,
            'verified'
        )

        user = User.query.filter_by(email=email).first()
        if user and not user.is_email_verified:
            user.is_email_verified = True
            db.session.commit()

        logger.info(f"✅ OTP verified for {email}")
        return {
            'success': True,
            'message': 'OTP verified successfully',
            'data': {'email': email, 'verified': True}
        }

    @staticmethod
    def is_verified(email):
        """Checks the short-lived verification flag set by verify_otp."""
        return redis_client.exists(OTPService._verified_key(email.strip().lower())) > 0

    @staticmethod
    def resend_otp(email):
        redis_client.delete(OTPService._otp_key(email.strip().lower()))
        result = OTPService.send_otp(email)
        logger.info(f"🔄 OTP resent to {email}")
        result['message'] = 'OTP resent successfully to your email'
        return result
