# app/config.py

import os


class Config:
    # Flask Secret Key
    SECRET_KEY = os.getenv('SECRET_KEY', 'your_secret_key')
    DEBUG = os.getenv("DEBUG_MODE", "false").lower() == "true"

    # Database Configuration
    SQLALCHEMY_DATABASE_URI = os.getenv(
        'DATABASE_URI',
        'postgresql://postgres:postgres@db:5432/quickcourt_db'
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
        "pool_recycle": 1800,
        "pool_size": 10,
        "max_overflow": 20,
        "pool_timeout": 30,
        "connect_args": {
            "connect_timeout": 10,
            "options": "-c statement_timeout=30000"  # 30s query timeout
        }
    }

    MAX_CONTENT_LENGTH = 16 * 1024 * 1024  # 16 MB upload limit

    # CORS
    CORS_ORIGINS = [
        origin.strip() for origin in os.getenv(
            'CORS_ORIGINS',
            'http://localhost:3000,http://localhost:5173'
        ).split(',') if origin.strip()
    ]

    # Mail Configuration
    MAIL_SERVER = os.getenv("MAIL_SERVER", "smtp.gmail.com")
    MAIL_PORT = int(os.getenv("MAIL_PORT", 587))
    MAIL_USE_TLS = os.getenv("MAIL_USE_TLS", "true").lower() in ("true", "1", "t")
    MAIL_USE_SSL = os.getenv("MAIL_USE_SSL", "false").lower() in ("true", "1", "t")
    MAIL_USERNAME = os.getenv("MAIL_USERNAME")
    MAIL_PASSWORD = os.getenv("MAIL_PASSWORD")
    MAIL_DEFAULT_SENDER = os.getenv("MAIL_DEFAULT_SENDER", "no-reply@quickcourt.app")
    MAIL_MAX_EMAILS = None
    MAIL_ASCII_ATTACHMENTS = False
    # Best-effort notifications go out on a background thread
    MAIL_ASYNC = os.getenv("MAIL_ASYNC", "true").lower() == "true"

    # Redis Configuration (for direct access via redis_client)
    REDIS_URL = os.getenv('REDIS_URL')
    REDIS_TLS_ENABLED = os.getenv('REDIS_TLS_ENABLED', 'false').lower() == 'true'

    # Cloudinary Configuration
    CLOUDINARY_CLOUD_NAME = os.getenv('CLOUDINARY_CLOUD_NAME')
    CLOUDINARY_API_KEY = os.getenv('CLOUDINARY_API_KEY')
    CLOUDINARY_API_SECRET = os.getenv('CLOUDINARY_API_SECRET')
    CLOUDINARY_FOLDER = os.getenv('CLOUDINARY_FOLDER', 'quickcourt/grounds')

    # Identity provider token verification
    IDENTITY_JWT_SECRET = os.getenv('IDENTITY_JWT_SECRET')
    IDENTITY_JWT_PUBLIC_KEY = os.getenv('IDENTITY_JWT_PUBLIC_KEY')
    IDENTITY_JWT_ALGORITHMS = os.getenv('IDENTITY_JWT_ALGORITHMS', 'RS256').split(',')
    IDENTITY_AUDIENCE = os.getenv('IDENTITY_AUDIENCE')
    IDENTITY_ISSUER = os.getenv('IDENTITY_ISSUER')

    # Facility-local clock
    APP_TIMEZONE = os.getenv('APP_TIMEZONE', 'Asia/Kolkata')

    # Booking policy
    BOOKING_HOLD_MINUTES = int(os.getenv('BOOKING_HOLD_MINUTES', 15))
    CANCELLATION_CUTOFF_HOURS = float(os.getenv('CANCELLATION_CUTOFF_HOURS', 2))
    FULL_REFUND_HOURS = float(os.getenv('FULL_REFUND_HOURS', 24))
    PARTIAL_REFUND_RATE = float(os.getenv('PARTIAL_REFUND_RATE', 0.5))
    WEEKEND_DAYS = [
        day.strip().lower() for day in os.getenv(
            'WEEKEND_DAYS', 'friday,saturday,sunday'
        ).split(',') if day.strip()
    ]
    SLOT_DURATION_MINUTES = int(os.getenv('SLOT_DURATION_MINUTES', 60))
    DEFAULT_CURRENCY = os.getenv('DEFAULT_CURRENCY', 'INR')

    # OTP
    OTP_EXPIRY_SECONDS = int(os.getenv('OTP_EXPIRY_SECONDS', 300))
    OTP_MAX_ATTEMPTS = int(os.getenv('OTP_MAX_ATTEMPTS', 3))

    # Reviews
    REVIEW_REPORT_THRESHOLD = int(os.getenv('REVIEW_REPORT_THRESHOLD', 5))

    # Pagination
    DEFAULT_PAGE_SIZE = int(os.getenv('DEFAULT_PAGE_SIZE', 10))
    MAX_PAGE_SIZE = int(os.getenv('MAX_PAGE_SIZE', 100))

    SLOW_REQUEST_MS = int(os.getenv('SLOW_REQUEST_MS', 500))


class TestingConfig(Config):
    TESTING = True
    DEBUG = False
    SECRET_KEY = 'test-secret-key'
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_ENGINE_OPTIONS = {}

    MAIL_SUPPRESS_SEND = True
    MAIL_ASYNC = False
    MAIL_DEFAULT_SENDER = 'no-reply@quickcourt.test'

    IDENTITY_JWT_SECRET = 'identity-test-secret'
    IDENTITY_JWT_PUBLIC_KEY = None
    IDENTITY_JWT_ALGORITHMS = ['HS256']
    IDENTITY_AUDIENCE = 'quickcourt-test'
    IDENTITY_ISSUER = 'https://identity.quickcourt.test'

    CLOUDINARY_CLOUD_NAME = None
    CLOUDINARY_API_KEY = None
    CLOUDINARY_API_SECRET = None
