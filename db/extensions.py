# db/extensions.py

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_mail import Mail
import os
import redis
from redis.connection import ConnectionPool, SSLConnection
import urllib.parse
import logging

db = SQLAlchemy()
migrate = Migrate()
mail = Mail()

logger = logging.getLogger(__name__)

RETRYABLE_REDIS_ERRORS = [redis.exceptions.ConnectionError, redis.exceptions.TimeoutError]


def _hosted_pool_kwargs(redis_url, force_tls):
    parsed = urllib.parse.urlparse(redis_url)
    kwargs = {
        'host': parsed.hostname,
        'port': parsed.port or 6379,
        'username': parsed.username,
        'password': parsed.password,
        'db': int(parsed.path.lstrip('/') or 0),
        'decode_responses': True,
        'socket_connect_timeout': 10,
        'socket_timeout': 5,
        'socket_keepalive': True,
        'retry_on_timeout': True,
        'retry_on_error': RETRYABLE_REDIS_ERRORS,
        'health_check_interval': 30,
        'max_connections': int(os.getenv('REDIS_MAX_CONNECTIONS', 50)),
    }
    if force_tls or parsed.scheme == 'rediss':
        kwargs.update(connection_class=SSLConnection, ssl_cert_reqs=None, ssl_check_hostname=False)
    return kwargs


def _local_pool_kwargs():
    return {
        'host': os.getenv('REDIS_HOST', 'localhost'),
        'port': int(os.getenv('REDIS_PORT', 6379)),
        'db': int(os.getenv('REDIS_DB', 0)),
        'decode_responses': True,
        'socket_connect_timeout': 5,
        'socket_timeout': 5,
        'retry_on_timeout': True,
        'max_connections': 20,
    }


def create_redis_pool():
    """
    Builds the connection pool behind the OTP store.

    REDIS_URL (redis:// or rediss://) is used when set, otherwise the
    REDIS_HOST / REDIS_PORT / REDIS_DB triple. Creating the pool does not
    connect, so the API starts even when Redis is down; OTP endpoints and
    the health check report the outage instead.
    """
    redis_url = os.getenv('REDIS_URL')
    if not redis_url:
        logger.info("🔧 OTP store: local Redis")
        return ConnectionPool(**_local_pool_kwargs())

    force_tls = os.getenv('REDIS_TLS_ENABLED', 'false').lower() == 'true'
    pool_kwargs = _hosted_pool_kwargs(redis_url, force_tls)
    try:
        pool = ConnectionPool(**pool_kwargs)
    except (ValueError, TypeError) as e:
        logger.error(f"❌ Invalid REDIS_URL configuration: {str(e)}")
        raise
    tls = 'with TLS' if pool_kwargs.get('connection_class') is SSLConnection else 'without TLS'
    logger.info(f"✅ OTP store: Redis at {pool_kwargs['host']} {tls}")
    return pool


redis_client = redis.Redis(connection_pool=create_redis_pool())


def check_redis_health(client=None):
    """True when the OTP store answers a PING."""
    try:
        return bool((client or redis_client).ping())
    except redis.exceptions.RedisError as e:
        logger.error(f"❌ Redis health check failed: {str(e)}")
        return False
