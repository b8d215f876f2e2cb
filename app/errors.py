# app/errors.py

from flask import current_app, jsonify
from werkzeug.exceptions import HTTPException


class AppError(Exception):
    """Base class for errors that map onto an API response."""

    status_code = 500

    def __init__(self, message, status_code=None, errors=None, error_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.errors = errors
        self.error_code = error_code

    def to_dict(self):
        payload = {'success': False, 'message': self.message}
        if self.error_code:
            payload['error'] = self.error_code
        if self.errors:
            payload['errors'] = self.errors
        return payload


class ValidationError(AppError):
    status_code = 400


class AuthError(AppError):
    status_code = 401


class AuthorizationError(AppError):
    status_code = 403


class NotFoundError(AppError):
    status_code = 404


class ConflictError(AppError):
    status_code = 409


class InternalError(AppError):
    status_code = 500


class UpstreamError(AppError):
    """A collaborator (mail server, identity provider) failed on a critical path."""

    # Clients only ever see the statuses the API documents
    status_code = 500


def register_error_handlers(app):

    @app.errorhandler(AppError)
    def handle_app_error(e):
        if e.status_code >= 500:
            app.logger.error(f"❌ {type(e).__name__}: {e.message}", exc_info=True)
            payload = e.to_dict()
            if not current_app.config.get('DEBUG'):
                payload['message'] = 'Internal server error. Please try again.'
                payload.pop('errors', None)
            return jsonify(payload), 500

        app.logger.warning(f"⚠️  {type(e).__name__} ({e.status_code}): {e.message}")
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        return jsonify({
            'success': False,
            'message': e.description or e.name
        }), e.code

    @app.errorhandler(Exception)
    def handle_exception(e):
        app.logger.error(f"❌ Unhandled exception: {str(e)}", exc_info=True)
        payload = {
            'success': False,
            'message': 'Internal server error. Please try again.'
        }
        if current_app.config.get('DEBUG'):
            payload['error'] = str(e)
        return jsonify(payload), 500
