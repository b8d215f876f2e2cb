# services/cloudinary_services.py
"""
Cloudinary service for facility images.
Images for a ground live under <CLOUDINARY_FOLDER>/<ground_id>.
"""

import cloudinary
import cloudinary.uploader
import cloudinary.exceptions
from flask import current_app
from werkzeug.utils import secure_filename
import time

ALLOWED_IMAGE_EXTENSIONS = {'jpg', 'jpeg', 'png', 'gif', 'webp'}
MAX_IMAGE_BYTES = 10 * 1024 * 1024


def allowed_image(filename):
    """Check if the file has an allowed image extension."""
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in ALLOWED_IMAGE_EXTENSIONS


def _failure(error):
    return {'success': False, 'error': error, 'url': None, 'public_id': None}


class CloudinaryImageService:

    @staticmethod
    def is_cloudinary_configured():
        """Checking if Cloudinary credentials are available"""
        return all([
            current_app.config.get('CLOUDINARY_CLOUD_NAME'),
            current_app.config.get('CLOUDINARY_API_KEY'),
            current_app.config.get('CLOUDINARY_API_SECRET')
        ])

    @staticmethod
    def configure_cloudinary():
        """Initialize Cloudinary configuration"""
        if not CloudinaryImageService.is_cloudinary_configured():
            current_app.logger.warning("Cloudinary credentials not configured")
            return False

        cloudinary.config(
            cloud_name=current_app.config.get('CLOUDINARY_CLOUD_NAME'),
            api_key=current_app.config.get('CLOUDINARY_API_KEY'),
            api_secret=current_app.config.get('CLOUDINARY_API_SECRET'),
            secure=True
        )
        return True

    @staticmethod
    def upload_ground_image(image_file, ground_id):
        """Upload one image for a ground. Returns a result dict, never raises."""
        if not image_file or image_file.filename == '':
            return _failure('No image file provided')

        if not allowed_image(image_file.filename):
            return _failure(f"Unsupported image type. Allowed: {', '.join(sorted(ALLOWED_IMAGE_EXTENSIONS))}")

        image_file.seek(0, 2)
        file_size = image_file.tell()
        image_file.seek(0)
        if file_size > MAX_IMAGE_BYTES:
            return _failure('File too large (max 10MB)')

        if not CloudinaryImageService.configure_cloudinary():
            return _failure('Cloudinary not configured')

        base_name = secure_filename(image_file.filename.rsplit('.', 1)[0].lower()) or 'image'
        public_id = f"{base_name}_{int(time.time())}"
        folder = f"{current_app.config.get('CLOUDINARY_FOLDER', 'quickcourt/grounds')}/{ground_id}"

        current_app.logger.info(f"Uploading image for ground {ground_id} as {folder}/{public_id}")
        try:
            upload_result = cloudinary.uploader.upload(
                image_file,
                folder=folder,
                public_id=public_id,
                resource_type="image",
                overwrite=True,
                quality="auto:good",
                eager=[{'width': 400, 'height': 300, 'crop': 'fill'}],
            )
        except cloudinary.exceptions.Error as ce:
            error_msg = f"Cloudinary API error: {str(ce)}"
            current_app.logger.error(error_msg)
            return _failure(error_msg)

        if 'secure_url' not in upload_result or 'public_id' not in upload_result:
            current_app.logger.error(f"Missing required keys in Cloudinary response: {upload_result}")
            return _failure('Invalid response from Cloudinary - missing URL or public_id')

        eager = upload_result.get('eager') or []
        current_app.logger.info(f"Ground image uploaded successfully: {upload_result['secure_url']}")
        return {
            'success': True,
            'url': upload_result['secure_url'],
            'thumbnail_url': eager[0].get('secure_url') if eager else None,
            'public_id': upload_result['public_id'],
            'error': None
        }

    @staticmethod
    def delete_image(public_id):
        """Best-effort delete. Failures are logged and reported, not raised."""
        if not public_id:
            return {'success': False, 'error': 'No public_id provided'}

        if not CloudinaryImageService.configure_cloudinary():
            return {'success': False, 'error': 'Cloudinary not configured'}

        try:
            result = cloudinary.uploader.destroy(public_id)
        except cloudinary.exceptions.Error as ce:
            current_app.logger.warning(f"⚠️  Failed to delete Cloudinary image {public_id}: {str(ce)}")
            return {'success': False, 'error': str(ce)}

        if result.get('result') == 'ok':
            current_app.logger.info(f"🗑️  Cloudinary image {public_id} deleted")
            return {'success': True, 'error': None}

        current_app.logger.warning(f"⚠️  Cloudinary delete returned {result} for {public_id}")
        return {'success': False, 'error': f"Cloudinary delete failed: {result.get('result')}"}
