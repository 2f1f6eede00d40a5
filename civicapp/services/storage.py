#civicapp/services/storage.py


import boto3
from botocore.exceptions import ClientError
import os
import uuid
import re
from fastapi import UploadFile
from civicapp.core.config import settings
import logging

logger = logging.getLogger(__name__)


def secure_filename(filename: str) -> str:
    """Secure a filename by removing/replacing unsafe characters"""
    filename = os.path.basename(filename or "")
    filename = re.sub(r'[^\w\s.-]', '', filename)
    filename = filename.strip('. ')
    return filename[:255] if filename else 'unnamed'

IMAGE_CONTENT_TYPES = {
    'jpg': 'image/jpeg',
    'jpeg': 'image/jpeg',
    'png': 'image/png',
    'gif': 'image/gif',
    'webp': 'image/webp',
    'heic': 'image/heic'
}

def is_image_file(filename: str) -> bool:
    """Check if the file is an image based on its extension"""
    if '.' not in filename:
        return False
    ext = filename.rsplit('.', 1)[1].lower()
    return ext in IMAGE_CONTENT_TYPES

def get_content_type(filename: str) -> str:
    ext = filename.rsplit('.', 1)[1].lower()
    return IMAGE_CONTENT_TYPES.get(ext, 'application/octet-stream')

async def upload_image(file_obj: UploadFile, folder: str = "complaints"):
    """Store an uploaded image in Spaces. Returns (ok, url_or_error, key)."""
    filename = secure_filename(file_obj.filename)
    if not is_image_file(filename):
        return False, "Only image files are allowed", None

    content = await file_obj.read()
    if len(content) > settings.MAX_UPLOAD_SIZE:
        return False, "File too large", None

    client = boto3.client(
        's3',
        endpoint_url=settings.DO_SPACES_ENDPOINT,
        aws_access_key_id=settings.DO_SPACES_ACCESS_KEY_ID,
        aws_secret_access_key=settings.DO_SPACES_SECRET_KEY,
    )
    key = f"{folder}/{uuid.uuid4()}_{filename}"

    try:
        client.put_object(
            Bucket=settings.DO_SPACES_BUCKET_NAME,
            Key=key,
            Body=content,
            ContentType=get_content_type(filename),
            ACL='public-read',
        )
    except ClientError as e:
        logger.error(f"Image upload failed: {e}")
        return False, str(e), None

    public_url = f"{settings.DO_SPACES_CDN_URL}/{settings.DO_SPACES_BUCKET_NAME}/{key}"
    return True, public_url, key
