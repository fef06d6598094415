import logging
from dataclasses import dataclass
from enum import Enum
from io import BytesIO
from typing import Any, Optional

from botocore.exceptions import BotoCoreError, ClientError
from PIL import Image, UnidentifiedImageError

SUPPORTED_IMAGE_TYPES = ('jpg', 'png')
RESIZED_PREFIX = 'resized/'

logger = logging.getLogger()


class FailureKind(Enum):
    INVALID_EVENT = 'InvalidEvent'
    ALREADY_RESIZED = 'AlreadyResized'
    UNRECOGNIZED_TYPE = 'UnrecognizedType'
    FETCH_FAILED = 'FetchFailure'
    RESIZE_FAILED = 'ResizeFailure'
    PUBLISH_FAILED = 'PublishFailure'


@dataclass(frozen=True)
class StageResult:
    """
    Outcome of a single pipeline stage: a value on success, a failure kind otherwise
    """
    value: Any = None
    failure: Optional[FailureKind] = None
    detail: str = ''
    error_code: Optional[str] = None

    @property
    def ok(self):
        return self.failure is None

    @classmethod
    def success(cls, value=None):
        return cls(value=value)

    @classmethod
    def failed(cls, failure, detail='', error_code=None):
        return cls(failure=failure, detail=detail, error_code=error_code)


def get_image_type(key):
    """
    Returns the lower-cased extension of the key if it is a supported image type
    """
    if '.' not in key:
        return StageResult.failed(FailureKind.UNRECOGNIZED_TYPE, f"No file extension in key: {key}")

    image_type = key.rsplit('.', 1)[1].lower()
    if image_type not in SUPPORTED_IMAGE_TYPES:
        return StageResult.failed(FailureKind.UNRECOGNIZED_TYPE, f"Unsupported image type: {image_type}")

    return StageResult.success(image_type)


def stream_to_bytes(chunks):
    """
    Joins streamed chunks in arrival order, encoding text chunks to bytes
    """
    return b''.join(
        chunk.encode('utf-8') if isinstance(chunk, str) else bytes(chunk)
        for chunk in chunks
    )


def fetch_image(s3_client, bucket, key):
    """
    Fetches image from S3 and drains the response body into one buffer
    """
    logger.info(f"Fetching object: {key} from bucket: {bucket}")
    try:
        response = s3_client.get_object(Bucket=bucket, Key=key)
        image_data = stream_to_bytes(response['Body'].iter_chunks())
    except ClientError as e:
        error_code = e.response.get('Error', {}).get('Code', '')
        return StageResult.failed(FailureKind.FETCH_FAILED, str(e), error_code=error_code)
    except BotoCoreError as e:
        return StageResult.failed(FailureKind.FETCH_FAILED, str(e))

    logger.info(f"Fetched {len(image_data)} bytes from {bucket}/{key}")
    return StageResult.success(image_data)


def resize_image(image_data, width):
    """
    Resizes the image to a width x width square and re-encodes it in its source format
    """
    try:
        with Image.open(BytesIO(image_data)) as image:
            image_format = image.format
            original_width, original_height = image.size
            resized = image.resize((width, width))

        buffer = BytesIO()
        resized.save(buffer, format=image_format)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError, KeyError) as e:
        return StageResult.failed(FailureKind.RESIZE_FAILED, str(e))

    logger.info(f"Resized image from {original_width}x{original_height} to {width}x{width}")
    return StageResult.success(buffer.getvalue())


def destination_key(key):
    return f"{RESIZED_PREFIX}{key}"


def upload_image(s3_client, bucket, key, image_data, content_type):
    """
    Uploads resized image to S3 under the resized/ prefix
    """
    resized_key = destination_key(key)
    logger.info(f"Uploading resized image to {bucket}/{resized_key}")
    try:
        s3_client.put_object(
            Bucket=bucket,
            Key=resized_key,
            Body=image_data,
            ContentType=content_type
        )
    except (ClientError, BotoCoreError) as e:
        return StageResult.failed(FailureKind.PUBLISH_FAILED, str(e))

    return StageResult.success(f"{bucket}/{resized_key}")
