import json
import logging
import os
import urllib.parse

import boto3

from image_pipeline import (
    RESIZED_PREFIX,
    FailureKind,
    StageResult,
    fetch_image,
    get_image_type,
    resize_image,
    upload_image,
)

AWS_REGION = os.environ.get('AWS_REGION', 'ap-northeast-2')
RESIZE_WIDTH = 200

logger = logging.getLogger()
logger.setLevel(os.environ.get('LOG_LEVEL', 'INFO'))

# Outcomes that mean "nothing to do" rather than "something failed"
SKIPPED_OUTCOMES = (FailureKind.UNRECOGNIZED_TYPE, FailureKind.ALREADY_RESIZED)

STATUS_CODES = {
    FailureKind.INVALID_EVENT: 400,
    FailureKind.ALREADY_RESIZED: 200,
    FailureKind.UNRECOGNIZED_TYPE: 200,
    FailureKind.FETCH_FAILED: 500,
    FailureKind.RESIZE_FAILED: 500,
    FailureKind.PUBLISH_FAILED: 500,
}


def create_s3_client(region=AWS_REGION):
    return boto3.client('s3', region_name=region)


def parse_event(event):
    """
    Extracts the source bucket and the decoded object key from an S3 notification
    """
    try:
        record = event['Records'][0]['s3']
        bucket_name = record['bucket']['name']
        raw_key = record['object']['key']
    except (KeyError, IndexError, TypeError) as e:
        return StageResult.failed(FailureKind.INVALID_EVENT, f"Missing field in S3 event: {str(e)}")

    return StageResult.success((bucket_name, urllib.parse.unquote_plus(raw_key)))


def create_response(status_code, message):
    return {
        'statusCode': status_code,
        'body': json.dumps(message)
    }


class ResizeHandler:
    """
    Resizes a newly stored jpg/png object to a square thumbnail stored under resized/.

    The S3 client is passed in once and shared by every stage of every invocation.
    """

    def __init__(self, s3_client, width=RESIZE_WIDTH):
        self.s3_client = s3_client
        self.width = width

    def __call__(self, event, context):
        bucket_name, object_key = None, None

        result = parse_event(event)
        if not result.ok:
            return self.abort(result, bucket_name, object_key)
        bucket_name, object_key = result.value

        logger.info(f"Processing object: {object_key} from bucket: {bucket_name}")

        if object_key.startswith(RESIZED_PREFIX):
            result = StageResult.failed(FailureKind.ALREADY_RESIZED, f"Object {object_key} is already resized")
            return self.abort(result, bucket_name, object_key)

        result = get_image_type(object_key)
        if not result.ok:
            return self.abort(result, bucket_name, object_key)
        image_type = result.value

        result = fetch_image(self.s3_client, bucket_name, object_key)
        if not result.ok:
            return self.abort(result, bucket_name, object_key)
        original_image = result.value

        result = resize_image(original_image, self.width)
        if not result.ok:
            return self.abort(result, bucket_name, object_key)
        resized_image = result.value

        result = upload_image(self.s3_client, bucket_name, object_key, resized_image, f"image/{image_type}")
        if not result.ok:
            return self.abort(result, bucket_name, object_key)

        logger.info(f"Resized {bucket_name}/{object_key} and uploaded it to {result.value}")
        return create_response(200, {
            'status': 'resized',
            'source': f"{bucket_name}/{object_key}",
            'destination': result.value
        })

    def abort(self, result, bucket_name, object_key):
        if result.failure in SKIPPED_OUTCOMES:
            logger.info(f"Skipping {bucket_name}/{object_key}: {result.detail}")
            status = 'skipped'
        else:
            logger.error(f"{result.failure.value} for {bucket_name}/{object_key}: {result.detail}")
            status = 'failed'

        status_code = STATUS_CODES[result.failure]
        if result.failure is FailureKind.FETCH_FAILED and result.error_code == 'NoSuchKey':
            status_code = 404

        return create_response(status_code, {
            'status': status,
            'reason': result.failure.value,
            'message': result.detail
        })


lambda_handler = ResizeHandler(create_s3_client())
