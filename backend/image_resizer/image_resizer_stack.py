from aws_cdk import (
    Duration,
    Stack,
    aws_lambda as _lambda,
    aws_logs as logs,
    aws_s3 as s3,
    aws_s3_notifications as s3n,
    RemovalPolicy,
    CfnOutput,
)
from cdk_klayers import Klayers
from constructs import Construct

# S3 key filters are case-sensitive
IMAGE_SUFFIXES = [".jpg", ".JPG", ".png", ".PNG"]


class ImageResizerStack(Stack):

    def __init__(self, scope: Construct, construct_id: str, **kwargs) -> None:
        super().__init__(scope, construct_id, **kwargs)

        # Initialize Klayers Class
        klayers = Klayers(
            self,
            python_version=_lambda.Runtime.PYTHON_3_12,
            region=self.region
        )

        # get the latest layer version for the PIL package
        pil_layer = klayers.layer_version(self, "Pillow")

        # Originals and their resized/ copies share this bucket
        image_bucket = s3.Bucket(
            self, "ImageBucket",
            bucket_name=None,
            block_public_access=s3.BlockPublicAccess.BLOCK_ALL,
            encryption=s3.BucketEncryption.S3_MANAGED,
            enforce_ssl=True,
            removal_policy=RemovalPolicy.DESTROY,
            auto_delete_objects=True,
        )

        resize_lambda = _lambda.Function(
            self,
            "ImageResizeHandler",
            code=_lambda.Code.from_asset("lambda"),
            handler="resize_lambda.lambda_handler",
            runtime=_lambda.Runtime.PYTHON_3_12,
            memory_size=512,
            timeout=Duration.seconds(30),
            layers=[pil_layer],
            environment={
                "LOG_LEVEL": "INFO",  # Add a log level for runtime control
            },
            log_retention=logs.RetentionDays.ONE_WEEK,  # Set log retention period
        )

        image_bucket.grant_read_write(resize_lambda)

        for suffix in IMAGE_SUFFIXES:
            image_bucket.add_event_notification(
                s3.EventType.OBJECT_CREATED,
                s3n.LambdaDestination(resize_lambda),
                s3.NotificationKeyFilter(
                    suffix=suffix
                )
            )

        resources = {
            "ImageBucketName": {
                "value": image_bucket.bucket_name,
                "description": "Bucket watched for new jpg/png images",
                "export_name": f"{self.stack_name}-ImageBucketName"
            },
            "ResizeFunctionName": {
                "value": resize_lambda.function_name,
                "description": "Lambda function that writes resized/ copies",
                "export_name": f"{self.stack_name}-ResizeFunctionName"
            }
        }

        self.output_cfn_info(resources)

    # Outputs to assist debugging and deployment
    def output_cfn_info(self, resources):
        for key, metadata in resources.items():
            CfnOutput(
                self,
                key,
                value=metadata["value"],
                description=metadata["description"],
                export_name=metadata.get("export_name")
            )
