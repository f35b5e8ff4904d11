"""
S3 stack for a single open data dataset.

Each dataset gets a versioned, retained data bucket (the bucket listed on the
AWS Open Data Registry), plus the supporting resources:

- A log bucket for S3 server access logs (expired after 30 days)
- An SNS topic for `object_created` events that any SQS queue or Lambda
  function can subscribe to
- Optional cross-account roles for reading logs and managing data, assumed
  by role ARNs supplied through CDK context

Notes
-----
- Bucket names are the dataset name, so they must be globally unique and must
  not contain "." (virtual-hosted HTTPS does not support dotted bucket names).
"""

import logging
from typing import Optional

from aws_cdk import (
    Stack,
    aws_iam as iam,
    aws_s3 as s3,
    aws_s3_notifications as s3n,
    aws_sns as sns,
    CfnOutput,
    Duration,
    RemovalPolicy,
)
from constructs import Construct

from open_data_registry import config
from open_data_registry.util.arn import get_arn_principal, try_get_context_arn
from open_data_registry.util.names import title_case


logger = logging.getLogger(__name__)


class OdrDatasetStack(Stack):
    """Stack for one open data bucket and its logging, events and access roles."""

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        dataset_name: str,
        **kwargs,
    ) -> None:
        """
        Initialize the dataset stack.

        Args:
            scope: The parent construct
            construct_id: The logical ID of the stack
            dataset_name: Name of the dataset, also used as the bucket name (e.g. "nz-imagery")
            **kwargs: Additional arguments to pass to Stack

        Raises:
            ValueError: If the dataset name contains "."
            ArnError, TypeError: If a role ARN in context is invalid
        """
        if "." in dataset_name:
            raise ValueError(f'Dataset name must not contain ".": {dataset_name}')

        super().__init__(scope, construct_id, **kwargs)
        self.dataset_name = dataset_name
        export_prefix = f"Odr{title_case(dataset_name)}"

        # Only S3 log delivery can write to this bucket.
        self.log_bucket = s3.Bucket(
            self,
            "Logs",
            bucket_name=f"{dataset_name}-logs",
            access_control=s3.BucketAccessControl.LOG_DELIVERY_WRITE,
            object_ownership=s3.ObjectOwnership.OBJECT_WRITER,
            block_public_access=s3.BlockPublicAccess.BLOCK_ALL,
            lifecycle_rules=[
                s3.LifecycleRule(expiration=Duration.days(config.ACCESS_LOG_RETENTION_DAYS)),
            ],
        )

        self.topic = sns.Topic(
            self,
            "ObjectCreated",
            topic_name=f"{dataset_name}-object_created",
        )

        # Allow any Lambda or SQS queue to listen to `object_created` events.
        self.topic.add_to_resource_policy(
            iam.PolicyStatement(
                effect=iam.Effect.ALLOW,
                actions=["sns:Subscribe", "sns:Receive"],
                principals=[iam.AnyPrincipal()],
                resources=[self.topic.topic_arn],
                conditions={
                    "StringEquals": {
                        "SNS:Protocol": config.OBJECT_CREATED_SUBSCRIBER_PROTOCOLS,
                    }
                },
            )
        )

        self.bucket = s3.Bucket(
            self,
            "Data",
            bucket_name=dataset_name,
            # Old versions are kept (then expired) in case of an accidental delete.
            versioned=True,
            server_access_logs_bucket=self.log_bucket,
            server_access_logs_prefix=f"s3_{dataset_name}/",
            # Deleting the stack must never delete the data.
            removal_policy=RemovalPolicy.RETAIN,
            lifecycle_rules=[
                s3.LifecycleRule(
                    transitions=[
                        s3.Transition(
                            storage_class=s3.StorageClass.INFREQUENT_ACCESS,
                            transition_after=Duration.days(0),
                        ),
                    ],
                    noncurrent_version_expiration=Duration.days(config.NONCURRENT_VERSION_RETENTION_DAYS),
                    expired_object_delete_marker=True,
                    abort_incomplete_multipart_upload_after=Duration.days(config.ABORT_INCOMPLETE_UPLOAD_DAYS),
                ),
            ],
            cors=[
                s3.CorsRule(
                    max_age=config.CORS_MAX_AGE_SECONDS,
                    allowed_headers=["*"],
                    allowed_methods=[s3.HttpMethods.GET, s3.HttpMethods.HEAD],
                    allowed_origins=["*"],
                    exposed_headers=config.CORS_EXPOSED_HEADERS,
                ),
            ],
        )

        self.bucket.add_event_notification(
            s3.EventType.OBJECT_CREATED,
            s3n.SnsDestination(self.topic),
        )

        CfnOutput(
            self,
            "Bucket",
            value=self.bucket.bucket_name,
            export_name=f"{export_prefix}Bucket",
            description=f"S3 bucket name for the {dataset_name} dataset",
        )

        CfnOutput(
            self,
            "BucketLog",
            value=self.log_bucket.bucket_name,
            export_name=f"{export_prefix}BucketLog",
            description=f"S3 bucket name for {dataset_name} access logs",
        )

        self.log_reader_role = self._setup_log_reader()
        self.data_manager_role = self._setup_data_manager()

    def _setup_log_reader(self) -> Optional[iam.Role]:
        """Create a role that can read the access logs, if a bastion role is configured."""
        bastion_arn = try_get_context_arn(self.node, config.LOG_READER_ROLE_ARN)
        if bastion_arn is None:
            logger.warning(
                'Unable to create logging role as "%s" is not set.',
                config.LOG_READER_ROLE_ARN,
            )
            return None

        role = iam.Role(
            self,
            "LogReader",
            assumed_by=get_arn_principal(bastion_arn).to_iam_principal(),
            role_name=f"s3-{self.dataset_name}-log-read",
        )
        self.log_bucket.grant_read(role)
        logger.info("log reader role for %s assumable by %s", self.dataset_name, bastion_arn)

        CfnOutput(self, "LogReaderArn", value=role.role_arn)
        return role

    def _setup_data_manager(self) -> Optional[iam.Role]:
        """Create a role that can publish data into the bucket, if a bastion role is configured."""
        bastion_arn = try_get_context_arn(self.node, config.DATA_MANAGER_ROLE_ARN)
        if bastion_arn is None:
            logger.warning(
                'Unable to create data manager role as "%s" is not set.',
                config.DATA_MANAGER_ROLE_ARN,
            )
            return None

        role = iam.Role(
            self,
            "DataManager",
            assumed_by=get_arn_principal(bastion_arn).to_iam_principal(),
            role_name=f"s3-{self.dataset_name}-data-manager",
        )
        self.bucket.grant_read_write(role)
        self.log_bucket.grant_read(role)
        logger.info("data manager role for %s assumable by %s", self.dataset_name, bastion_arn)

        CfnOutput(self, "DataManagerArn", value=role.role_arn)
        return role
