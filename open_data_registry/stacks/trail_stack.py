"""
CloudTrail stack for auditing the open data account.

A single multi-region trail writes into a private bucket in this account.
Readers in other accounts get a role that can read the trail logs; several
bastion roles may share it, so the context value is a list of role ARNs.

The whole stack is skipped when no reader roles are configured.
"""

import logging

from aws_cdk import (
    Stack,
    aws_cloudtrail as cloudtrail,
    aws_s3 as s3,
    aws_iam as iam,
    CfnOutput,
    RemovalPolicy,
)
from constructs import Construct

from open_data_registry import config
from open_data_registry.util.arn import get_arn_principal, try_get_context_arns


logger = logging.getLogger(__name__)


class OdrCloudTrailStack(Stack):
    """Stack for the centralized CloudTrail trail and its log reader role."""

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        **kwargs,
    ) -> None:
        """
        Initialize the CloudTrail stack.

        Args:
            scope: The parent construct
            construct_id: The logical ID of the stack
            **kwargs: Additional arguments to pass to Stack
        """
        super().__init__(scope, construct_id, **kwargs)
        self.trail = None
        self.trail_bucket = None
        self.reader_role = None

        reader_arns = try_get_context_arns(self.node, config.CLOUD_TRAIL_READER_ROLE_ARNS)
        if reader_arns is None:
            logger.warning(
                'No CloudTrail reader roles specified ("%s"), skipping',
                config.CLOUD_TRAIL_READER_ROLE_ARNS,
            )
            return

        reader_principal = get_arn_principal(reader_arns)

        self.trail_bucket = s3.Bucket(
            self,
            "TrailLogs",
            block_public_access=s3.BlockPublicAccess.BLOCK_ALL,
            encryption=s3.BucketEncryption.S3_MANAGED,
            enforce_ssl=True,
            # Audit logs outlive the stack.
            removal_policy=RemovalPolicy.RETAIN,
        )

        self.trail = cloudtrail.Trail(
            self,
            "CentralizedTrail",
            bucket=self.trail_bucket,
            is_multi_region_trail=True,
            include_global_service_events=True,
        )

        self.reader_role = iam.Role(
            self,
            "CloudTrailReader",
            assumed_by=reader_principal.to_iam_principal(),
        )
        self.trail_bucket.grant_read(self.reader_role)
        logger.info("CloudTrail reader role assumable by %s", ", ".join(reader_arns))

        CfnOutput(
            self,
            "TrailBucket",
            value=self.trail_bucket.bucket_name,
            description="S3 bucket name for CloudTrail logs",
        )

        CfnOutput(
            self,
            "CloudTrailReaderArn",
            value=self.reader_role.role_arn,
            description="IAM role ARN for reading CloudTrail logs",
        )
