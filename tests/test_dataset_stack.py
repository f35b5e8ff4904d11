import logging
import os
from pathlib import Path

# CDK/jsii tries to write to the user cache directory (e.g. ~/Library/Caches/...)
# during import. In the sandbox, writes outside the workspace are blocked, so we
# redirect the jsii runtime package cache into the repo.
os.environ.setdefault(
    "JSII_RUNTIME_PACKAGE_CACHE_ROOT",
    str(Path(__file__).resolve().parent.parent / ".jsii-package-cache"),
)

import pytest
from aws_cdk import App, Environment
from aws_cdk.assertions import Match, Template

from open_data_registry.stacks.dataset_stack import OdrDatasetStack
from open_data_registry.util.arn import InvalidArnError, ParseError


LOG_READER_BASTION = "arn:aws:iam::111111111111:role/LogReaderBastion"
DATA_MANAGER_BASTION = "arn:aws:iam::111111111111:role/DataManagerBastion"


def _synth(context=None, dataset_name="nz-imagery") -> Template:
    app = App(context=context or {})
    env_config = Environment(account="123456789012", region="ap-southeast-2")

    stack = OdrDatasetStack(
        app,
        "OdrDatasetTest",
        dataset_name=dataset_name,
        env=env_config,
    )

    return Template.from_stack(stack)


def test_dataset_stack_creates_data_and_log_buckets() -> None:
    template = _synth()

    template.resource_count_is("AWS::S3::Bucket", 2)

    template.has_resource_properties(
        "AWS::S3::Bucket",
        {
            "BucketName": "nz-imagery",
            "VersioningConfiguration": {"Status": "Enabled"},
            "LoggingConfiguration": {
                "DestinationBucketName": Match.any_value(),
                "LogFilePrefix": "s3_nz-imagery/",
            },
        },
    )

    template.has_resource_properties(
        "AWS::S3::Bucket",
        {
            "BucketName": "nz-imagery-logs",
            "AccessControl": "LogDeliveryWrite",
            "PublicAccessBlockConfiguration": {
                "BlockPublicAcls": True,
                "BlockPublicPolicy": True,
                "IgnorePublicAcls": True,
                "RestrictPublicBuckets": True,
            },
            "LifecycleConfiguration": {
                "Rules": [Match.object_like({"ExpirationInDays": 30, "Status": "Enabled"})],
            },
        },
    )


def test_dataset_bucket_is_retained() -> None:
    template = _synth()

    template.has_resource(
        "AWS::S3::Bucket",
        {
            "Properties": Match.object_like({"BucketName": "nz-imagery"}),
            "DeletionPolicy": "Retain",
            "UpdateReplacePolicy": "Retain",
        },
    )


def test_dataset_buckets_grant_no_anonymous_access() -> None:
    template = _synth()

    for policy in template.find_resources("AWS::S3::BucketPolicy").values():
        for statement in policy["Properties"]["PolicyDocument"]["Statement"]:
            if statement["Effect"] == "Allow":
                assert statement.get("Principal") not in ("*", {"AWS": "*"})


def test_dataset_bucket_lifecycle_and_cors() -> None:
    template = _synth()

    template.has_resource_properties(
        "AWS::S3::Bucket",
        {
            "BucketName": "nz-imagery",
            "LifecycleConfiguration": {
                "Rules": [
                    Match.object_like(
                        {
                            "AbortIncompleteMultipartUpload": {"DaysAfterInitiation": 7},
                            "ExpiredObjectDeleteMarker": True,
                            "NoncurrentVersionExpiration": {"NoncurrentDays": 30},
                            "Transitions": [{"StorageClass": "STANDARD_IA", "TransitionInDays": 0}],
                            "Status": "Enabled",
                        }
                    )
                ],
            },
            "CorsConfiguration": {
                "CorsRules": [
                    {
                        "AllowedHeaders": ["*"],
                        "AllowedMethods": ["GET", "HEAD"],
                        "AllowedOrigins": ["*"],
                        "ExposedHeaders": ["ETag", "x-amz-meta-custom-header"],
                        "MaxAge": 3000,
                    }
                ]
            },
        },
    )


def test_dataset_stack_publishes_object_created_events() -> None:
    template = _synth()

    template.resource_count_is("AWS::SNS::Topic", 1)
    template.has_resource_properties("AWS::SNS::Topic", {"TopicName": "nz-imagery-object_created"})

    template.has_resource_properties(
        "AWS::SNS::TopicPolicy",
        {
            "PolicyDocument": {
                "Statement": Match.array_with(
                    [
                        Match.object_like(
                            {
                                "Action": ["sns:Subscribe", "sns:Receive"],
                                "Condition": {"StringEquals": {"SNS:Protocol": ["sqs", "lambda"]}},
                                "Effect": "Allow",
                                "Principal": {"AWS": "*"},
                            }
                        )
                    ]
                ),
            },
        },
    )

    template.has_resource_properties(
        "Custom::S3BucketNotifications",
        {
            "NotificationConfiguration": {
                "TopicConfigurations": [
                    Match.object_like({"Events": ["s3:ObjectCreated:*"]}),
                ],
            },
        },
    )


def test_dataset_stack_exports_bucket_names() -> None:
    template = _synth()

    template.has_output("Bucket", {"Export": {"Name": "OdrNzImageryBucket"}})
    template.has_output("BucketLog", {"Export": {"Name": "OdrNzImageryBucketLog"}})


def test_dataset_stack_without_context_creates_no_roles(caplog) -> None:
    caplog.set_level(logging.INFO)
    template = _synth()

    template.has_output("Bucket", Match.any_value())
    assert "LogReaderArn" not in template.find_outputs("*")
    assert "DataManagerArn" not in template.find_outputs("*")
    assert template.find_resources(
        "AWS::IAM::Role",
        {"Properties": Match.object_like({"RoleName": Match.string_like_regexp("^s3-nz-imagery-")})},
    ) == {}

    warnings = [r.getMessage() for r in caplog.records if r.levelno == logging.WARNING]
    assert any("log-reader-role-arn" in message for message in warnings)
    assert any("data-manager-role-arn" in message for message in warnings)


def test_dataset_stack_creates_cross_account_roles(caplog) -> None:
    caplog.set_level(logging.INFO)
    template = _synth(
        {
            "log-reader-role-arn": LOG_READER_BASTION,
            "data-manager-role-arn": DATA_MANAGER_BASTION,
        }
    )

    template.has_resource_properties(
        "AWS::IAM::Role",
        {
            "RoleName": "s3-nz-imagery-log-read",
            "AssumeRolePolicyDocument": {
                "Statement": [
                    Match.object_like(
                        {
                            "Action": "sts:AssumeRole",
                            "Effect": "Allow",
                            "Principal": {"AWS": LOG_READER_BASTION},
                        }
                    )
                ],
            },
        },
    )

    template.has_resource_properties(
        "AWS::IAM::Role",
        {
            "RoleName": "s3-nz-imagery-data-manager",
            "AssumeRolePolicyDocument": {
                "Statement": [
                    Match.object_like(
                        {
                            "Action": "sts:AssumeRole",
                            "Principal": {"AWS": DATA_MANAGER_BASTION},
                        }
                    )
                ],
            },
        },
    )

    template.has_output("LogReaderArn", Match.any_value())
    template.has_output("DataManagerArn", Match.any_value())

    infos = [r.getMessage() for r in caplog.records if r.levelno == logging.INFO]
    assert "log reader role for nz-imagery assumable by " + LOG_READER_BASTION in infos
    assert "data manager role for nz-imagery assumable by " + DATA_MANAGER_BASTION in infos


def test_dataset_stack_data_manager_can_write() -> None:
    template = _synth({"data-manager-role-arn": DATA_MANAGER_BASTION})

    template.has_resource_properties(
        "AWS::IAM::Policy",
        {
            "PolicyDocument": {
                "Statement": Match.array_with(
                    [Match.object_like({"Action": Match.array_with([Match.string_like_regexp("^s3:PutObject")]), "Effect": "Allow"})]
                ),
            },
        },
    )


def test_dataset_stack_rejects_invalid_context_arn() -> None:
    with pytest.raises(InvalidArnError):
        _synth({"log-reader-role-arn": "arn:aws:iam::111111111111:role/*"})

    with pytest.raises(ParseError):
        _synth({"data-manager-role-arn": "DataManagerBastion"})


def test_dataset_name_must_not_contain_dots() -> None:
    with pytest.raises(ValueError, match="must not contain"):
        _synth(dataset_name="nz.imagery")
