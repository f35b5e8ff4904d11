"""
CDK context keys and retention settings shared by the open data stacks.

All deployment-specific values are read from CDK context (``cdk.json`` or
``cdk synth -c key=value``), never hard-coded:

  - log-reader-role-arn            (optional; role allowed to read S3 access logs)
  - data-manager-role-arn          (optional; role allowed to publish dataset files)
  - console-read-only-role-arn     (optional; role allowed read-only console access)
  - console-admin-role-arn         (optional; role allowed admin console access)
  - cloud-trail-reader-role-arns   (optional; list of roles allowed to read CloudTrail logs)

Every value must be a concrete IAM role ARN without wildcards. A missing key
skips the matching role; an invalid one fails synthesis.
"""

LOG_READER_ROLE_ARN = "log-reader-role-arn"
DATA_MANAGER_ROLE_ARN = "data-manager-role-arn"
CONSOLE_READ_ONLY_ROLE_ARN = "console-read-only-role-arn"
CONSOLE_ADMIN_ROLE_ARN = "console-admin-role-arn"
CLOUD_TRAIL_READER_ROLE_ARNS = "cloud-trail-reader-role-arns"

# S3 access logs are only kept for a month to stop the log bucket growing forever.
ACCESS_LOG_RETENTION_DAYS = 30

# Old object versions are kept this long in case of an accidental delete/overwrite.
NONCURRENT_VERSION_RETENTION_DAYS = 30

ABORT_INCOMPLETE_UPLOAD_DAYS = 7

# Standard CORS setup from https://s3-us-west-2.amazonaws.com/opendata.aws/pds-bucket-cf.yml
CORS_MAX_AGE_SECONDS = 3000
CORS_EXPOSED_HEADERS = ["ETag", "x-amz-meta-custom-header"]

# Only these subscription protocols may listen to `object_created` events.
OBJECT_CREATED_SUBSCRIBER_PROTOCOLS = ["sqs", "lambda"]
