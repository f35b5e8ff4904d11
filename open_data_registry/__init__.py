# LINZ Open Data Registry - Infrastructure Package
#
# Intentionally avoid importing the stacks at package import time. Importing
# `aws_cdk` boots the jsii runtime; `config` and `util.names` do not need it,
# while `util.arn` and the stacks do.

__all__ = []
