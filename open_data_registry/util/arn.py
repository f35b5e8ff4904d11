"""
IAM role ARN validation and trust principal helpers.

Cross-account role ARNs come from CDK context, so they are untrusted strings
until validated here. The stacks only ever see either a valid role ARN or an
explicit ``None`` for "not configured".
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Protocol, Sequence, Tuple, Union

from aws_cdk import Arn, ArnFormat, aws_iam as iam


class ContextProvider(Protocol):
    """Anything that can look up a context value by key (e.g. ``stack.node``)."""

    def try_get_context(self, key: str) -> Any:
        ...


class ArnError(ValueError):
    """Base class for an ARN that is not a usable IAM role ARN."""

    def __init__(self, message: str, arn: str):
        super().__init__(message)
        self.arn = arn


class InvalidArnError(ArnError):
    """ARN contains a wildcard."""


class ParseError(ArnError):
    """ARN does not follow the ``arn:partition:service:region:account:type/name`` grammar."""


class SemanticError(ArnError):
    """ARN is well formed but is not an IAM role."""


@dataclass(frozen=True)
class ArnComponents:
    """The parts of an ARN in slash resource name format."""

    partition: str
    service: str
    region: str
    account: str
    resource: str
    resource_name: str


@dataclass(frozen=True)
class SinglePrincipal:
    """Trust principal for exactly one role ARN."""

    arn: str

    def to_iam_principal(self) -> iam.IPrincipal:
        return iam.ArnPrincipal(self.arn)


@dataclass(frozen=True)
class CompositePrincipal:
    """Trust principal for two or more role ARNs, in the order supplied."""

    arns: Tuple[str, ...]

    def to_iam_principal(self) -> iam.IPrincipal:
        return iam.CompositePrincipal(*(iam.ArnPrincipal(arn) for arn in self.arns))


Principal = Union[SinglePrincipal, CompositePrincipal]


def split_arn(arn: str) -> ArnComponents:
    """
    Split an ARN of the form ``arn:partition:service:region:account:resource/resource-name``.

    Parsing is done by ``aws_cdk.Arn.split``; on top of that the ARN must have
    exactly six components and a non-empty resource type and name.

    Args:
        arn: The ARN string to split

    Returns:
        ArnComponents for the ARN

    Raises:
        ValueError: If the ARN does not have exactly six components or lacks a resource name
        RuntimeError: If ``aws_cdk.Arn.split`` rejects the ARN
    """
    if arn.count(":") != 5:
        raise ValueError(f"ARNs must have exactly 6 components: {arn}")

    components = Arn.split(arn, ArnFormat.SLASH_RESOURCE_NAME)
    if not components.resource or not components.resource_name:
        raise ValueError(f"Expected a resource type and name separated by '/': {arn}")

    return ArnComponents(
        partition=components.partition or "",
        service=components.service,
        region=components.region or "",
        account=components.account or "",
        resource=components.resource,
        resource_name=components.resource_name,
    )


def validate_role_arn(arn: Any) -> ArnComponents:
    """
    Validate that a value is an AWS IAM role ARN.

    Args:
        arn: Value to validate, usually straight from CDK context

    Returns:
        The ARN components if valid

    Raises:
        TypeError: If the value is not a string
        InvalidArnError: If the ARN contains "*"
        ParseError: If the ARN is malformed (the structural error is the cause)
        SemanticError: If the ARN is not for an IAM role
    """
    if not isinstance(arn, str):
        raise TypeError(f"Failed to parse ARN, is not a string: {arn!r}")
    if "*" in arn:
        raise InvalidArnError(f'ARN cannot include "*": {arn}', arn)

    try:
        components = split_arn(arn)
    except (ValueError, RuntimeError) as e:
        raise ParseError(f'Failed to parse ARN: "{arn}"', arn) from e

    if components.service != "iam":
        raise SemanticError(f'ARN is not a iam service: "{arn}"', arn)
    if components.resource != "role":
        raise SemanticError(f'ARN is not a role resource: "{arn}"', arn)
    return components


def try_get_context_arn(context: ContextProvider, key: str) -> Optional[str]:
    """
    Look up a role ARN from context.

    Returns:
        The ARN if set and valid, None if not set

    Raises:
        ArnError, TypeError: If the ARN is set but invalid
    """
    value = context.try_get_context(key)
    if value is None:
        return None
    validate_role_arn(value)
    return value


def try_get_context_arns(context: ContextProvider, key: str) -> Optional[Sequence[str]]:
    """
    Look up a list of role ARNs from context.

    Either every entry is a valid role ARN or the lookup fails; order and
    duplicates are kept as configured.

    Returns:
        The ARNs if set and valid, None if not set

    Raises:
        TypeError: If the value is not a list, or an entry is not a string
        ArnError: If any entry is an invalid ARN
    """
    value = context.try_get_context(key)
    if value is None:
        return None
    if not isinstance(value, (list, tuple)):
        raise TypeError(f'Context "{key}" expected a list of strings, got {type(value).__name__}')
    for arn in value:
        validate_role_arn(arn)
    return value


def get_arn_principal(arns: Union[str, Sequence[str]]) -> Principal:
    """
    Build the trust principal for one or more role ARNs.

    ARNs are not validated here; look them up with ``try_get_context_arn(s)``.

    Raises:
        ValueError: If no ARNs are supplied
    """
    arn_list = [arns] if isinstance(arns, str) else list(arns)
    if not arn_list:
        raise ValueError("Failed to create principal, no ARNs supplied")
    if len(arn_list) == 1:
        return SinglePrincipal(arn_list[0])
    return CompositePrincipal(tuple(arn_list))
