"""Cross-account console access roles for the open data account."""

import logging
from typing import Optional

from aws_cdk import (
    Stack,
    aws_iam as iam,
    CfnOutput,
)
from constructs import Construct

from open_data_registry import config
from open_data_registry.util.arn import get_arn_principal, try_get_context_arn


logger = logging.getLogger(__name__)


class OdrConsoleStack(Stack):
    """
    Stack for roles that let a bastion role in another account log in to the console.

    - ConsoleReadOnly: view billing, metrics and resources (ReadOnlyAccess)
    - ConsoleAdmin: full account administration (AdministratorAccess)
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        **kwargs,
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        self.console_read_only_role = self._create_console_role(
            "ConsoleReadOnly",
            context_key=config.CONSOLE_READ_ONLY_ROLE_ARN,
            managed_policy_name="ReadOnlyAccess",
        )

        self.console_admin_role = self._create_console_role(
            "ConsoleAdmin",
            context_key=config.CONSOLE_ADMIN_ROLE_ARN,
            managed_policy_name="AdministratorAccess",
        )

    def _create_console_role(
        self,
        role_id: str,
        context_key: str,
        managed_policy_name: str,
    ) -> Optional[iam.Role]:
        """
        Create a role with an AWS managed policy, assumable by the role ARN in context.

        Args:
            role_id: Construct ID of the role, also the prefix of its output
            context_key: Context key holding the bastion role ARN
            managed_policy_name: Name of the AWS managed policy to attach

        Returns:
            The role, or None if the context key is not set
        """
        bastion_arn = try_get_context_arn(self.node, context_key)
        if bastion_arn is None:
            logger.warning('Skipping %s role as "%s" is not set.', role_id, context_key)
            return None

        role = iam.Role(
            self,
            role_id,
            assumed_by=get_arn_principal(bastion_arn).to_iam_principal(),
        )
        role.add_managed_policy(iam.ManagedPolicy.from_aws_managed_policy_name(managed_policy_name))
        logger.info("%s role assumable by %s", role_id, bastion_arn)

        CfnOutput(self, f"{role_id}Arn", value=role.role_arn)
        return role
