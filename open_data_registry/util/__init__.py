"""String helpers shared by the stacks: role ARN validation and name formatting."""

__all__: list[str] = []
