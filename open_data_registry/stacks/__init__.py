"""CDK stacks for the open data buckets, console access and audit trail."""

__all__: list[str] = []
