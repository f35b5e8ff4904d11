"""Name formatting for CDK construct ids and CloudFormation export names."""

import re


# A word character at the start of the string or right after a delimiter.
_WORD_START = re.compile(r"(?:^|(?<=[\s\-_/]))\w", re.ASCII)

# Slash triggers capitalisation but is not removed.
_SEPARATORS = re.compile(r"[\s\-_]", re.ASCII)


def title_case(text: str) -> str:
    """
    Convert a string into title case.

    Examples:
        title_case("linz-imagery-bucket")  # "LinzImageryBucket"
        title_case("linz_imagery_bucket")  # "LinzImageryBucket"
        title_case("linz imagery bucket")  # "LinzImageryBucket"

    Args:
        text: String to title case

    Returns:
        The title cased string
    """
    titled = _WORD_START.sub(lambda match: match.group(0).upper(), text.lower())
    return _SEPARATORS.sub("", titled)
