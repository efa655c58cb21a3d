"""
Argument checks run before any ledger access.
"""

import re
from typing import Sequence

from msgledger.errors import ValidationError

MAX_ARGUMENT_LENGTH = 32

_INTEGER_RE = re.compile(r"[+-]?[0-9]+")
_INT64_MIN = -(2 ** 63)
_INT64_MAX = 2 ** 63 - 1


def sanitize_arguments(args: Sequence[str]) -> None:
    """
    Reject empty or oversized arguments.

    Args:
        args: Positional command arguments

    Raises:
        ValidationError: naming the position of the first offending argument
    """
    for i, value in enumerate(args):
        if len(value) <= 0:
            raise ValidationError(f"Argument {i} must be a non-empty string")
        if len(value) > MAX_ARGUMENT_LENGTH:
            raise ValidationError(f"Argument {i} must be <= {MAX_ARGUMENT_LENGTH} characters")


def expect_argument_count(args: Sequence[str], *expected: int) -> None:
    """Raise ValidationError unless len(args) is one of the expected counts."""
    if len(args) not in expected:
        wanted = " or ".join(str(n) for n in expected)
        raise ValidationError(f"Incorrect number of arguments. Expecting {wanted}")


def parse_priority(value: str) -> int:
    """Parse a signed base-10 integer that fits in 64 bits."""
    if not _INTEGER_RE.fullmatch(value):
        raise ValidationError("3rd argument must be a numeric string")
    priority = int(value)
    if not _INT64_MIN <= priority <= _INT64_MAX:
        raise ValidationError("3rd argument must be a numeric string")
    return priority
