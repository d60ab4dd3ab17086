# ==============================================
# Identifier allow-list
# ==============================================
#
# Table names come from topic segments, so they are external
# input. Only names matching IDENTIFIER_PATTERN may be spliced
# into SQL text, and they are always backtick-quoted.
#
# ==============================================

import re

from mqtt2clickhouse.errors import InvalidIdentifierError

IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]{0,127}$")


def is_valid_identifier(name: str) -> bool:
    return isinstance(name, str) and bool(IDENTIFIER_PATTERN.match(name))


def validate_identifier(name: str) -> str:
    """
    Return name unchanged if it is an allowed identifier.

    Raises:
        InvalidIdentifierError: name contains characters outside [A-Za-z0-9_],
            starts with a digit, is empty or longer than 128 characters
    """
    if not is_valid_identifier(name):
        raise InvalidIdentifierError(name)
    return name


def quote_identifier(name: str) -> str:
    """Validate and backtick-quote an identifier for use in SQL text."""
    return f"`{validate_identifier(name)}`"
