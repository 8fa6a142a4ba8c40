from collections import Counter
from typing import List
import re

from po_validator.models import PLACEHOLDER_MISMATCH, ValidationProblem

# Only the bare two-character printf conversions are recognised. Tokens with
# flags, width, precision or positional arguments (%1$s, %.2f) are not.
PLACEHOLDER_REGEX = re.compile(r'%[sdfg]')


def extract_placeholders(text: str) -> List[str]:
    """
    Extracts printf-style placeholders from a string.

    Args:
        text: The string to scan.

    Returns:
        The placeholders in the order they appear, duplicates included.
        An empty list if the string contains none.
    """
    return PLACEHOLDER_REGEX.findall(text)


def check_placeholder_consistency(msgid: str, msgstr: str) -> List[ValidationProblem]:
    """
    Compares the placeholders of an original string and its translation.
    Reordering is allowed; a different number of occurrences is not.

    Args:
        msgid: The original string.
        msgstr: The translated string.

    Returns:
        A list with one placeholder_mismatch problem if the placeholders differ,
        otherwise an empty list.
    """
    original_placeholders = extract_placeholders(msgid)
    translated_placeholders = extract_placeholders(msgstr)

    if sorted(original_placeholders) == sorted(translated_placeholders):
        return []

    missing = Counter(original_placeholders) - Counter(translated_placeholders)
    unexpected = Counter(translated_placeholders) - Counter(original_placeholders)

    parts = []
    if missing:
        parts.append(f"Missing placeholder(s): {', '.join(missing.elements())}")
    if unexpected:
        parts.append(f"Unexpected placeholder(s): {', '.join(unexpected.elements())}")
    description = '; '.join(parts)

    return [ValidationProblem(kind=PLACEHOLDER_MISMATCH, description=description)]
