"""SKU validation functions."""

import re

SKU_PATTERN = re.compile(r"^[A-Z0-9][A-Z0-9._-]*$")


def normalize_sku(sku: str) -> str:
    """Normalize a SKU to its stored form (trimmed, upper-case).

    Raises:
        ValueError: If the SKU contains characters other than letters, digits, '.', '_' or '-'

    Examples:
        >>> normalize_sku(" hlm-001 ")
        'HLM-001'

    """
    normalized = sku.strip().upper()
    if not SKU_PATTERN.match(normalized):
        raise ValueError("SKU may only contain letters, digits, '.', '_' and '-'")
    return normalized
