"""CEP (Brazilian postal code) format validation.

Shared by the input and orchestration handlers: the input service checks
before paying for a network hop, the orchestration service checks again
because it is independently callable.
"""

import re

# ASCII digits only: \d would also accept other Unicode digit characters
CEP_PATTERN = re.compile(r"[0-9]{8}")


def normalize_cep(cep: str) -> str:
    """Remove hyphens and surrounding whitespace.

    Leading zeros are kept: "01310-100" -> "01310100".
    """
    return cep.replace("-", "").strip()


def is_valid_cep(cep: str) -> bool:
    """Return True if *cep* is exactly 8 decimal digits once normalized.

    Args:
        cep: Raw client input.

    Returns:
        Whether the input is a well-formed CEP.
    """
    return CEP_PATTERN.fullmatch(normalize_cep(cep)) is not None
