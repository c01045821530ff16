"""Map a finish name to the code used for its swatch image.

Finish names carry their code in parentheses, e.g. "BLACK DIAMOND (BD)".
"""

import re

_CODE_IN_PARENS = re.compile(r"\(([^)]+)\)")
_WHITESPACE = re.compile(r"\s+")


def resolve_finish_code(finish: str | None) -> str | None:
    """Return the finish code.

    Examples:
        >>> resolve_finish_code("BLACK DIAMOND (BD)")
        'BD'
        >>> resolve_finish_code("Polida")
        'POLIDA'
    """
    if not finish:
        return None

    normalized = finish.strip()
    match = _CODE_IN_PARENS.search(normalized)
    if match and match.group(1).strip():
        return match.group(1).strip().upper()

    code = _WHITESPACE.sub("", normalized.upper())
    return code or None


def resolve_finish_image(finish: str | None) -> str | None:
    """Swatch filename for a finish, or None to fall back to the wheel's own photo."""
    code = resolve_finish_code(finish)
    if not code:
        return None
    return f"{code}.jpg"
