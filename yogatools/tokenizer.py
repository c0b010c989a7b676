import re
from typing import List, Optional

_NON_TOKEN_CHARS = re.compile(r"[^a-z0-9\s]")


def tokenize(text: Optional[str]) -> List[str]:
    """Lowercase ``text`` and split it into alphanumeric tokens.

    Anything other than ``a-z``, ``0-9`` and whitespace becomes a separator, so
    ``"Low-back, hips!"`` yields ``["low", "back", "hips"]``. ``None`` and the
    empty string yield ``[]``.
    """
    if not text:
        return []
    return _NON_TOKEN_CHARS.sub(" ", text.lower()).split()
