import re
import unicodedata
from typing import Collection

_NON_ALNUM = re.compile(r"[^a-z0-9]+")

DEFAULT_FIELD_NAME = "field"


def slugify(text: str) -> str:
    """
    Turn a field label into an answer key: "Years of experience" -> "years_of_experience".
    Accents are folded to ASCII; anything else that is not a letter or digit becomes "_".
    """
    if not text:
        return ""
    normalized = unicodedata.normalize("NFKD", text)
    ascii_text = "".join(ch for ch in normalized if not unicodedata.combining(ch))
    return _NON_ALNUM.sub("_", ascii_text.lower()).strip("_")


def unique_name(base: str, taken: Collection[str]) -> str:
    """Return `base`, or `base_1`, `base_2`, ... whichever is first not in `taken`."""
    base = base or DEFAULT_FIELD_NAME
    candidate = base
    counter = 1
    while candidate in taken:
        candidate = f"{base}_{counter}"
        counter += 1
    return candidate
