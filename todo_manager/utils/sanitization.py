import re

def sanitize_string(v: str) -> str:
    if not isinstance(v, str):
        return v
    # 1. Strip HTML tags
    v = re.sub(r'<[^>]*>', '', v)
    # 2. Trim whitespace
    return v.strip()


def optional_text(v: str | None) -> str | None:
    """Trim free text; blank input means "no value", never an empty string."""
    v = sanitize_string(v)
    if isinstance(v, str) and not v:
        return None
    return v


def normalize_email(v: str) -> str:
    if not isinstance(v, str):
        return v
    return v.strip().lower()
