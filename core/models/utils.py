"""ID generation utility."""

import secrets


def gen_id(prefix: str) -> str:
    """Generate prefixed random IDs, e.g. ses_xxx for chat sessions."""
    return f"{prefix}{secrets.token_urlsafe(9)}"
