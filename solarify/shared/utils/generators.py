"""Document ids. CUID2 ids are URL-safe, unguessable and sort-free."""

from cuid2 import cuid_wrapper

_next_cuid = cuid_wrapper()


def generate_cuid() -> str:
    return str(_next_cuid())


def generate_prefixed_id(prefix: str) -> str:
    """'<prefix>_<cuid>', e.g. 'reading_k3j...', for ids that read well in logs."""
    return f"{prefix}_{generate_cuid()}"
