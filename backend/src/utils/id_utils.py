"""
Human-readable identifier formatting.

Identifiers are a prefix plus a zero-padded sequence number, optionally
qualified by the issuing branch: ``BR001-ORD007``, ``DOC012``. The padded
width is a minimum, not a limit (``ORD1000``), so callers must not parse
identifiers assuming a fixed length.
"""

from typing import Optional

from core.constants import IDENTIFIER_PAD_WIDTH

# Entity kinds issued per branch
PATIENT_PREFIX = "PAT"
VISIT_PREFIX = "VIS"
ORDER_PREFIX = "ORD"
EXPENSE_PREFIX = "EXP"

# Entity kinds issued globally
BRANCH_PREFIX = "BR"
DOCTOR_PREFIX = "DOC"
TEST_PREFIX = "TST"

# Staff identifiers use a role-specific prefix within the branch
ROLE_PREFIXES = {
    "ADMIN": "ADM",
    "BRANCH_MANAGER": "MGR",
    "OPD_STAFF": "OPD",
    "LAB_STAFF": "LAB",
    "PHARMACY_STAFF": "PHR",
    "MARKETING_EMPLOYEE": "MKT",
    "GENERAL_EMPLOYEE": "EMP",
}


def format_identifier(prefix: str, sequence: int, branch_code: Optional[str] = None) -> str:
    """
    Format an identifier from its prefix and sequence number.

    Args:
        prefix: Entity prefix, e.g. "ORD"
        sequence: Positive sequence value issued by the sequence generator
        branch_code: Issuing branch for branch-scoped kinds

    Returns:
        e.g. "BR001-ORD007" or "DOC007"
    """
    if sequence < 1:
        raise ValueError(f"Sequence must be positive, got {sequence}")
    number = str(sequence).zfill(IDENTIFIER_PAD_WIDTH)
    if branch_code:
        return f"{branch_code}-{prefix}{number}"
    return f"{prefix}{number}"


def sequence_key(kind: str, branch_code: Optional[str] = None) -> str:
    """
    Counter key for an entity kind, e.g. ``orderId_BR001`` or ``doctorId``.
    """
    if branch_code:
        return f"{kind}Id_{branch_code}"
    return f"{kind}Id"
