"""
Permit number helpers.

Permit numbers look like "21 123456 BLD 00": year, sequence, a 2-4 letter
sub-permit code, revision. Companion permits share the first two tokens.
"""
import re
from typing import Optional

PERMIT_CODE_RE = re.compile(r'\s([A-Z]{2,4})(?:\s|$)')
BLD_RE = re.compile(r'\sBLD(?:\s|$)')


def extract_base_permit_num(permit_num: str) -> str:
    """"21 123456 BLD 00" -> "21 123456"."""
    return ' '.join((permit_num or '').split()[:2])


def extract_permit_code(permit_num: str) -> Optional[str]:
    """"22 654321 PLB 00" -> "PLB"; None when the number carries no code."""
    if not permit_num:
        return None
    match = PERMIT_CODE_RE.search(permit_num)
    return match.group(1) if match else None


def has_permit_code(permit_num: str) -> bool:
    return extract_permit_code(permit_num) is not None


def is_bld_permit(permit_num: str) -> bool:
    return bool(permit_num) and BLD_RE.search(permit_num) is not None
