from __future__ import annotations

import re
from typing import Dict

from .errors import CredentialError

MIN_TOKEN_LENGTH = 20
_DOC_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


def validate_credentials(api_token: str, doc_id: str) -> Dict[str, str]:
    """Return ``{field: message}`` for every invalid credential field."""
    errors: Dict[str, str] = {}
    api_token = (api_token or "").strip()
    doc_id = (doc_id or "").strip()

    if not api_token:
        errors["api_token"] = "API Token is required"
    elif len(api_token) < MIN_TOKEN_LENGTH:
        errors["api_token"] = "API Token appears to be invalid (too short)"

    if not doc_id:
        errors["doc_id"] = "Document ID is required"
    elif not _DOC_ID_PATTERN.fullmatch(doc_id):
        errors["doc_id"] = "Document ID contains invalid characters"

    return errors


def require_credentials(api_token: str, doc_id: str) -> None:
    errors = validate_credentials(api_token, doc_id)
    if errors:
        raise CredentialError(errors)
