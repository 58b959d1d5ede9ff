"""
Security helpers for the explorer service.

- secret_redactor: logging filter masking API keys, bearer tokens and e-mails
"""

from geo_explorer.security.secret_redactor import SecretRedactionFilter, redact_secrets

__all__ = [
    "SecretRedactionFilter",
    "redact_secrets",
]
