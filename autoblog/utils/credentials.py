"""
Giải mã credential của WordPress site (password_encrypted).
Mã hóa at-rest là capability bên ngoài; module này chỉ bọc Fernet (cryptography).
"""
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken

from autoblog.config import get_settings


class CredentialsError(Exception):
    """Không giải mã được credential (thiếu key hoặc token sai)."""


def _fernet(key: Optional[str]) -> Fernet:
    key = key or get_settings().credentials_key
    if not key:
        raise CredentialsError("credentials_key_not_configured")
    try:
        return Fernet(key.encode() if isinstance(key, str) else key)
    except (TypeError, ValueError) as e:
        raise CredentialsError("credentials_key_invalid") from e


def encrypt_secret(plaintext: str, key: Optional[str] = None) -> str:
    """Mã hóa plaintext thành token Fernet (str)."""
    return _fernet(key).encrypt(plaintext.encode("utf-8")).decode("ascii")


def decrypt_secret(token: str, key: Optional[str] = None) -> str:
    """Giải mã token Fernet; sai key hoặc token hỏng -> CredentialsError."""
    if not token:
        raise CredentialsError("credentials_missing")
    try:
        return _fernet(key).decrypt(token.encode("ascii")).decode("utf-8")
    except InvalidToken as e:
        raise CredentialsError("credentials_invalid_token") from e
