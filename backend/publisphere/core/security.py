import hmac
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from publisphere.core.config import settings

IV_LENGTH = 12
KEY_LENGTH = 32


class EncryptionNotConfiguredError(RuntimeError):
    pass


class CredentialDecryptionError(ValueError):
    pass


def _load_key() -> bytes:
    key_hex = (settings.encryption_secret or "").strip()
    if not key_hex:
        raise EncryptionNotConfiguredError("ENCRYPTION_SECRET environment variable not set")
    try:
        key = bytes.fromhex(key_hex)
    except ValueError as exc:
        raise EncryptionNotConfiguredError("ENCRYPTION_SECRET must be a hex string") from exc
    if len(key) != KEY_LENGTH:
        raise EncryptionNotConfiguredError("ENCRYPTION_SECRET must be 64 hex characters (32 bytes)")
    return key


def _get_aesgcm() -> AESGCM:
    return AESGCM(_load_key())


def ensure_encryption_configured() -> None:
    _load_key()


def generate_encryption_key() -> str:
    return os.urandom(KEY_LENGTH).hex()


def encrypt_secret(secret: str) -> str:
    """Encrypt with AES-256-GCM. Output is ``iv:ciphertext`` hex; the GCM tag trails the ciphertext."""
    if not secret:
        return ""
    iv = os.urandom(IV_LENGTH)
    ciphertext = _get_aesgcm().encrypt(iv, secret.encode("utf-8"), None)
    return f"{iv.hex()}:{ciphertext.hex()}"


def decrypt_secret(encrypted_secret: str) -> str:
    if not encrypted_secret:
        return ""
    aesgcm = _get_aesgcm()
    parts = encrypted_secret.split(":")
    if len(parts) != 2:
        raise CredentialDecryptionError("Invalid encrypted data format")
    try:
        iv = bytes.fromhex(parts[0])
        ciphertext = bytes.fromhex(parts[1])
        return aesgcm.decrypt(iv, ciphertext, None).decode("utf-8")
    except (ValueError, InvalidTag) as exc:
        raise CredentialDecryptionError("Failed to decrypt data") from exc


def verify_cron_secret(authorization_header: str | None) -> bool:
    expected_secret = settings.cron_secret
    if not expected_secret:
        return True
    expected = f"Bearer {expected_secret}"
    return hmac.compare_digest((authorization_header or "").encode("utf-8"), expected.encode("utf-8"))
