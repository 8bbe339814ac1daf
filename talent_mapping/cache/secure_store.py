"""
Encrypted key-value persistence for in-progress assessment state.

Values are JSON-serialized, encrypted with Fernet (AES-128-CBC + HMAC-SHA256)
and written as text to a KeyValueStore. Reads never raise: anything that
cannot be decrypted or validated is deleted and reported as "no saved state".
"""
import base64
import hashlib
import json
import logging
from typing import Any, Optional, Protocol, Union

from cryptography.fernet import Fernet, InvalidToken
from pydantic import TypeAdapter, ValidationError

from talent_mapping.cache.backends import KeyValueStore
from talent_mapping.errors import DecryptionError, EncryptionError, PersistenceError, StorageError

logger = logging.getLogger(__name__)


class Cipher(Protocol):
    def encrypt(self, data: bytes) -> bytes:
        ...

    def decrypt(self, token: bytes) -> bytes:
        ...


def derive_key(secret: Union[str, bytes]) -> bytes:
    """Derives a urlsafe-base64 Fernet key from an arbitrary passphrase."""
    if isinstance(secret, str):
        secret = secret.encode("utf-8")
    if not secret:
        raise ValueError("Encryption secret cannot be empty.")
    return base64.urlsafe_b64encode(hashlib.sha256(secret).digest())


def serialize(value: Any) -> str:
    try:
        return json.dumps(value, separators=(",", ":"), sort_keys=True)
    except (TypeError, ValueError) as e:
        raise PersistenceError(f"Value is not JSON serializable: {e}") from e


class PersistenceStore:
    """
    Encrypted wrapper over a KeyValueStore.

    Takes its secret explicitly. ``cipher`` overrides the Fernet instance
    derived from ``secret``.
    """

    def __init__(self, backend: KeyValueStore, secret: Union[str, bytes], cipher: Optional[Cipher] = None):
        self._backend = backend
        self._cipher: Cipher = cipher if cipher is not None else Fernet(derive_key(secret))

    @property
    def backend(self) -> KeyValueStore:
        return self._backend

    # --- Crypto helpers ---

    def encrypt(self, value: Any) -> str:
        payload = serialize(value).encode("utf-8")
        try:
            return self._cipher.encrypt(payload).decode("ascii")
        except Exception as e:
            logger.error(f"Encryption error: {e}")
            raise EncryptionError("Failed to encrypt data") from e

    def decrypt(self, token: str) -> Any:
        try:
            plaintext = self._cipher.decrypt(token.encode("ascii"))
        except (InvalidToken, UnicodeEncodeError, ValueError, TypeError) as e:
            raise DecryptionError("Failed to decrypt data - invalid key or corrupted data") from e
        try:
            return json.loads(plaintext.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise DecryptionError("Decrypted data is not valid JSON") from e

    # --- Public operations ---

    def save(self, key: str, value: Any) -> None:
        """
        Encrypts and writes ``value``.

        Raises EncryptionError when encryption fails; falling back to
        ``save_unencrypted`` is left to the caller. Raises StorageError when
        the backend write fails.
        """
        token = self.encrypt(value)
        self._backend.set(key, token)
        logger.debug(f"Saved encrypted entry '{key}' ({len(token)} chars)")

    def save_unencrypted(self, key: str, value: Any) -> None:
        """Plain JSON write, the legacy format. Picked up again by ``migrate``."""
        self._backend.set(key, serialize(value))
        logger.warning(f"Saved unencrypted entry '{key}'")

    def load(self, key: str, schema: Optional[TypeAdapter] = None) -> Optional[Any]:
        """
        Reads, decrypts and (optionally) validates an entry.

        Returns None when nothing is stored. Any failure removes the entry and
        also returns None.
        """
        try:
            raw = self._backend.get(key)
        except StorageError as e:
            logger.warning(f"Could not read '{key}' from storage: {e}")
            return None
        if raw is None or raw == "":
            return None

        try:
            value = self.decrypt(raw)
            if schema is not None:
                value = schema.validate_python(value)
            return value
        except (DecryptionError, ValidationError) as e:
            logger.error(f"Failed to get encrypted item '{key}': {e}. Removing corrupted entry.")
            self._discard(key)
            return None

    def remove(self, key: str) -> None:
        self._backend.remove(key)
        logger.debug(f"Removed entry '{key}'")

    def migrate(self, key: str) -> bool:
        """
        Re-encrypts a legacy plaintext JSON entry in place.

        Returns True when the entry is encrypted afterwards (migrated now or
        already encrypted) and False when there is nothing to migrate or the
        entry is unreadable either way. Running it repeatedly is a no-op.
        """
        try:
            raw = self._backend.get(key)
        except StorageError as e:
            logger.warning(f"Migration skipped for '{key}', storage unavailable: {e}")
            return False
        if not raw:
            return False

        try:
            self.decrypt(raw)
            logger.debug(f"'{key}' is already encrypted")
            return True
        except DecryptionError:
            pass

        try:
            legacy_value = json.loads(raw)
        except json.JSONDecodeError:
            logger.error(f"Failed to migrate '{key}': neither encrypted nor plain JSON")
            return False

        try:
            self.save(key, legacy_value)
        except PersistenceError as e:
            logger.error(f"Failed to migrate '{key}': {e}")
            return False
        logger.info(f"Migrated '{key}' to encrypted storage")
        return True

    def _discard(self, key: str) -> None:
        try:
            self._backend.remove(key)
        except StorageError as e:
            logger.warning(f"Could not remove corrupted entry '{key}': {e}")
