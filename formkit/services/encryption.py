"""
Reversible encryption for sensitive field values.

AES-256-GCM authenticated encryption with a fresh 12 byte nonce per value.

Stored format:
    "enc:v1:" + base64( nonce (12 bytes) | ciphertext | tag (16 bytes) )

Reading plaintext back requires the admin capability; encrypting does not.
"""
import base64
import binascii
import logging
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from ..conf import formkit_setting
from ..exceptions import AuthorizationError, DecryptionError
from .security import has_capability, log_security_event
from .storage import OptionStore

logger = logging.getLogger(__name__)

KEY_SIZE = 32  # 256 bits
NONCE_SIZE = 12  # 96 bits (standard for GCM)
TAG_SIZE = 16
PREFIX = 'enc:v1:'
MASK = '•' * 12


def is_encrypted_value(value):
    return isinstance(value, str) and value.startswith(PREFIX)


def generate_key():
    return base64.b64encode(os.urandom(KEY_SIZE)).decode('ascii')


def _decode_key(encoded):
    try:
        key = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError, TypeError):
        raise DecryptionError("Encryption key is not valid base64.")
    if len(key) != KEY_SIZE:
        raise DecryptionError(f"Encryption key must be {KEY_SIZE} bytes, got {len(key)}.")
    return key


class EncryptionService:
    """
    encrypt(plaintext) -> token
    decrypt(token, requesting_actor) -> plaintext | AuthorizationError
    """

    def __init__(self, key=None, store=None):
        self._key = _decode_key(key) if key else None
        self._store = store

    # ==========================================
    # Key management
    # ==========================================

    def _get_key(self):
        if self._key is not None:
            return self._key

        configured = formkit_setting('ENCRYPTION_KEY')
        if configured:
            self._key = _decode_key(configured)
            return self._key

        # No configured key: generate one once and keep it in the option store.
        store = self._store or OptionStore()
        option_name = formkit_setting('MASTER_KEY_OPTION')
        stored = store.get(option_name)
        if not stored:
            stored = store.add(option_name, generate_key())
            logger.info("Generated master encryption key")
        self._key = _decode_key(stored)
        return self._key

    # ==========================================
    # Operations
    # ==========================================

    def encrypt(self, plaintext):
        if plaintext is None or plaintext == '':
            return ''

        nonce = os.urandom(NONCE_SIZE)
        sealed = AESGCM(self._get_key()).encrypt(nonce, str(plaintext).encode('utf-8'), None)
        return PREFIX + base64.b64encode(nonce + sealed).decode('ascii')

    def decrypt(self, token, requesting_actor):
        """
        Capability check comes first: an unauthorized caller learns nothing,
        not even whether the token is well formed.
        """
        if not has_capability(requesting_actor, formkit_setting('ADMIN_CAPABILITY')):
            log_security_event('decrypt_denied', user=requesting_actor)
            raise AuthorizationError("You are not allowed to view this value.")
        return self._decrypt(token)

    def _decrypt(self, token):
        if token is None or token == '':
            return ''
        if not is_encrypted_value(token):
            # Legacy plain value stored before encryption was enabled.
            return token

        try:
            raw = base64.b64decode(token[len(PREFIX):], validate=True)
        except (binascii.Error, ValueError):
            raise DecryptionError("Invalid encrypted data.")

        if len(raw) < NONCE_SIZE + TAG_SIZE:
            raise DecryptionError("Invalid encrypted data.")

        nonce, sealed = raw[:NONCE_SIZE], raw[NONCE_SIZE:]
        try:
            plaintext = AESGCM(self._get_key()).decrypt(nonce, sealed, None)
        except InvalidTag:
            logger.warning("Decryption failed: authentication tag mismatch")
            raise DecryptionError("Invalid encrypted data.")
        return plaintext.decode('utf-8')

    def mask(self, token):
        """Display stand-in for a stored secret."""
        return MASK if token else ''
