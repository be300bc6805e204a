# Keybox: Record Codec
#
# Master password -> key: raw MD5 digest (16 bytes, AES-128)
# Sensitive fields: AES-CFB (128-bit segments), one IV per field
#
# KNOWN WEAKNESS: the key derivation is a single unsalted hash and CFB has
# no integrity check. A wrong master password decrypts to garbage without
# an error. Changing either means a versioned migration of the blob format.

import hashlib
import os
from typing import Callable, Optional

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from .errors import CipherInitError, InvalidIVLength
from .record import Record

# Undecodable plaintext bytes map to lone surrogates and back, so a record
# decrypted under the wrong key re-encrypts to its original ciphertext.
TEXT_ENCODING = "utf-8"
TEXT_ERRORS = "surrogateescape"


def derive_key(master_password: str) -> bytes:
    """16-byte MD5 digest of the master password."""
    return hashlib.md5(master_password.encode(TEXT_ENCODING)).digest()


class RecordCodec:
    """
    Encrypts and decrypts the account/password fields of a Record.

    Args:
        master_password: Password the key is derived from
        random_bytes: IV source, ``n -> n random bytes`` (default os.urandom)
    """

    BLOCK_SIZE = algorithms.AES.block_size // 8  # 16 bytes

    def __init__(
        self,
        master_password: str,
        random_bytes: Optional[Callable[[int], bytes]] = None,
    ):
        self._key = derive_key(master_password)
        self._random_bytes = random_bytes or os.urandom
        try:
            self._algorithm = algorithms.AES(self._key)
        except ValueError as e:
            raise CipherInitError(f"failed to initialize AES cipher: {e}") from e

    def _cipher(self, iv: bytes) -> Cipher:
        try:
            return Cipher(self._algorithm, modes.CFB(iv))
        except ValueError as e:
            raise CipherInitError(f"failed to initialize CFB mode: {e}") from e

    def _new_iv(self) -> bytes:
        iv = self._random_bytes(self.BLOCK_SIZE)
        if len(iv) != self.BLOCK_SIZE:
            raise CipherInitError(
                f"random source returned {len(iv)} bytes, expected {self.BLOCK_SIZE}"
            )
        return iv

    def encrypt_bytes(self, iv: bytes, plaintext: bytes) -> bytes:
        encryptor = self._cipher(iv).encryptor()
        return encryptor.update(plaintext) + encryptor.finalize()

    def decrypt_bytes(self, iv: bytes, ciphertext: bytes) -> bytes:
        decryptor = self._cipher(iv).decryptor()
        return decryptor.update(ciphertext) + decryptor.finalize()

    def encrypt(self, record: Record) -> None:
        """
        Encrypt the plaintext fields of ``record`` in place.

        An IV of the wrong length (e.g. a brand new record) is replaced by a
        fresh random one. A correctly sized IV is reused, so encrypting the
        same plaintext twice gives the same ciphertext.
        """
        if len(record.account_iv) != self.BLOCK_SIZE:
            record.account_iv = self._new_iv()
        if len(record.password_iv) != self.BLOCK_SIZE:
            record.password_iv = self._new_iv()

        record.cipher_account = self.encrypt_bytes(
            record.account_iv, record.plain_account.encode(TEXT_ENCODING, TEXT_ERRORS)
        )
        record.cipher_password = self.encrypt_bytes(
            record.password_iv, record.plain_password.encode(TEXT_ENCODING, TEXT_ERRORS)
        )

    def decrypt(self, record: Record) -> None:
        """
        Decrypt the ciphertext fields of ``record`` in place.

        Raises:
            InvalidIVLength: If either stored IV is not BLOCK_SIZE bytes.
        """
        if len(record.account_iv) != self.BLOCK_SIZE:
            raise InvalidIVLength("account", len(record.account_iv), self.BLOCK_SIZE)
        if len(record.password_iv) != self.BLOCK_SIZE:
            raise InvalidIVLength("password", len(record.password_iv), self.BLOCK_SIZE)

        record.plain_account = self.decrypt_bytes(
            record.account_iv, record.cipher_account
        ).decode(TEXT_ENCODING, TEXT_ERRORS)
        record.plain_password = self.decrypt_bytes(
            record.password_iv, record.cipher_password
        ).decode(TEXT_ENCODING, TEXT_ERRORS)
