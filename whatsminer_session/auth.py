from __future__ import annotations

import base64
import hashlib
import time
from importlib import import_module
from typing import Optional, Union

from .account import Account, Password
from .errors import EncryptionError

TOKEN_LENGTH = 8
AES_KEY_SIZE = 32
AES_BLOCK_SIZE = 16


class MissingAESCipher(ImportError):
    """Raised when no AES cipher implementation is available."""


def _load_aes_cipher():
    for module_name in ("Cryptodome.Cipher.AES", "Crypto.Cipher.AES"):
        try:
            return import_module(module_name)
        except ImportError:
            continue
    raise MissingAESCipher(
        "AES cipher not available. Install pycryptodome or pycryptodomex:\n"
        "  pip install pycryptodome\n"
        "  # or\n"
        "  pip install pycryptodomex"
    )


AES = _load_aes_cipher()


def now_ts_int() -> int:
    """Return current unix timestamp as int (seconds)."""

    return int(time.time())


def sha256_digest_bytes(s: str) -> bytes:
    """Return sha256 digest bytes for input string s (utf-8)."""

    return hashlib.sha256(s.encode("utf-8")).digest()


def pkcs7_pad(data: bytes, block_size: int = AES_BLOCK_SIZE) -> bytes:
    """PKCS#7 pad bytes to block_size. Aligned input gets a full extra block."""

    pad_len = block_size - (len(data) % block_size)
    return data + bytes([pad_len]) * pad_len


def generate_token(cmd: str, account_password: str, salt: str, ts: int) -> tuple[str, bytes]:
    """
    Token per API v3.0.1:
      digest = sha256(cmd + password + salt + ts)  -> 32 raw bytes
      token  = base64(digest) first 8 chars
    Returns: (token_str, digest_bytes)
    """

    concat = f"{cmd}{account_password}{salt}{ts}"
    digest = sha256_digest_bytes(concat)
    b64 = base64.b64encode(digest).decode("ascii")
    return b64[:TOKEN_LENGTH], digest


def encrypt_aes_ecb_base64(data: bytes, aes_key_bytes: Union[bytes, bytearray]) -> str:
    """
    Encrypt an already serialised parameter string:
      - PKCS#7 pad to 16 bytes
      - AES-256-ECB with the sha256 digest as key
      - base64 encode
    """

    if aes_key_bytes is None or len(aes_key_bytes) != AES_KEY_SIZE:
        raise EncryptionError(f"AES-256 key must be {AES_KEY_SIZE} bytes")
    cipher = AES.new(bytes(aes_key_bytes), AES.MODE_ECB)
    ct = cipher.encrypt(pkcs7_pad(data, AES_BLOCK_SIZE))
    return base64.b64encode(ct).decode("ascii")


class AuthData:
    """
    Authentication block for one secured request.

    Serialises to ``account``, ``ts`` and ``token``. The raw digest is kept
    privately as the AES key for the request's parameter and is never
    serialised.
    """

    __slots__ = ("ts", "token", "account", "_key")

    def __init__(self, ts: int, token: str, account: Account, key: Union[bytes, bytearray]):
        self.ts = ts
        self.token = token
        self.account = account
        self._key = bytearray(key)

    @classmethod
    def generate(
        cls,
        cmd: str,
        account: Account,
        password: Union[Password, str],
        salt: str,
        ts: Optional[int] = None,
    ) -> "AuthData":
        if isinstance(password, Password):
            password = password.reveal()
        ts_val = ts if ts is not None else now_ts_int()
        token, digest = generate_token(cmd, password, salt, ts_val)
        return cls(ts_val, token, account, digest)

    def encrypt(self, data: Union[str, bytes]) -> str:
        """AES-256-ECB + PKCS#7 encrypt data with this block's key, base64 encoded."""

        if isinstance(data, str):
            data = data.encode("utf-8")
        return encrypt_aes_ecb_base64(data, self._key)

    def to_dict(self) -> dict:
        return {"account": self.account.value, "ts": self.ts, "token": self.token}

    def wipe(self) -> None:
        for i in range(len(self._key)):
            self._key[i] = 0

    def __repr__(self) -> str:
        return f"AuthData(ts={self.ts}, account={self.account!s}, token=<hidden>, key=<hidden>)"

    def __del__(self):
        if hasattr(self, "_key"):
            self.wipe()


__all__ = [
    "AES",
    "AuthData",
    "MissingAESCipher",
    "encrypt_aes_ecb_base64",
    "generate_token",
    "now_ts_int",
    "pkcs7_pad",
    "sha256_digest_bytes",
]
