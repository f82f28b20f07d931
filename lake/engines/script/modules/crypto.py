"""
Crypto module: hash_sha256, hash_sha512, hash_md5, to_base64, from_base64,
from_base64_str, uuid_v4.

Hashes are lowercase hex digests of the UTF-8 encoded input string.
"""

import base64
import binascii
import hashlib
import uuid

from .base import CapabilityModule, plugin_error


def _b64decode(data: str) -> bytes:
    try:
        return base64.b64decode(data.encode("utf-8"), validate=True)
    except (binascii.Error, ValueError) as e:
        raise plugin_error(e, "Error decoding base64") from e


def make_crypto_module() -> CapabilityModule:
    """Build the `crypto` module."""

    def hash_sha256(data: str) -> str:
        return hashlib.sha256(str(data).encode("utf-8")).hexdigest()

    def hash_sha512(data: str) -> str:
        return hashlib.sha512(str(data).encode("utf-8")).hexdigest()

    def hash_md5(data: str) -> str:
        return hashlib.md5(str(data).encode("utf-8")).hexdigest()

    def to_base64(data: str) -> str:
        return base64.b64encode(str(data).encode("utf-8")).decode("ascii")

    def from_base64(data: str) -> list[int]:
        # Raw bytes as a list of ints; scripts cannot do much with a bytes object
        return list(_b64decode(data))

    def from_base64_str(data: str) -> str:
        raw = _b64decode(data)
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise plugin_error(e, "Decoded base64 is not valid UTF-8") from e

    def uuid_v4() -> str:
        return str(uuid.uuid4())

    return CapabilityModule(
        "crypto",
        {
            "hash_sha256": hash_sha256,
            "hash_sha512": hash_sha512,
            "hash_md5": hash_md5,
            "to_base64": to_base64,
            "from_base64": from_base64,
            "from_base64_str": from_base64_str,
            "uuid_v4": uuid_v4,
        },
    )
