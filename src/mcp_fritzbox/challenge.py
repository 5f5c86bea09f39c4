"""FRITZ!Box login challenge-response.

The router hands out a challenge with every ``login_sid.lua`` answer. Its
format tells which firmware protocol is in use:

1. ``2$<iter1>$<salt1>$<iter2>$<salt2>`` (FRITZ!OS 7.24+): two chained
   PBKDF2-HMAC-SHA256 derivations.
2. Anything else: the legacy MD5 scheme over the UTF-16LE encoding of
   ``<challenge>-<password>``.

The router verifies the result byte for byte, so both paths are pinned by
fixed test vectors.
"""

from __future__ import annotations

import binascii
import hashlib
import logging
from typing import Tuple

from Crypto.Hash import SHA256
from Crypto.Protocol.KDF import PBKDF2

from .errors import MalformedChallengeError

# Configure module logger
logger = logging.getLogger(__name__)

V2_PREFIX = "2$"
V2_FIELD_COUNT = 5
# Both PBKDF2 passes derive 256 bits
DERIVED_KEY_LENGTH = 32


def compute_response(challenge: str, password: str) -> str:
    """Compute the login response for a challenge.

    Args:
        challenge: Challenge string issued by the router.
        password: Plain text password.

    Returns:
        The response string to send as the ``response`` login field.

    Raises:
        MalformedChallengeError: If a version 2 challenge cannot be parsed.
    """
    if challenge.startswith(V2_PREFIX):
        logger.debug("Using PBKDF2 challenge-response")
        return handle_challenge_v2(challenge, password)
    logger.debug("Using MD5 challenge-response")
    return handle_challenge_v1(challenge, password)


def handle_challenge_v1(challenge: str, password: str) -> str:
    """Legacy MD5 response.

    The router hashes UTF-16 code units, so characters outside the BMP end
    up as surrogate pairs, exactly like the browser implementation.
    """
    # surrogatepass keeps lone surrogates as single code units
    data = f"{challenge}-{password}".encode("utf-16-le", "surrogatepass")
    digest = hashlib.md5(data).hexdigest()
    return f"{challenge}-{digest}"


def handle_challenge_v2(challenge: str, password: str) -> str:
    """PBKDF2 response for ``2$`` challenges."""
    iter1, salt1, iter2, salt2_hex = _parse_v2(challenge)
    salt2 = _decode_salt(salt2_hex)

    hash1 = pbkdf2_hmac_sha256(password.encode("utf-8"), _decode_salt(salt1), iter1)
    hash2 = pbkdf2_hmac_sha256(hash1, salt2, iter2)
    return f"{salt2_hex}${hash2.hex()}"


def pbkdf2_hmac_sha256(secret: bytes, salt: bytes, iterations: int) -> bytes:
    """Derive a 256 bit key with PBKDF2-HMAC-SHA256."""
    return PBKDF2(
        secret,
        salt,
        dkLen=DERIVED_KEY_LENGTH,
        count=iterations,
        hmac_hash_module=SHA256,
    )


def _parse_v2(challenge: str) -> Tuple[int, str, int, str]:
    fields = challenge.split("$")
    if len(fields) != V2_FIELD_COUNT:
        raise MalformedChallengeError(
            f"Expected {V2_FIELD_COUNT} fields in challenge, got {len(fields)}"
        )
    _, iter1, salt1, iter2, salt2 = fields
    return _parse_iterations(iter1), salt1, _parse_iterations(iter2), salt2


def _parse_iterations(value: str) -> int:
    if not (value.isascii() and value.isdigit()):
        raise MalformedChallengeError(f"Invalid iteration count: {value!r}")
    iterations = int(value)
    if iterations < 1:
        raise MalformedChallengeError(f"Invalid iteration count: {value!r}")
    return iterations


def _decode_salt(value: str) -> bytes:
    # bytes.fromhex() tolerates whitespace, unhexlify does not
    try:
        return binascii.unhexlify(value)
    except (binascii.Error, ValueError) as e:
        raise MalformedChallengeError(f"Invalid hex salt: {value!r}") from e
