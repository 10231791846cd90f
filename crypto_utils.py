# crypto_utils.py
import json
import time
import hashlib
from nacl.signing import SigningKey, VerifyKey
from nacl.exceptions import BadSignatureError

DIGEST_BITS = 256


def now_ts() -> int:
    """Unix timestamp in seconds."""
    return int(time.time())


def canonical_identifier(data_id: str, index: int, timestamp: int, actor_id: str, previous_hash: str) -> bytes:
    """
    Deterministic byte encoding of a link identifier.
    Sorted keys and fixed separators keep it identical across platforms.
    """
    return json.dumps(
        {
            "data_id": data_id,
            "index": index,
            "timestamp": timestamp,
            "actor_id": actor_id,
            "previous_hash": previous_hash,
        },
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=True,
    ).encode("ascii")


def hash_candidate(prefix: bytes, nonce: int) -> int:
    """sha256(prefix || "|" || nonce) as a big-endian unsigned integer."""
    h = hashlib.sha256(prefix)
    h.update(b"|")
    h.update(str(nonce).encode("ascii"))
    return int.from_bytes(h.digest(), "big")


def target_for(difficulty: int) -> int:
    """Exclusive upper bound a digest must stay below to carry `difficulty` zero bits."""
    return 1 << (DIGEST_BITS - difficulty)


def meets_difficulty(value: int, difficulty: int) -> bool:
    return 0 <= value < target_for(difficulty)


def generate_keypair():
    """Generate an Ed25519 keypair."""
    sk = SigningKey.generate()
    vk = sk.verify_key
    return sk, vk


def sign_message(sk: SigningKey, message: bytes) -> bytes:
    """Sign bytes with Ed25519 private key."""
    signed = sk.sign(message)
    return signed.signature  # just the signature part


def verify_signature(vk: VerifyKey, message: bytes, signature: bytes) -> bool:
    """Verify signature, returning True/False."""
    try:
        vk.verify(message, signature)
        return True
    except (BadSignatureError, ValueError):
        return False
