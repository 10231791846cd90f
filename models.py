# models.py
import logging
from dataclasses import dataclass, asdict
from typing import Optional

from config import DEFAULT_CONFIG, TrackerConfig
from crypto_utils import canonical_identifier, hash_candidate, meets_difficulty
from errors import InvalidReason

logger = logging.getLogger(__name__)

GENESIS_PREVIOUS_HASH = "0"


@dataclass(frozen=True)
class Identifier:
    data_id: str         # e.g. order~clothing~iStore~15150
    index: int
    timestamp: int       # epoch seconds, 0 for genesis
    actor_id: str        # e.g. notifier~billing~receipt~email, "" for genesis
    previous_hash: str   # "0" for genesis

    @staticmethod
    def genesis(data_id: str) -> "Identifier":
        # fixed timestamp keeps genesis links for the same data_id bit-identical
        return Identifier(
            data_id=data_id,
            index=0,
            timestamp=0,
            actor_id="",
            previous_hash=GENESIS_PREVIOUS_HASH,
        )

    def is_genesis_shape(self) -> bool:
        return (
            self.index == 0
            and self.timestamp == 0
            and self.actor_id == ""
            and self.previous_hash == GENESIS_PREVIOUS_HASH
        )

    def canonical(self) -> bytes:
        return canonical_identifier(
            self.data_id, self.index, self.timestamp, self.actor_id, self.previous_hash
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class Link:
    identifier: Identifier
    hash: str     # decimal digest value
    nonce: int

    def to_dict(self) -> dict:
        return {
            "identifier": self.identifier.to_dict(),
            "hash": self.hash,
            "nonce": self.nonce,
        }

    def __repr__(self):
        idf = self.identifier
        return (f"Link {idf.index}: data={idf.data_id} actor={idf.actor_id or '<genesis>'} "
                f"hash={self.hash[:8]}… nonce={self.nonce}")


def check_link(link: Link, config: Optional[TrackerConfig] = None) -> Optional[InvalidReason]:
    """
    Recompute the proof of work for a single link.

    The stored hash is never trusted: the digest is rebuilt from the identifier
    and nonce, compared to the stored value, and then tested against the
    configured difficulty on its own.

    Returns None when the link is sound, otherwise the reason it is not.
    """
    config = config or DEFAULT_CONFIG
    value = hash_candidate(link.identifier.canonical(), link.nonce)

    if str(value) != link.hash:
        logger.debug("link %d: stored hash does not match recomputation", link.identifier.index)
        return InvalidReason.HASH_MISMATCH
    if not meets_difficulty(value, config.difficulty):
        logger.debug("link %d: digest above target for difficulty %d",
                     link.identifier.index, config.difficulty)
        return InvalidReason.PROOF_OF_WORK_INVALID
    return None


def verify_self(link: Link, config: Optional[TrackerConfig] = None) -> bool:
    return check_link(link, config) is None
