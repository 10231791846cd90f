# lineage.py
import logging
from typing import Iterable, Iterator, List, Optional

from config import DEFAULT_CONFIG, TrackerConfig
from crypto_utils import now_ts
from errors import ChainInvalid, InvalidReason
from mining import mine
from models import Identifier, Link, check_link

logger = logging.getLogger(__name__)


class Chain:
    """
    Ordered, append-only sequence of provenance links for one data item.

    A chain is passed explicitly from actor to actor; there is no shared
    registry. Appends are not synchronised: one producer owns the chain at a
    time. `verify` only reads and is safe to call from anywhere.
    """

    def __init__(self, links: Optional[Iterable[Link]] = None, config: Optional[TrackerConfig] = None):
        self._links: List[Link] = list(links or [])
        self.config = config or DEFAULT_CONFIG

    @classmethod
    def genesis(cls, data_id: str, config: Optional[TrackerConfig] = None) -> "Chain":
        config = config or DEFAULT_CONFIG
        link = mine(Identifier.genesis(data_id), config)
        logger.debug("started chain for %s", data_id)
        return cls([link], config)

    # --- reading -----------------------------------------------------------

    def __len__(self) -> int:
        return len(self._links)

    def __iter__(self) -> Iterator[Link]:
        return iter(self._links)

    def __getitem__(self, index: int) -> Link:
        return self._links[index]

    def __eq__(self, other) -> bool:
        if not isinstance(other, Chain):
            return NotImplemented
        return self._links == other._links

    def __repr__(self):
        return f"Chain(data_id={self.data_id!r}, links={len(self)})"

    def get(self, index: int) -> Optional[Link]:
        if 0 <= index < len(self._links):
            return self._links[index]
        return None

    def is_empty(self) -> bool:
        return not self._links

    @property
    def last(self) -> Optional[Link]:
        return self._links[-1] if self._links else None

    @property
    def data_id(self) -> Optional[str]:
        return self._links[0].identifier.data_id if self._links else None

    @property
    def links(self) -> List[Link]:
        return list(self._links)

    # --- writing -----------------------------------------------------------

    def append(self, actor_id: str, timestamp: Optional[int] = None) -> "Chain":
        """
        Record that `actor_id` touched the data and mine the new link.

        Index and previous hash are taken from the current last link; the
        timestamp defaults to now. Returns the chain itself.
        """
        if not actor_id:
            raise ValueError("actor_id must not be empty; it is reserved for the genesis link")
        last = self.last
        if last is None:
            raise ChainInvalid(InvalidReason.NO_LINKS, 0)

        ts = now_ts() if timestamp is None else timestamp
        if ts <= 0:
            # 0 is reserved for the genesis link
            raise ValueError(f"timestamp must be positive, got {ts}")

        identifier = Identifier(
            data_id=last.identifier.data_id,
            index=last.identifier.index + 1,
            timestamp=ts,
            actor_id=actor_id,
            previous_hash=last.hash,
        )
        self._links.append(mine(identifier, self.config))
        logger.debug("%s appended link %d to %s", actor_id, identifier.index, identifier.data_id)
        return self

    # --- verification ------------------------------------------------------

    def verify(self):
        """
        Check every link, stopping at the first problem.

        Raises ChainInvalid(reason, index). No prefix of a failing chain is
        trustworthy and nothing is repaired.
        """
        if not self._links:
            self._reject(InvalidReason.NO_LINKS, 0)

        prev = None
        for i, link in enumerate(self._links):
            idf = link.identifier
            if prev is None:
                if not idf.is_genesis_shape():
                    self._reject(InvalidReason.BAD_GENESIS, i)
            else:
                if idf.index != prev.identifier.index + 1:
                    self._reject(InvalidReason.INDEX_GAP, i)
                if idf.previous_hash != prev.hash:
                    self._reject(InvalidReason.HASH_MISMATCH, i)

            reason = check_link(link, self.config)
            if reason is not None:
                self._reject(reason, i)

            logger.debug("link %d of %s verified", i, idf.data_id)
            prev = link

    def is_valid(self) -> bool:
        try:
            self.verify()
        except ChainInvalid:
            return False
        return True

    def _reject(self, reason: InvalidReason, index: int):
        logger.warning("rejecting chain for %s: %s at link %d", self.data_id, reason.name, index)
        raise ChainInvalid(reason, index)


def new_genesis(data_id: str, config: Optional[TrackerConfig] = None) -> Chain:
    return Chain.genesis(data_id, config)


def append(chain: Chain, actor_id: str, timestamp: Optional[int] = None) -> Chain:
    return chain.append(actor_id, timestamp)


def verify(chain: Chain):
    chain.verify()
