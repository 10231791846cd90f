# mining.py
import logging
from concurrent.futures import ProcessPoolExecutor
from typing import Optional, Tuple

from config import DEFAULT_CONFIG, TrackerConfig
from crypto_utils import hash_candidate, target_for
from errors import MiningTimeout
from models import Identifier, Link

logger = logging.getLogger(__name__)


def search_range(prefix: bytes, difficulty: int, start: int, stop: int) -> Optional[Tuple[int, int]]:
    """
    Scan nonces in [start, stop) and return the first (nonce, digest) under target.
    Module-level so process pool workers can pickle it.
    """
    target = target_for(difficulty)
    for nonce in range(start, stop):
        value = hash_candidate(prefix, nonce)
        if value < target:
            return nonce, value
    return None


def _mine_sequential(prefix: bytes, config: TrackerConfig) -> Optional[Tuple[int, int]]:
    return search_range(prefix, config.difficulty, 0, config.max_attempts)


def _mine_parallel(prefix: bytes, config: TrackerConfig) -> Optional[Tuple[int, int]]:
    """
    Shard the nonce space into contiguous ranges, one round of `workers` ranges at a time.

    Results are collected in range order and every earlier range came back empty,
    so the first hit is the same nonce a sequential search would find.
    """
    limit = config.max_attempts
    span = config.chunk_size

    with ProcessPoolExecutor(max_workers=config.workers) as pool:
        start = 0
        while start < limit:
            futures = []
            for _ in range(config.workers):
                if start >= limit:
                    break
                stop = min(start + span, limit)
                futures.append(pool.submit(search_range, prefix, config.difficulty, start, stop))
                start = stop

            for i, fut in enumerate(futures):
                found = fut.result()
                if found is not None:
                    # later ranges of this round can only hold bigger nonces
                    for pending in futures[i + 1:]:
                        pending.cancel()
                    return found
            logger.debug("no nonce below %d yet, continuing", start)
    return None


def mine(identifier: Identifier, config: Optional[TrackerConfig] = None) -> Link:
    """
    Find the smallest nonce whose digest meets the configured difficulty.

    Raises MiningTimeout once `max_attempts` candidates have been tried.
    """
    config = config or DEFAULT_CONFIG
    prefix = identifier.canonical()

    if config.workers > 1:
        found = _mine_parallel(prefix, config)
    else:
        found = _mine_sequential(prefix, config)

    if found is None:
        logger.warning("mining gave up on link %d of %s after %d attempts (difficulty %d)",
                       identifier.index, identifier.data_id, config.max_attempts, config.difficulty)
        raise MiningTimeout(config.max_attempts, config.difficulty)

    nonce, value = found
    logger.debug("mined link %d of %s: nonce=%d", identifier.index, identifier.data_id, nonce)
    return Link(identifier=identifier, hash=str(value), nonce=nonce)
