# errors.py
from enum import Enum


class InvalidReason(Enum):
    NO_LINKS = "chain has no links"
    BAD_GENESIS = "malformed genesis link"
    INDEX_GAP = "link index does not follow its predecessor"
    HASH_MISMATCH = "link hash does not match its contents"
    PROOF_OF_WORK_INVALID = "link hash does not meet the difficulty target"


class DTCError(Exception):
    """Base class for every Data Tracker Chain error."""


class MiningTimeout(DTCError):
    def __init__(self, attempts: int, difficulty: int):
        self.attempts = attempts
        self.difficulty = difficulty
        super().__init__(
            f"no nonce found after {attempts} attempts at difficulty {difficulty}"
        )


class ParseError(DTCError):
    """Malformed token or structured text; raised before any verification."""


class MissingChain(ParseError):
    def __init__(self, header_name: str):
        self.header_name = header_name
        super().__init__(f"missing {header_name} header")


class ChainInvalid(DTCError):
    """
    The chain failed verification at `index`.
    The whole chain is untrustworthy, including the links before `index`.
    """

    def __init__(self, reason: InvalidReason, index: int):
        self.reason = reason
        self.index = index
        super().__init__(f"{reason.value} (link {index})")
