# codec.py
"""
Transport form of a Data Tracker Chain.

A chain becomes a JSON array of links (the structured text) and that text is
base64 encoded into a single ASCII token for the Data-Tracker-Chain header.
Decoding is strict and never verifies: callers must call `Chain.verify` on
whatever comes back.
"""
import base64
import binascii
import json
import logging
from typing import Any, Mapping, MutableMapping, Optional

from config import DEFAULT_CONFIG, TrackerConfig
from errors import MissingChain, ParseError
from lineage import Chain
from models import Identifier, Link

logger = logging.getLogger(__name__)

LINK_KEYS = {"identifier", "hash", "nonce"}
IDENTIFIER_KEYS = {"data_id", "index", "timestamp", "actor_id", "previous_hash"}


# ----------------------------------------------------------
# Structured text
# ----------------------------------------------------------

def to_json(chain: Chain) -> str:
    return json.dumps([link.to_dict() for link in chain], separators=(",", ":"))


def from_json(text: str, config: Optional[TrackerConfig] = None) -> Chain:
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as e:
        raise ParseError(f"chain is not valid JSON: {e}") from None
    except RecursionError:
        raise ParseError("chain is not valid JSON: nested too deeply") from None

    if not isinstance(data, list):
        raise ParseError("chain must be a JSON array of links")

    links = [_link_from_obj(obj, pos) for pos, obj in enumerate(data)]
    return Chain(links, config or DEFAULT_CONFIG)


def _check_keys(obj: Any, expected: set, what: str):
    if not isinstance(obj, dict):
        raise ParseError(f"{what} must be an object")
    missing = expected - obj.keys()
    extra = obj.keys() - expected
    if missing:
        raise ParseError(f"{what} is missing {', '.join(sorted(missing))}")
    if extra:
        raise ParseError(f"{what} has unexpected {', '.join(sorted(extra))}")


def _str(value: Any, what: str) -> str:
    if not isinstance(value, str):
        raise ParseError(f"{what} must be a string")
    return value


def _uint(value: Any, what: str) -> int:
    # bool is an int subclass; true/false are not valid counters
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ParseError(f"{what} must be an unsigned integer")
    return value


def _link_from_obj(obj: Any, pos: int) -> Link:
    where = f"link {pos}"
    _check_keys(obj, LINK_KEYS, where)
    idf = obj["identifier"]
    _check_keys(idf, IDENTIFIER_KEYS, f"{where} identifier")

    digest = _str(obj["hash"], f"{where} hash")
    if not digest.isascii() or not digest.isdigit():
        raise ParseError(f"{where} hash must be a decimal string")

    identifier = Identifier(
        data_id=_str(idf["data_id"], f"{where} data_id"),
        index=_uint(idf["index"], f"{where} index"),
        timestamp=_uint(idf["timestamp"], f"{where} timestamp"),
        actor_id=_str(idf["actor_id"], f"{where} actor_id"),
        previous_hash=_str(idf["previous_hash"], f"{where} previous_hash"),
    )
    return Link(identifier=identifier, hash=digest, nonce=_uint(obj["nonce"], f"{where} nonce"))


# ----------------------------------------------------------
# Token
# ----------------------------------------------------------

def encode(chain: Chain) -> str:
    return base64.b64encode(to_json(chain).encode("utf-8")).decode("ascii")


def decode(token: str, config: Optional[TrackerConfig] = None) -> Chain:
    if not isinstance(token, str):
        raise ParseError("token must be a string")
    try:
        raw = base64.b64decode(token.encode("ascii"), validate=True)
    except (UnicodeEncodeError, binascii.Error):
        logger.warning("cannot decode Data Tracker Chain using base64")
        raise ParseError("token is not valid base64") from None
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError:
        raise ParseError("token does not hold UTF-8 text") from None

    try:
        return from_json(text, config)
    except ParseError as e:
        logger.warning("invalid marker chain in token: %s", e)
        raise


# ----------------------------------------------------------
# Headers
# ----------------------------------------------------------

def to_headers(chain: Chain, headers: Optional[MutableMapping[str, str]] = None) -> MutableMapping[str, str]:
    headers = {} if headers is None else headers
    headers[chain.config.header_name] = encode(chain)
    return headers


def from_headers(headers: Mapping[str, str], config: Optional[TrackerConfig] = None) -> Chain:
    """Pull the chain out of request headers. Header names match case-insensitively."""
    config = config or DEFAULT_CONFIG
    wanted = config.header_name.lower()
    for name, value in headers.items():
        if name.lower() == wanted:
            return decode(value, config)
    logger.warning("missing %s header", config.header_name)
    raise MissingChain(config.header_name)


# ----------------------------------------------------------
# Enforcement
# ----------------------------------------------------------

VALIDATION_NONE = 0    # let every request through
VALIDATION_LOW = 1     # header must be present and parse
VALIDATION_HIGH = 2    # chain must also verify
VALIDATION_DEFAULT = VALIDATION_LOW


def enforce(headers: Mapping[str, str], level: int = VALIDATION_DEFAULT,
            config: Optional[TrackerConfig] = None) -> Optional[Chain]:
    """
    Apply a service's chain policy to incoming request headers.

    VALIDATION_NONE returns None without looking at the headers. Higher levels
    return the decoded chain or raise MissingChain / ParseError, and at
    VALIDATION_HIGH also ChainInvalid.
    """
    if level not in (VALIDATION_NONE, VALIDATION_LOW, VALIDATION_HIGH):
        raise ValueError(f"unknown validation level {level}")
    logger.debug("validation level: %d", level)
    if level == VALIDATION_NONE:
        return None

    chain = from_headers(headers, config)
    if level >= VALIDATION_HIGH:
        chain.verify()
    return chain
