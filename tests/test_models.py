from dataclasses import replace, FrozenInstanceError

import pytest

from config import TrackerConfig
from errors import InvalidReason
from mining import mine
from models import Identifier, Link, check_link, verify_self

DATA_ID = "order~clothing~iStore~15150"


def test_genesis_identifier_shape():
    idf = Identifier.genesis(DATA_ID)
    assert idf.index == 0
    assert idf.timestamp == 0
    assert idf.actor_id == ""
    assert idf.previous_hash == "0"
    assert idf.is_genesis_shape()


@pytest.mark.parametrize("change", [
    {"index": 1},
    {"timestamp": 1578071239},
    {"actor_id": "someone"},
    {"previous_hash": "123"},
])
def test_genesis_shape_rejects_any_deviation(change):
    assert not replace(Identifier.genesis(DATA_ID), **change).is_genesis_shape()


def test_links_are_immutable(config):
    link = mine(Identifier.genesis(DATA_ID), config)
    with pytest.raises(FrozenInstanceError):
        link.nonce = 0


def test_to_dict_uses_wire_field_names(config):
    link = mine(Identifier.genesis(DATA_ID), config)
    assert link.to_dict() == {
        "identifier": {
            "data_id": DATA_ID,
            "index": 0,
            "timestamp": 0,
            "actor_id": "",
            "previous_hash": "0",
        },
        "hash": link.hash,
        "nonce": link.nonce,
    }


def test_verify_self_accepts_mined_link(config):
    link = mine(Identifier(DATA_ID, 1, 1578071239, "notifier~billing~receipt~email", "123456"), config)
    assert verify_self(link, config)
    assert check_link(link, config) is None


def test_wrong_nonce_is_hash_mismatch(config):
    link = mine(Identifier.genesis(DATA_ID), config)
    assert check_link(replace(link, nonce=link.nonce + 1), config) is InvalidReason.HASH_MISMATCH


def test_edited_identifier_is_hash_mismatch(config):
    link = mine(Identifier.genesis(DATA_ID), config)
    forged = replace(link, identifier=replace(link.identifier, data_id="order~shoes~iStore~1"))
    assert not verify_self(forged, config)
    assert check_link(forged, config) is InvalidReason.HASH_MISMATCH


def test_matching_hash_below_difficulty_is_proof_of_work_invalid():
    # nonce 0 always wins at difficulty 0; 64 zero bits essentially never happen by chance
    weak = mine(Identifier.genesis(DATA_ID), TrackerConfig(difficulty=0))
    assert weak.nonce == 0
    strict = TrackerConfig(difficulty=64)
    assert check_link(weak, strict) is InvalidReason.PROOF_OF_WORK_INVALID
    assert not verify_self(weak, strict)


def test_repr_marks_genesis(config):
    link = mine(Identifier.genesis(DATA_ID), config)
    assert "<genesis>" in repr(link)
    assert isinstance(link, Link)
