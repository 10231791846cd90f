# actors.py
from dataclasses import dataclass
from typing import Optional
from nacl.signing import SigningKey, VerifyKey
from crypto_utils import generate_keypair, sign_message, verify_signature
from lineage import Chain


@dataclass(frozen=True)
class HandoffReceipt:
    data_id: str
    index: int
    hash: str
    actor_id: str
    signature: bytes

    def message(self) -> bytes:
        return receipt_message(self.data_id, self.index, self.hash, self.actor_id)


def receipt_message(data_id: str, index: int, link_hash: str, actor_id: str) -> bytes:
    return f"{data_id}|{index}|{link_hash}|{actor_id}".encode()


class Actor:
    """
    A system or process that touches tracked data.

    Recording a step appends a link to the chain and signs the new tip, so the
    actor can later be held to having handed that exact chain on. The receipt
    travels beside the chain token, never inside it.
    """

    def __init__(self, actor_id: str, signing_key: Optional[SigningKey] = None):
        if not actor_id:
            raise ValueError("actor_id must not be empty")
        self.actor_id = actor_id
        self.signing_key: SigningKey
        self.verify_key: VerifyKey
        if signing_key is None:
            self.signing_key, self.verify_key = generate_keypair()
        else:
            self.signing_key, self.verify_key = signing_key, signing_key.verify_key

    def record(self, chain: Chain, timestamp: Optional[int] = None) -> HandoffReceipt:
        chain.append(self.actor_id, timestamp)
        return self.sign_tip(chain)

    def sign_tip(self, chain: Chain) -> HandoffReceipt:
        tip = chain.last
        if tip is None:
            raise ValueError("cannot sign an empty chain")
        idf = tip.identifier
        msg = receipt_message(idf.data_id, idf.index, tip.hash, self.actor_id)
        return HandoffReceipt(
            data_id=idf.data_id,
            index=idf.index,
            hash=tip.hash,
            actor_id=self.actor_id,
            signature=sign_message(self.signing_key, msg),
        )


def verify_receipt(receipt: HandoffReceipt, vk: VerifyKey, chain: Optional[Chain] = None,
                   appended: bool = False) -> bool:
    """
    Check the receipt signature and, if a chain is given, that the receipt
    names a link of that chain. The chain itself is not verified here.

    A receipt on its own only says the signer handed that tip on; any actor
    can sign the tip of a chain it received. Pass `appended=True` to also
    require that the named link was recorded by the receipt's actor.
    """
    if not verify_signature(vk, receipt.message(), receipt.signature):
        return False
    if chain is None:
        return True

    link = chain.get(receipt.index)
    if link is None:
        return False
    if link.hash != receipt.hash or link.identifier.data_id != receipt.data_id:
        return False
    return not appended or link.identifier.actor_id == receipt.actor_id
