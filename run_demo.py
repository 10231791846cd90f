# run_demo.py
from dataclasses import replace
from typing import Optional

from actors import Actor, verify_receipt
from codec import from_headers, from_json, to_headers, to_json
from config import TrackerConfig
from errors import ChainInvalid, DTCError
from lineage import Chain


def receive(headers, config: TrackerConfig, phase: str) -> Optional[Chain]:
    """Consumer side: decode the header, then verify before trusting anything."""
    try:
        chain = from_headers(headers, config)
        chain.verify()
    except ChainInvalid as e:
        print(f"[{phase:9s}] REJECTED | {e.reason.name} at link {e.index}")
        return None
    except DTCError as e:
        print(f"[{phase:9s}] REJECTED | {e}")
        return None

    for link in chain:
        print(f"[{phase:9s}] idx={link.identifier.index:03d} | {link.identifier.actor_id or '<genesis>':32s} | GOOD")
    return chain


def main(config: Optional[TrackerConfig] = None):
    config = config or TrackerConfig.from_env()

    print("=== PHASE 1: HONEST HAND-OFF ===")
    portal = Actor("portal~checkout~web")
    billing = Actor("notifier~billing~receipt~email")

    chain = Chain.genesis("order~clothing~iStore~15150", config)
    portal.record(chain)
    receipt = billing.record(chain)
    headers = to_headers(chain)

    received = receive(headers, config, "HONEST")
    ok = received is not None and verify_receipt(receipt, billing.verify_key, received)
    print(f"billing receipt for link {receipt.index}: {'GOOD' if ok else 'BAD'}")

    print("\n=== PHASE 2: TAMPERED ACTOR ===")
    tampered = from_json(to_json(chain), config)
    victim = tampered[1]
    forged = replace(victim, identifier=replace(victim.identifier, actor_id="tampered data"))
    tampered = Chain([tampered[0], forged, *tampered.links[2:]], config)
    receive(to_headers(tampered), config, "TAMPER")

    print("\n=== PHASE 3: MISSING HEADER ===")
    receive({}, config, "MISSING")

    print("\n=== PHASE 4: WEAKER MINER ===")
    strict = replace(config, difficulty=min(config.difficulty + 8, 256))
    receive(headers, strict, "STRICT")

    print("\n=== DATA TRACKER CHAIN DEMO COMPLETE ===")
    return received


if __name__ == "__main__":
    main()
