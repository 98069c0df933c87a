"""
Provenance -- the hash-referenced ledger and its body store.

Usage:
    from .provenance import Ledger, BodyStore, Direction

    ledger = Ledger(original_prompt="...")
    ref = ledger.append(Direction.FORWARD, 0, "gpt-4", response)
    bodies.put(ref, response)
"""

from .ledger import BodyStore, Direction, Ledger, LedgerEntry, content_hash
