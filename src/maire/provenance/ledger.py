"""
Provenance Ledger -- append-only, hash-referenced record of every chain step.

The ledger stores metadata only: who answered (model id), where in the chain
(direction + step index), when (UTC timestamp), and a SHA-256 reference to
the exact response bytes. Full response bodies live in a separate BodyStore
keyed by that reference, so the ledger stays small enough to embed in every
prompt while still pinning each body to a tamper-evident digest.

Rendered form (embedded verbatim into downstream prompts):

    <LEDGER>
    Original: <prompt>

    F0 | gpt-4 | ref:3f2a9c1b | 2026-01-01T12:00:00+00:00
    R1 | claude | ref:77de01aa | 2026-01-01T12:00:04+00:00
    </LEDGER>

Concurrency: appends and renders share one threading.Lock, so concurrent
chains never lose or corrupt entries and a render always sees a complete
snapshot. Entry order is acceptance order, not logical step order.
"""

import hashlib
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Iterable

logger = logging.getLogger(__name__)

HASH_PREFIX_LENGTH = 8


class Direction(str, Enum):
    """Traversal direction recorded on each ledger entry."""

    FORWARD = "F"
    REVERSE = "R"
    STAR = "S"


def content_hash(body: str) -> str:
    """SHA-256 hex digest of the UTF-8 bytes of a response body."""
    return hashlib.sha256(body.encode("utf-8")).hexdigest()


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


@dataclass(frozen=True)
class LedgerEntry:
    """One accepted step. Immutable once created."""

    direction: Direction
    step_index: int
    model_id: str
    content_hash: str
    timestamp: str

    @property
    def ref(self) -> str:
        """Short reference printed in the rendered ledger."""
        return self.content_hash[:HASH_PREFIX_LENGTH]

    def render_line(self) -> str:
        return (
            f"{self.direction.value}{self.step_index} | {self.model_id} | "
            f"ref:{self.ref} | {self.timestamp}"
        )


class Ledger:
    """
    Append-only provenance record for one request.

    Usage:
        ledger = Ledger(original_prompt="Why is the sky blue?")
        ref = ledger.append(Direction.FORWARD, 0, "gpt-4", response)
        prompt = ledger.render() + "\\n" + instruction
    """

    def __init__(self, original_prompt: str):
        self._original_prompt = original_prompt
        self._entries: list[LedgerEntry] = []
        self._lock = threading.Lock()

    @property
    def original_prompt(self) -> str:
        return self._original_prompt

    @property
    def entries(self) -> tuple[LedgerEntry, ...]:
        """Snapshot of all entries in acceptance order."""
        with self._lock:
            return tuple(self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def append(
        self,
        direction: Direction,
        step_index: int,
        model_id: str,
        body: str,
    ) -> str:
        """
        Record a step and return the full content hash of its body.

        Returns:
            64-char hex digest, usable as a BodyStore key
        """
        return self.record(direction, step_index, model_id, body).content_hash

    def record(
        self,
        direction: Direction,
        step_index: int,
        model_id: str,
        body: str,
    ) -> LedgerEntry:
        """
        Record a step and return the accepted entry.

        The hash is computed over the response body only, never the prompt.
        Callers running concurrently must not assume where their entry lands.
        """
        if step_index < 0:
            raise ValueError(f"step_index must be non-negative (got {step_index})")

        digest = content_hash(body)
        entry = LedgerEntry(
            direction=Direction(direction),
            step_index=step_index,
            model_id=model_id,
            content_hash=digest,
            timestamp=_utc_timestamp(),
        )
        with self._lock:
            self._entries.append(entry)
            position = len(self._entries)

        logger.debug(
            f"[Ledger] #{position} {entry.direction.value}{step_index} "
            f"{model_id} ref:{entry.ref}"
        )
        return entry

    def render(self, entries: Iterable[LedgerEntry] | None = None) -> str:
        """
        Render the fixed <LEDGER> transcript.

        With no argument, renders a consistent snapshot of every entry. A
        chain still running alongside others passes only its own entries,
        so its prompts never depend on how the other chains are scheduled.
        """
        if entries is None:
            entries = self.entries
        lines = ["<LEDGER>", f"Original: {self._original_prompt}", ""]
        lines.extend(entry.render_line() for entry in entries)
        lines.append("</LEDGER>")
        return "\n".join(lines) + "\n"

    def steps_for(self, model_id: str) -> list[LedgerEntry]:
        """All entries recorded for a model, in acceptance order."""
        return [e for e in self.entries if e.model_id == model_id]


class BodyStore:
    """
    Request-scoped map from content hash to full response body.

    Identical bodies hash identically and share one slot.
    """

    def __init__(self):
        self._bodies: dict[str, str] = {}
        self._lock = threading.Lock()

    def put(self, digest: str, body: str) -> None:
        with self._lock:
            self._bodies[digest] = body

    def get(self, digest: str) -> str | None:
        with self._lock:
            return self._bodies.get(digest)

    def __contains__(self, digest: object) -> bool:
        with self._lock:
            return digest in self._bodies

    def __len__(self) -> int:
        with self._lock:
            return len(self._bodies)

    def verify(self, entry: LedgerEntry) -> bool:
        """True when the stored body still hashes to the entry's reference."""
        body = self.get(entry.content_hash)
        return body is not None and content_hash(body) == entry.content_hash
