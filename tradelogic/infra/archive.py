"""
Case archive ("vault") of previously produced analysis results.

The archive is an ordered list, most recent first, mirrored to the
``vault`` blob of an optional :class:`AbstractStateRepository`.

Identity
--------
The identity key of an entry is its ``id`` or, for legacy entries that
predate ids, its ticker (:func:`identity_key`).  Keys are unique after
every ``add`` / ``import_snapshot``: colliding or missing ids are
replaced with fresh ones rather than rejected.  Legacy entries read
from storage are given an id and timestamp on first read.

Mutations are serialised with a lock so the uniqueness invariant holds
even when the archive is shared between threads.
"""

from __future__ import annotations

import json
import logging
import threading
from typing import Any, Callable, Iterable, Iterator, Optional

from pydantic import ValidationError

from tradelogic.agents.gateway import new_id, now_ms
from tradelogic.data.models import AnalysisResult
from tradelogic.errors import ArchiveImportError, SelectionError
from tradelogic.infra.repository import VAULT_BLOB, AbstractStateRepository

logger = logging.getLogger(__name__)


def identity_key(entry: AnalysisResult) -> str:
    return entry.id or entry.ticker


def parse_snapshot(text: str) -> list[AnalysisResult]:
    """Parse a serialised archive; all-or-nothing.

    Raises :class:`ArchiveImportError` unless *text* is a JSON array whose
    every element is a valid result record.
    """
    try:
        data: Any = json.loads(text)
    except (TypeError, json.JSONDecodeError) as exc:
        raise ArchiveImportError(f"Snapshot is not valid JSON: {exc}") from exc

    if not isinstance(data, list):
        raise ArchiveImportError(
            f"Snapshot must be a JSON array, got {type(data).__name__}"
        )

    entries: list[AnalysisResult] = []
    for index, item in enumerate(data):
        if not isinstance(item, dict):
            raise ArchiveImportError(f"Entry {index} is not an object")
        try:
            entries.append(AnalysisResult.model_validate(item))
        except ValidationError as exc:
            raise ArchiveImportError(f"Entry {index} is not a valid result: {exc}") from exc
    return entries


class CaseArchive:
    """Ordered, identity-keyed collection of :class:`AnalysisResult`."""

    def __init__(
        self,
        entries: Optional[Iterable[AnalysisResult]] = None,
        store: Optional[AbstractStateRepository] = None,
        *,
        id_factory: Callable[[], str] = new_id,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._entries: list[AnalysisResult] = list(entries or [])
        self._store = store
        self._id_factory = id_factory
        self._clock = clock
        self._lock = threading.Lock()

    @classmethod
    def load(
        cls,
        store: AbstractStateRepository,
        *,
        id_factory: Callable[[], str] = new_id,
        clock: Callable[[], int] = now_ms,
    ) -> "CaseArchive":
        """Read the vault blob, migrating legacy entries on first read."""
        archive = cls(store=store, id_factory=id_factory, clock=clock)
        raw = store.get_blob(VAULT_BLOB)
        if raw is None:
            return archive

        changed, entries = archive._normalise(parse_snapshot(raw), taken=set())
        archive._entries = entries
        if changed:
            logger.warning("Assigned identity to %d legacy vault entries", changed)
            archive._persist()
        return archive

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def entries(self) -> list[AnalysisResult]:
        return list(self._entries)

    def keys(self) -> list[str]:
        return [identity_key(e) for e in self._entries]

    def get(self, key: str) -> Optional[AnalysisResult]:
        for entry in self._entries:
            if identity_key(entry) == key:
                return entry
        return None

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[AnalysisResult]:
        return iter(list(self._entries))

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def add(self, result: AnalysisResult) -> AnalysisResult:
        """Archive a copy of *result* with a fresh id and timestamp, at the front."""
        with self._lock:
            taken = set(self.keys())
            stamped = result.model_copy(
                update={"id": self._fresh_id(taken), "timestamp": self._clock()}
            )
            self._entries.insert(0, stamped)
            self._persist()
        logger.info("Archived %s as %s", stamped.ticker, stamped.id)
        return stamped

    def remove(self, key: str) -> bool:
        """Remove the entry keyed *key*; returns whether anything was removed."""
        with self._lock:
            kept = [e for e in self._entries if identity_key(e) != key]
            removed = len(kept) != len(self._entries)
            if removed:
                self._entries = kept
                self._persist()
        return removed

    def import_snapshot(self, text: str) -> list[AnalysisResult]:
        """Merge a serialised archive after the existing entries.

        Rejected wholesale with :class:`ArchiveImportError` if any part of
        the snapshot is malformed.  Returns the merged sequence.
        """
        incoming = parse_snapshot(text)
        with self._lock:
            _, normalised = self._normalise(incoming, set(self.keys()))
            self._entries = self._entries + normalised
            self._persist()
            merged = list(self._entries)
        logger.info("Imported %d vault entries", len(incoming))
        return merged

    # ------------------------------------------------------------------
    # Export / selection
    # ------------------------------------------------------------------

    def export(self) -> str:
        """Pretty-printed JSON array of every entry, order preserved."""
        return json.dumps(
            [e.model_dump(mode="json", by_alias=True) for e in self._entries],
            indent=2,
            ensure_ascii=False,
        )

    def select_subset(self, keys: Iterable[str]) -> list[AnalysisResult]:
        """Entries whose identity key is in *keys*, in archive order.

        Raises :class:`SelectionError` when the entries span more than one
        ticker.
        """
        wanted = set(keys)
        chosen = [e for e in self._entries if identity_key(e) in wanted]
        tickers = {e.ticker for e in chosen}
        if len(tickers) > 1:
            raise SelectionError(
                f"Selection mixes tickers: {', '.join(sorted(tickers))}"
            )
        return chosen

    def prune_selection(self, keys: Iterable[str]) -> set[str]:
        """Drop selection keys that no longer refer to an archived entry."""
        valid = set(self.keys())
        return {k for k in keys if k in valid}

    def active_ticker(self, keys: Iterable[str]) -> Optional[str]:
        wanted = set(keys)
        for entry in self._entries:
            if identity_key(entry) in wanted:
                return entry.ticker
        return None

    def is_selectable(self, entry: AnalysisResult, keys: Iterable[str]) -> bool:
        """False when *entry* would mix tickers into the current selection."""
        wanted = set(keys)
        if identity_key(entry) in wanted:
            return True
        active = self.active_ticker(wanted)
        return active is None or active == entry.ticker

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _fresh_id(self, taken: set[str]) -> str:
        candidate = self._id_factory()
        while candidate in taken:
            candidate = self._id_factory()
        taken.add(candidate)
        return candidate

    def _normalise(
        self, entries: list[AnalysisResult], taken: set[str]
    ) -> tuple[int, list[AnalysisResult]]:
        """Give every entry a unique id and a timestamp.

        Returns ``(changed_count, entries)``.
        """
        changed = 0
        out: list[AnalysisResult] = []
        for entry in entries:
            update: dict[str, Any] = {}
            if not entry.id or entry.id in taken:
                update["id"] = self._fresh_id(taken)
            else:
                taken.add(entry.id)
            if entry.timestamp is None:
                update["timestamp"] = self._clock()
            if update:
                changed += 1
                entry = entry.model_copy(update=update)
            out.append(entry)
        return changed, out

    def _persist(self) -> None:
        if self._store is not None:
            self._store.put_blob(VAULT_BLOB, self.export())
