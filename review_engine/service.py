"""
Review service - per-user card cache, review sessions and persistence.

Compute first, persist after: scheduling never waits on the store. When the
store is unavailable, updated cards stay in the local cache and in a pending
buffer until flush_pending() or sync() succeeds.
"""

from __future__ import annotations

import os
import random
import uuid
from typing import Iterable, Optional

from pydantic import ValidationError

from review_engine.clock import Clock, SystemClock
from review_engine.errors import CardNotFoundError, CardStoreError
from review_engine.schemas import VocabularyItem
from review_engine.session_builders.review_session import complete_session, start_session
from review_engine.session_builders.session_types import ReviewSession, SessionResult
from review_engine.sm2.card import Card, create_card
from review_engine.sm2.constants import (
    DEFAULT_PARAMS,
    DEFAULT_SESSION_SIZE,
    UPCOMING_LIMIT,
    QualityLike,
    SchedulerParams,
)
from review_engine.sm2.due_cards import get_due_cards, get_upcoming_cards
from review_engine.sm2.scheduler import schedule_next_review
from review_engine.sm2.store import CardStore


def get_session_size() -> int:
    """Session size from SRS_SESSION_SIZE, falling back to the default."""
    value = os.getenv("SRS_SESSION_SIZE")
    if not value:
        return DEFAULT_SESSION_SIZE
    try:
        return max(int(value), 0)
    except ValueError:
        raise ValueError(f"SRS_SESSION_SIZE must be an integer, got {value!r}") from None


class ReviewService:
    """
    Orchestrates cards, sessions and the card store for one or more users.

    Not safe for concurrent use of the same user's state; each caller should
    own its service instance (or at least its user's sessions).
    """

    def __init__(
        self,
        store: CardStore,
        clock: Optional[Clock] = None,
        params: SchedulerParams = DEFAULT_PARAMS,
        rng: Optional[random.Random] = None,
        session_size: Optional[int] = None
    ):
        self.store = store
        self.clock = clock if clock is not None else SystemClock()
        self.params = params
        self.rng = rng if rng is not None else random.Random()
        self.session_size = session_size if session_size is not None else get_session_size()

        # user_id -> {card_id: Card}
        self._cache: dict[str, dict[str, Card]] = {}
        # user_id -> {card_id: Card} awaiting a successful write
        self._pending: dict[str, dict[str, Card]] = {}

    # ---- Cache ----

    def _user_cache(self, user_id: str) -> dict[str, Card]:
        return self._cache.setdefault(user_id, {})

    def _remember(self, user_id: str, cards: Iterable[Card]) -> None:
        user_cache = self._user_cache(user_id)
        for card in cards:
            user_cache[card.id] = card

    def cached_cards(self, user_id: str) -> list[Card]:
        return list(self._cache.get(user_id, {}).values())

    def pending_cards(self, user_id: str) -> list[Card]:
        return list(self._pending.get(user_id, {}).values())

    def clear_cache(self, user_id: Optional[str] = None) -> None:
        """Drop cached cards (pending writes are kept)."""
        if user_id is None:
            self._cache.clear()
        else:
            self._cache.pop(user_id, None)

    # ---- Persistence ----

    def _persist(self, user_id: str, cards: list[Card]) -> Optional[CardStoreError]:
        """
        Write cards, queueing them as pending on failure.

        Returns:
            None on success, the store error otherwise
        """
        if not cards:
            return None
        try:
            self.store.put_many(user_id, cards)
        except CardStoreError as exc:
            pending = self._pending.setdefault(user_id, {})
            for card in cards:
                pending[card.id] = card
            print(f"[SRS STORE] Failed to save {len(cards)} card(s) for {user_id}, keeping them locally: {exc}")
            return exc

        # A successful write supersedes older pending versions
        pending = self._pending.get(user_id)
        if pending:
            for card in cards:
                pending.pop(card.id, None)
        return None

    def flush_pending(self, user_id: str) -> int:
        """
        Retry pending writes for a user.

        Returns:
            Number of cards written

        Raises:
            CardStoreError: the store is still unavailable (cards stay pending)
        """
        pending = self._pending.get(user_id)
        if not pending:
            return 0
        cards = list(pending.values())
        self.store.put_many(user_id, cards)
        self._pending.pop(user_id, None)
        print(f"[SRS STORE] Flushed {len(cards)} pending card(s) for {user_id}")
        return len(cards)

    # ---- Cards ----

    def get_user_cards(self, user_id: str) -> list[Card]:
        """
        Load a user's cards from the store, falling back to the cache.

        Pending local updates take precedence over stored versions.
        """
        try:
            stored = self.store.get_all(user_id)
        except CardStoreError as exc:
            print(f"[SRS STORE] Failed to fetch cards for {user_id}, using local cache: {exc}")
            return self.cached_cards(user_id)

        cards = {card.id: card for card in stored}
        cards.update(self._pending.get(user_id, {}))
        self._cache[user_id] = cards
        return list(cards.values())

    def get_card(self, user_id: str, card_id: str) -> Card:
        """
        Look a card up in the cache, then in the store.

        Raises:
            CardNotFoundError: neither the cache nor the store has the card
            CardStoreError: cache miss and the store is unavailable
        """
        card = self._user_cache(user_id).get(card_id)
        if card is not None:
            return card

        card = self.store.get(user_id, card_id)
        if card is None:
            raise CardNotFoundError(card_id)
        self._remember(user_id, [card])
        return card

    def get_due_cards(self, user_id: str) -> list[Card]:
        return get_due_cards(self.get_user_cards(user_id), self.clock.now())

    def get_upcoming_cards(self, user_id: str, limit: Optional[int] = UPCOMING_LIMIT) -> list[Card]:
        return get_upcoming_cards(self.get_user_cards(user_id), self.clock.now(), limit)

    def _new_card_id(self, user_id: str) -> str:
        timestamp_ms = int(self.clock.now().timestamp() * 1000)
        return f"{user_id}-{timestamp_ms}-{uuid.uuid4().hex[:9]}"

    def _build_card(
        self,
        user_id: str,
        front: str,
        back: str,
        context: Optional[str] = None,
        audio_reference: Optional[str] = None
    ) -> Card:
        return create_card(
            self._new_card_id(user_id),
            front,
            back,
            context=context,
            audio_reference=audio_reference,
            now=self.clock.now(),
            params=self.params
        )

    def create_card(
        self,
        user_id: str,
        front: str,
        back: str,
        context: Optional[str] = None,
        audio_reference: Optional[str] = None
    ) -> Card:
        """
        Create a new card, due immediately.

        The card is cached even if the store write fails.
        """
        card = self._build_card(user_id, front, back, context, audio_reference)
        self._remember(user_id, [card])
        self._persist(user_id, [card])
        return card

    def review_card(self, user_id: str, card_id: str, quality: QualityLike) -> Card:
        """
        Schedule a single cached card and persist it.

        Raises:
            CardNotFoundError: card_id is in neither the cache nor the store
            InvalidQualityError: quality is not a valid grade
        """
        card = self.get_card(user_id, card_id)
        updated = schedule_next_review(card, quality, self.clock.now(), self.params).card
        self._remember(user_id, [updated])
        self._persist(user_id, [updated])
        return updated

    # ---- Sessions ----

    def start_session(self, user_id: str, max_cards: Optional[int] = None) -> ReviewSession:
        """
        Start a session from the user's due cards.
        """
        if max_cards is None:
            max_cards = self.session_size

        session = start_session(
            self.get_user_cards(user_id),
            max_cards=max_cards,
            now=self.clock.now(),
            rng=self.rng,
            user_id=user_id
        )
        print(f"[SRS SESSION] Started session {session.session_id} for {user_id} with {len(session)} card(s)")
        return session

    def complete_session(self, user_id: str, session: ReviewSession, responses: Iterable) -> SessionResult:
        """
        Apply responses, update the cache and persist the updated cards.

        A store failure does not lose work: the result carries the updated
        cards with persisted=False and persist_error set, and the cards stay
        pending for flush_pending()/sync().
        """
        result = complete_session(session, responses, now=self.clock.now(), params=self.params)

        self._remember(user_id, result.updated_cards)
        error = self._persist(user_id, result.updated_cards)
        if error is not None:
            result.persisted = False
            result.persist_error = error

        try:
            self.store.record_session(user_id, result.stats)
        except CardStoreError as exc:
            print(f"[SRS STORE] Failed to record session stats for {session.session_id}: {exc}")

        if result.ignored_card_ids:
            print(f"[SRS SESSION] Ignored responses for unknown card(s): {', '.join(result.ignored_card_ids)}")
        print(
            f"[SRS SESSION] Completed session {session.session_id}: "
            f"{result.stats.cards_reviewed} reviewed, accuracy {result.stats.accuracy:.0%}"
        )
        return result

    # ---- Bulk import ----

    def import_from_vocabulary(self, user_id: str, items: Iterable) -> list[Card]:
        """
        Create cards for vocabulary items not already present.

        Items may be VocabularyItem objects or dicts. A (word, translation)
        pair that already exists, in the cache or earlier in the batch, is
        skipped; so are items that fail validation.

        Returns:
            Newly created cards (written in one batch)
        """
        existing = {(c.front, c.back) for c in self.get_user_cards(user_id)}

        imported: list[Card] = []
        for raw in items:
            try:
                item = raw if isinstance(raw, VocabularyItem) else VocabularyItem.model_validate(raw)
            except ValidationError as exc:
                print(f"[SRS IMPORT] Skipping invalid vocabulary item {raw!r}: {exc.error_count()} error(s)")
                continue

            key = (item.word, item.translation)
            if key in existing:
                continue
            existing.add(key)
            imported.append(self._build_card(
                user_id,
                item.word,
                item.translation,
                context=item.context,
                audio_reference=item.audio_reference
            ))

        self._remember(user_id, imported)
        self._persist(user_id, imported)
        return imported

    # ---- Sync ----

    def sync(self, user_id: str) -> list[Card]:
        """
        Push pending writes, then reload the user's cards from the store.

        Raises:
            CardStoreError: pending writes could not be flushed
        """
        self.flush_pending(user_id)
        return self.get_user_cards(user_id)
