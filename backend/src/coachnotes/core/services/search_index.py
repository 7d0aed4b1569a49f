"""
Full-text search over coach notes.

Each note carries a searchable_content projection: normalized tokens of its
title, body and tags. For encrypted notes every token is replaced by its
keyed blind-index digest so no body text is stored in the clear.

Filtering by access, owner, client, session, access level and creation date runs in
SQL. Tag filtering, text matching and ranking run over the whole filtered
set before pagination, so page boundaries are stable.
"""

import logging
import math
import re
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple
from uuid import UUID

from ...config import Settings, get_settings
from ...security.encryption import EncryptionCodec
from ..models.base import as_utc
from ..models.note import CoachNote
from ..redis_client import RedisClient
from ..repositories.note_repository import NoteRepository
from ..schemas.actor import UserRole
from ..schemas.search import NoteSearchRequest
from .access_policy import AccessPolicy

logger = logging.getLogger(__name__)

STOP_WORDS = frozenset({
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of",
    "with", "by", "is", "are", "was", "were", "been", "be", "have", "has", "had",
    "do", "does", "did", "will", "would", "could", "should", "may", "might", "can",
    "this", "that", "these", "those",
})
MIN_TOKEN_LENGTH = 3
MAX_TOKENS = 200

TITLE_WEIGHT = 10
TAG_WEIGHT = 5
BODY_WEIGHT = 1

_NON_WORD = re.compile(r"[^\w\s]")
_QUERY_PART = re.compile(r'-?"[^"]*"|\S+')
_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def tokenize(text: Optional[str]) -> List[str]:
    """Lower-case words of text without stop-words, short words or repeats."""
    if not text:
        return []
    seen: Set[str] = set()
    tokens: List[str] = []
    for word in _NON_WORD.sub(" ", text.lower()).split():
        if len(word) < MIN_TOKEN_LENGTH or word in STOP_WORDS or word in seen:
            continue
        seen.add(word)
        tokens.append(word)
    return tokens


def parse_query(query: str) -> Tuple[List[str], List[str]]:
    """Split a query into (wanted, excluded) terms.

    Quoted phrases contribute their individual words; a leading '-' excludes.
    """
    wanted: List[str] = []
    excluded: List[str] = []
    for part in _QUERY_PART.findall(query):
        negative = part.startswith("-") and len(part) > 1
        if negative:
            part = part[1:]
        target = excluded if negative else wanted
        for term in tokenize(part.strip('"')):
            if term not in target:
                target.append(term)
    return wanted, excluded


@dataclass
class SearchPage:
    """One page of ranked notes plus paging info."""

    notes: List[CoachNote]
    page: int
    limit: int
    total_count: int
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_count / self.limit) if self.total_count else 0


class SearchIndex:
    """Maintains searchable content and answers queries, suggestions and tag stats."""

    def __init__(
        self,
        notes: NoteRepository,
        codec: EncryptionCodec,
        cache: Optional[RedisClient] = None,
        policy: Optional[AccessPolicy] = None,
        settings: Optional[Settings] = None,
    ):
        self.notes = notes
        self.codec = codec
        self.cache = cache
        self.policy = policy or AccessPolicy()
        self.settings = settings or get_settings()

    # Indexing
    def build_searchable_content(
        self, title: Optional[str], body: str, tags: Iterable[str], encrypted: bool
    ) -> str:
        text = " ".join([title or "", body, " ".join(tags)])
        tokens = tokenize(text)[:MAX_TOKENS]
        if encrypted:
            tokens = [self.codec.blind_index(token) for token in tokens]
        return " ".join(tokens)

    def index(self, note: CoachNote, plaintext_body: str) -> None:
        """Recompute the note's projection; persisted with the note's transaction."""
        note.searchable_content = self.build_searchable_content(
            note.title, plaintext_body, note.tags or [], note.is_encrypted
        )

    async def remove(self, note_id: UUID) -> None:
        """Drop a deleted note from cached results."""
        await self.invalidate()
        logger.debug("Note removed from search", extra={"note_id": str(note_id)})

    async def invalidate(self) -> None:
        """Make cached result lists stale; call after the change is committed."""
        if self.cache is not None:
            await self.cache.bump_search_generation()

    # Matching
    def _body_terms(self, note: CoachNote, terms: Iterable[str]) -> Set[str]:
        content = set((note.searchable_content or "").split())
        if note.is_encrypted:
            return {t for t in terms if self.codec.blind_index(t) in content}
        return {t for t in terms if t in content}

    def score(self, note: CoachNote, terms: List[str]) -> int:
        title_tokens = set(tokenize(note.title))
        tags = set(note.tags or [])
        tag_tokens = set(tokenize(" ".join(tags))) | tags
        body_hits = self._body_terms(note, terms)

        total = 0
        for term in terms:
            if term in title_tokens:
                total += TITLE_WEIGHT
            if term in tag_tokens:
                total += TAG_WEIGHT
            if term in body_hits:
                total += BODY_WEIGHT
        return total

    # Queries
    async def _candidates(
        self, actor_id: UUID, actor_role: UserRole, request: NoteSearchRequest
    ) -> List[CoachNote]:
        notes = await self.notes.find(
            access_clause=self.policy.access_filter(actor_id, actor_role),
            coach_id=request.coach_id,
            client_id=request.client_id,
            session_id=request.session_id,
            access_levels=[level.value for level in request.access_levels] if request.access_levels else None,
            created_from=request.date_start,
            created_to=request.date_end,
        )
        if request.tags:
            wanted = set(request.tags)
            notes = [note for note in notes if wanted.intersection(note.tags or [])]
        return notes

    def _rank(self, notes: List[CoachNote], request: NoteSearchRequest) -> List[CoachNote]:
        def created(note: CoachNote) -> datetime:
            return as_utc(note.created_at) or _EPOCH

        if request.query:
            wanted, excluded = parse_query(request.query)
            if not wanted:
                return []
            scored = []
            for note in notes:
                if excluded and self.score(note, excluded) > 0:
                    continue
                points = self.score(note, wanted)
                if points > 0:
                    scored.append((points, created(note), note))
            scored.sort(key=lambda item: (item[0], item[1]), reverse=True)
            return [note for _, _, note in scored]

        descending = request.sort_order == "desc"
        if request.sort_by == "title":
            key = lambda n: ((n.title or "").lower(), created(n))  # noqa: E731
        elif request.sort_by == "lastAccess":
            key = lambda n: (as_utc(n.last_accessed_at) or _EPOCH, created(n))  # noqa: E731
        else:
            # date, and relevance without a query
            key = created
        return sorted(notes, key=key, reverse=descending)

    async def _ranked(
        self, actor_id: UUID, actor_role: UserRole, request: NoteSearchRequest
    ) -> Tuple[List[CoachNote], bool]:
        """Ranked matches and whether they came from the cache.

        Cached id lists are loaded back through the access clause, so a note
        whose access was revoked is dropped even if the invalidating
        generation bump never reached Redis.
        """
        params = request.model_dump(mode="json", exclude={"page", "limit"})
        cacheable = self.cache is not None and not (
            request.query is None and request.sort_by == "lastAccess"
        )

        cache_key = None
        if cacheable:
            generation = await self.cache.get_search_generation()
            if generation is not None:
                cache_key = self.cache.search_cache_key(
                    generation, f"{actor_id}:{actor_role.value}", params
                )
                cached = await self.cache.get_cached_search(cache_key)
                if cached is not None:
                    notes = await self.notes.get_many(
                        [UUID(i) for i in cached["ids"]],
                        access_clause=self.policy.access_filter(actor_id, actor_role),
                    )
                    return notes, True

        ranked = self._rank(await self._candidates(actor_id, actor_role, request), request)
        if cache_key is not None:
            await self.cache.cache_search_results(
                cache_key, {"ids": [str(note.id) for note in ranked]}
            )
        return ranked, False

    async def query(
        self, actor_id: UUID, actor_role: UserRole, request: NoteSearchRequest
    ) -> SearchPage:
        started = time.perf_counter()

        ranked, cached = await self._ranked(actor_id, actor_role, request)
        offset = (request.page - 1) * request.limit
        notes = ranked[offset:offset + request.limit]

        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(
            "Search executed",
            extra={
                "actor_id": str(actor_id),
                "results": len(ranked),
                "cached": cached,
                "search_time_ms": round(elapsed_ms, 2),
            },
        )
        return SearchPage(
            notes=notes,
            page=request.page,
            limit=request.limit,
            total_count=len(ranked),
            metadata={
                "query": request.query,
                "filters": request.filters(),
                "search_time_ms": round(elapsed_ms, 2),
            },
        )

    async def suggest(
        self, actor_id: UUID, actor_role: UserRole, prefix: str, limit: int = 10
    ) -> List[str]:
        """Tags and titles starting with (or containing a word starting with) prefix."""
        prefix = (prefix or "").strip().lower()
        if len(prefix) < self.settings.suggestion_min_prefix:
            return []
        limit = max(1, min(limit, 50))

        notes = await self.notes.find(access_clause=self.policy.access_filter(actor_id, actor_role))

        display: Dict[str, str] = {}
        counts: Dict[str, int] = {}
        for note in notes:
            found: Set[str] = set()
            for tag in note.tags or []:
                if tag.lower().startswith(prefix):
                    found.add(tag)
            title = note.title or ""
            if any(word.startswith(prefix) for word in _NON_WORD.sub(" ", title.lower()).split()):
                found.add(title)

            for candidate in {c.lower(): c for c in found}.values():
                key = candidate.lower()
                display.setdefault(key, candidate)
                counts[key] = counts.get(key, 0) + 1

        ordered = sorted(counts, key=lambda k: (-counts[k], k))
        return [display[key] for key in ordered[:limit]]

    async def popular_tags(
        self, actor_id: UUID, actor_role: UserRole, limit: int = 20
    ) -> List[Dict[str, Any]]:
        """Tag usage over accessible notes, most used first."""
        limit = max(1, min(limit, 100))
        notes = await self.notes.find(access_clause=self.policy.access_filter(actor_id, actor_role))

        stats: Dict[str, Dict[str, Any]] = {}
        for note in notes:
            used = as_utc(note.updated_at) or _EPOCH
            for tag in note.tags or []:
                entry = stats.setdefault(tag, {"tag": tag, "count": 0, "last_used": used})
                entry["count"] += 1
                if used > entry["last_used"]:
                    entry["last_used"] = used

        ordered = sorted(
            stats.values(),
            key=lambda s: (-s["count"], -s["last_used"].timestamp(), s["tag"]),
        )
        return ordered[:limit]
