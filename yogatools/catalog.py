"""
Catalog loading and the catalog store.

catalog.json is read from a file path or fetched over HTTP, validated into
``CatalogItem`` records, and each item's ``transcriptTxt`` is fetched
concurrently. Transcript fetches fail independently: a failure is logged and
that item simply ranks without transcript boosting.

Ranking never reads the database directly. Each request builds an immutable
``CatalogSnapshot`` from the store and passes it to the ranking pipeline.
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple
from urllib.parse import urljoin

import httpx
from pydantic import ValidationError
from sqlalchemy.orm import Session

from .config import TRANSCRIPT_TIMEOUT
from .database import Transcript, Video
from .schemas import CatalogItem

logger = logging.getLogger(__name__)


class CatalogLoadError(Exception):
    """The catalog itself could not be read or parsed."""


@dataclass(frozen=True)
class CatalogSnapshot:
    items: Tuple[CatalogItem, ...] = ()
    transcripts: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    def __len__(self) -> int:
        return len(self.items)


@dataclass(frozen=True)
class LoadedCatalog:
    items: List[CatalogItem]
    transcripts: Dict[str, str]
    skipped: int = 0


def is_url(location: str) -> bool:
    return location.startswith(("http://", "https://"))


def resolve_location(base: str, ref: str) -> str:
    """Resolve a transcript reference against the catalog's own location."""
    if is_url(ref):
        return ref
    if is_url(base):
        return urljoin(base, ref)
    return str(Path(base).parent / ref.lstrip("/"))


def normalize_catalog(data: Any) -> Tuple[List[CatalogItem], int]:
    """Validate raw catalog JSON into items, skipping invalid or duplicate entries.

    Returns the items in catalog order and the number of skipped entries.
    """
    if isinstance(data, list):
        entries = data
    elif isinstance(data, dict):
        entries = data.get("videos") or []
    else:
        raise CatalogLoadError("Catalog must be a list or an object with a 'videos' list")

    items: List[CatalogItem] = []
    seen = set()
    skipped = 0
    for index, entry in enumerate(entries):
        try:
            item = CatalogItem.model_validate(entry)
        except ValidationError as e:
            logger.warning(f"Skipping catalog entry {index}: {e.error_count()} validation error(s)")
            skipped += 1
            continue
        if item.id in seen:
            logger.warning(f"Skipping catalog entry {index}: duplicate id {item.id!r}")
            skipped += 1
            continue
        seen.add(item.id)
        items.append(item)
    return items, skipped


def read_catalog_file(path: str) -> Any:
    try:
        with open(path, encoding="utf-8") as fh:
            return json.load(fh)
    except OSError as e:
        raise CatalogLoadError(f"Cannot read catalog {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise CatalogLoadError(f"Catalog {path} is not valid JSON: {e}") from e
    except ValueError as e:
        # undecodable bytes, or a path the OS cannot represent (e.g. NUL)
        raise CatalogLoadError(f"Cannot read catalog {path}: {e}") from e


async def fetch_catalog(url: str, client: httpx.AsyncClient) -> Any:
    try:
        resp = await client.get(url)
        resp.raise_for_status()
        return resp.json()
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        raise CatalogLoadError(f"Cannot fetch catalog {url}: {e}") from e
    except ValueError as e:
        raise CatalogLoadError(f"Catalog {url} is not valid JSON: {e}") from e


async def _fetch_transcript(client: httpx.AsyncClient, item: CatalogItem, base: str) -> Optional[str]:
    location = item.transcript_txt
    try:
        location = resolve_location(base, item.transcript_txt)
        if is_url(location):
            resp = await client.get(location)
            resp.raise_for_status()
            text = resp.text
        else:
            text = await asyncio.to_thread(Path(location).read_text, encoding="utf-8")
    except (httpx.HTTPError, httpx.InvalidURL, OSError, ValueError) as e:
        logger.warning(f"Transcript for {item.id} unavailable at {location!r}: {e}")
        return None
    return text.lower()


async def load_transcripts(
    items: Sequence[CatalogItem],
    base: str,
    client: httpx.AsyncClient,
) -> Dict[str, str]:
    """Fetch every item's transcript concurrently; return id -> lowercased text for the ones that arrived."""
    pending = [item for item in items if item.transcript_txt]
    if not pending:
        return {}
    results = await asyncio.gather(*(_fetch_transcript(client, item, base) for item in pending))
    return {item.id: text for item, text in zip(pending, results) if text is not None}


async def load_catalog(source: str, client: Optional[httpx.AsyncClient] = None) -> LoadedCatalog:
    """Read the catalog at ``source`` (path or URL) and fetch its transcripts."""
    if client is None:
        async with httpx.AsyncClient(timeout=TRANSCRIPT_TIMEOUT, follow_redirects=True) as own_client:
            return await load_catalog(source, own_client)

    if is_url(source):
        data = await fetch_catalog(source, client)
    else:
        data = read_catalog_file(source)

    items, skipped = normalize_catalog(data)
    transcripts = await load_transcripts(items, source, client)
    logger.info(
        f"Loaded {len(items)} catalog items ({skipped} skipped) and "
        f"{len(transcripts)} transcripts from {source}"
    )
    return LoadedCatalog(items=items, transcripts=transcripts, skipped=skipped)


def import_catalog(db: Session, loaded: LoadedCatalog) -> Tuple[int, int]:
    """Replace the stored catalog and transcripts in one transaction.

    Returns the number of videos and transcripts written.
    """
    try:
        db.query(Transcript).delete()
        db.query(Video).delete()
        for position, item in enumerate(loaded.items):
            db.add(
                Video(
                    id=item.id,
                    position=position,
                    title=item.title,
                    length_min=item.length_min,
                    level=item.level,
                    focuses=list(item.focuses),
                    intents=list(item.intents),
                    vibe=list(item.vibe),
                    equipment=list(item.equipment),
                    contraindications=list(item.contraindications),
                    url=item.url,
                    poster=item.poster,
                    stream=item.stream.model_dump() if item.stream else None,
                    notes=item.notes,
                    transcript_txt=item.transcript_txt,
                    transcript_vtt=item.transcript_vtt,
                )
            )
        db.flush()
        stored_ids = {item.id for item in loaded.items}
        transcripts = 0
        for video_id, text in loaded.transcripts.items():
            if video_id not in stored_ids:
                continue
            db.add(Transcript(video_id=video_id, text=text))
            transcripts += 1
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info(f"Imported {len(loaded.items)} videos and {transcripts} transcripts")
    return len(loaded.items), transcripts


def video_to_item(video: Video) -> CatalogItem:
    return CatalogItem(
        id=video.id,
        title=video.title,
        length_min=video.length_min,
        level=video.level,
        focuses=video.focuses,
        intents=video.intents,
        vibe=video.vibe,
        equipment=video.equipment,
        contraindications=video.contraindications,
        url=video.url,
        poster=video.poster,
        stream=video.stream,
        notes=video.notes,
        transcript_txt=video.transcript_txt,
        transcript_vtt=video.transcript_vtt,
    )


def load_snapshot(db: Session) -> CatalogSnapshot:
    """Build an immutable snapshot of the stored catalog, in catalog order."""
    videos = db.query(Video).order_by(Video.position).all()
    transcripts = {t.video_id: t.text for t in db.query(Transcript).all()}
    return CatalogSnapshot(
        items=tuple(video_to_item(video) for video in videos),
        transcripts=MappingProxyType(transcripts),
    )
