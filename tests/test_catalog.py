import json

import httpx
import pytest

from yogatools.catalog import (
    CatalogLoadError,
    LoadedCatalog,
    import_catalog,
    load_catalog,
    load_snapshot,
    normalize_catalog,
    resolve_location,
)
from yogatools.schemas import CatalogItem

RAW_CATALOG = [
    {
        "id": "a",
        "title": "Post-Flight Reset",
        "durationSec": 185,
        "level": "beginner",
        "focuses": ["low back"],
        "transcriptTxt": "/t/a.txt",
    },
    {
        "id": "b",
        "title": "Desk Unwind",
        "lengthMin": 5,
        "focuses": ["neck"],
        "transcriptTxt": "/t/b.txt",
    },
    {
        "id": "c",
        "title": "Knee Flow",
        "lengthMin": 12,
        "contraindications": ["acute knee pain"],
        "transcriptTxt": "https://other.test/c.txt",
    },
    {"id": "d", "title": "No Transcript", "lengthMin": 8},
]


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------


def test_normalize_accepts_list_or_videos_object():
    items, skipped = normalize_catalog(RAW_CATALOG)
    wrapped, _ = normalize_catalog({"videos": RAW_CATALOG})
    assert [item.id for item in items] == ["a", "b", "c", "d"]
    assert items == wrapped
    assert skipped == 0


def test_normalize_empty_object():
    assert normalize_catalog({}) == ([], 0)


def test_normalize_rejects_other_shapes():
    with pytest.raises(CatalogLoadError):
        normalize_catalog("not a catalog")


@pytest.mark.parametrize(
    "entry, length",
    [
        ({"id": "x", "durationSec": 185}, 3),
        ({"id": "x", "durationSec": 90}, 2),
        ({"id": "x", "durationSec": 29}, 0),
        ({"id": "x", "lengthMin": 7, "durationSec": 600}, 7),
        ({"id": "x", "lengthMin": None, "durationSec": 600}, 10),
        ({"id": "x"}, 0),
    ],
)
def test_length_derived_from_duration(entry, length):
    assert CatalogItem.model_validate(entry).length_min == length


def test_item_tolerates_missing_and_null_fields():
    item = CatalogItem.model_validate(
        {"id": 7, "title": None, "level": None, "focuses": None, "intents": "mobility"}
    )
    assert item.id == "7"
    assert item.title == ""
    assert item.level == ""
    assert item.focuses == ()
    assert item.intents == ("mobility",)
    assert item.contraindications == ()


def test_normalize_skips_invalid_and_duplicate_entries():
    items, skipped = normalize_catalog(
        [
            {"id": "a"},
            {"title": "no id"},
            {"id": "a", "title": "dup"},
            "junk",
            {"id": "b", "lengthMin": -1},
            {"id": "d", "durationSec": [60]},
            {"id": "e", "durationSec": 1e400},
            {"id": "f", "lengthMin": 1e400},
            {"id": "c"},
        ]
    )
    assert [item.id for item in items] == ["a", "c"]
    assert skipped == 7


def test_item_tags_are_immutable():
    item = CatalogItem.model_validate({"id": "x", "focuses": ["hips"]})
    assert item.focuses == ("hips",)
    with pytest.raises(AttributeError):
        item.focuses.append("knees")


def test_resolve_location():
    assert resolve_location("/data/catalog.json", "/transcripts/a.txt") == "/data/transcripts/a.txt"
    assert resolve_location("/data/catalog.json", "transcripts/a.txt") == "/data/transcripts/a.txt"
    assert resolve_location("https://cdn.test/app/catalog.json", "/t/a.txt") == "https://cdn.test/t/a.txt"
    assert resolve_location("https://cdn.test/app/catalog.json", "t/a.txt") == "https://cdn.test/app/t/a.txt"
    assert resolve_location("/data/catalog.json", "https://other.test/c.txt") == "https://other.test/c.txt"


# ---------------------------------------------------------------------------
# Loading over HTTP
# ---------------------------------------------------------------------------


def catalog_handler(request: httpx.Request) -> httpx.Response:
    url = str(request.url)
    if url == "https://cdn.test/catalog.json":
        return httpx.Response(200, json={"videos": RAW_CATALOG})
    if url == "https://cdn.test/t/a.txt":
        return httpx.Response(200, text="Inhale, LUNGE and Twist")
    if url == "https://cdn.test/t/b.txt":
        return httpx.Response(404, text="missing")
    if url == "https://other.test/c.txt":
        raise httpx.ConnectError("connection refused", request=request)
    return httpx.Response(500)


@pytest.mark.anyio
async def test_load_catalog_over_http_isolates_transcript_failures():
    transport = httpx.MockTransport(catalog_handler)
    async with httpx.AsyncClient(transport=transport) as client:
        loaded = await load_catalog("https://cdn.test/catalog.json", client)
    assert [item.id for item in loaded.items] == ["a", "b", "c", "d"]
    assert loaded.transcripts == {"a": "inhale, lunge and twist"}
    assert loaded.skipped == 0


@pytest.mark.anyio
async def test_load_catalog_http_error_raises():
    transport = httpx.MockTransport(lambda request: httpx.Response(503))
    async with httpx.AsyncClient(transport=transport) as client:
        with pytest.raises(CatalogLoadError):
            await load_catalog("https://cdn.test/catalog.json", client)


@pytest.mark.anyio
async def test_load_catalog_invalid_json_over_http_raises():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html>"))
    async with httpx.AsyncClient(transport=transport) as client:
        with pytest.raises(CatalogLoadError):
            await load_catalog("https://cdn.test/catalog.json", client)


# ---------------------------------------------------------------------------
# Loading from files
# ---------------------------------------------------------------------------


@pytest.mark.anyio
async def test_load_catalog_from_file(tmp_path):
    (tmp_path / "t").mkdir()
    (tmp_path / "t" / "a.txt").write_text("Seated TWIST for the low back", encoding="utf-8")
    catalog_path = tmp_path / "catalog.json"
    catalog_path.write_text(json.dumps(RAW_CATALOG[:2]), encoding="utf-8")

    loaded = await load_catalog(str(catalog_path))

    assert [item.id for item in loaded.items] == ["a", "b"]
    assert loaded.items[0].length_min == 3
    # b.txt does not exist: logged and skipped
    assert loaded.transcripts == {"a": "seated twist for the low back"}


@pytest.mark.anyio
async def test_load_catalog_skips_malformed_transcript_locations(tmp_path):
    (tmp_path / "t").mkdir()
    (tmp_path / "t" / "a.txt").write_text("Slow Lunge", encoding="utf-8")
    catalog_path = tmp_path / "catalog.json"
    catalog_path.write_text(
        json.dumps(
            [
                {"id": "a", "transcriptTxt": "/t/a.txt"},
                {"id": "b", "transcriptTxt": "bad\x00.txt"},
                {"id": "c", "transcriptTxt": "http://[::1/x.txt"},
            ]
        ),
        encoding="utf-8",
    )

    loaded = await load_catalog(str(catalog_path))

    assert [item.id for item in loaded.items] == ["a", "b", "c"]
    assert loaded.transcripts == {"a": "slow lunge"}


@pytest.mark.anyio
async def test_load_catalog_missing_file_raises(tmp_path):
    with pytest.raises(CatalogLoadError):
        await load_catalog(str(tmp_path / "nope.json"))


@pytest.mark.anyio
async def test_load_catalog_bad_json_file_raises(tmp_path):
    catalog_path = tmp_path / "catalog.json"
    catalog_path.write_text("{not json", encoding="utf-8")
    with pytest.raises(CatalogLoadError):
        await load_catalog(str(catalog_path))


@pytest.mark.anyio
async def test_load_catalog_non_utf8_file_raises(tmp_path):
    catalog_path = tmp_path / "catalog.json"
    catalog_path.write_bytes(b'[{"id": "\xff"}]')
    with pytest.raises(CatalogLoadError):
        await load_catalog(str(catalog_path))


@pytest.mark.anyio
@pytest.mark.parametrize("source", ["bad\x00catalog.json", "http://[::1/catalog.json"])
async def test_load_catalog_unusable_source_raises(source):
    with pytest.raises(CatalogLoadError):
        await load_catalog(source)


# ---------------------------------------------------------------------------
# Store and snapshots
# ---------------------------------------------------------------------------


def loaded_catalog() -> LoadedCatalog:
    items, _ = normalize_catalog(RAW_CATALOG)
    return LoadedCatalog(items=items, transcripts={"a": "lunge twist", "zzz": "orphan"})


def test_import_and_snapshot_round_trip(db):
    videos, transcripts = import_catalog(db, loaded_catalog())
    assert (videos, transcripts) == (4, 1)

    snapshot = load_snapshot(db)
    assert len(snapshot) == 4
    assert [item.id for item in snapshot.items] == ["a", "b", "c", "d"]
    assert snapshot.items[0].length_min == 3
    assert snapshot.items[0].focuses == ("low back",)
    assert snapshot.items[2].contraindications == ("acute knee pain",)
    assert dict(snapshot.transcripts) == {"a": "lunge twist"}


def test_snapshot_transcripts_are_read_only(db):
    import_catalog(db, loaded_catalog())
    snapshot = load_snapshot(db)
    with pytest.raises(TypeError):
        snapshot.transcripts["b"] = "sneaky"


def test_reimport_replaces_catalog(db):
    import_catalog(db, loaded_catalog())
    items, _ = normalize_catalog([{"id": "z", "title": "Only One", "lengthMin": 3}])
    import_catalog(db, LoadedCatalog(items=items, transcripts={}))

    snapshot = load_snapshot(db)
    assert [item.id for item in snapshot.items] == ["z"]
    assert dict(snapshot.transcripts) == {}


def test_empty_store_gives_empty_snapshot(db):
    snapshot = load_snapshot(db)
    assert snapshot.items == ()
    assert dict(snapshot.transcripts) == {}
