import json
import zlib

import pytest

from conftest import make_record

from reposcrape.core.cachable import Cachable, Cache
from reposcrape.core.models import RepoDetails
from reposcrape.storage.blob_store import (
    CacheDecodeError,
    decode_cache,
    encode_cache,
    load_cache,
    save_cache,
)


def _sample_cache() -> Cache:
    detailed = make_record(
        "user/detailed",
        last_update=200,
        last_sync=300,
        url="https://github.com/user/detailed",
        details=RepoDetails(project="P", color=[1, 2], keywords=["k"], description=""),
    )
    bare = make_record("user/bare", last_update=100, last_sync=300)
    return Cache(
        repos=Cachable(data={detailed, bare}, days_to_update=14, last_update=300),
        colors=Cachable(data={"Python": "#3572A5", "C": "#555555"}, days_to_update=60, last_update=250),
    )


def test_round_trip_preserves_every_field():
    original = _sample_cache()

    restored = decode_cache(encode_cache(original))

    by_uid = {r.uid: r for r in restored.repos.data}
    detailed = by_uid["github/user/detailed"]
    assert detailed.url == "https://github.com/user/detailed"
    assert detailed.last_update == 200
    assert detailed.last_sync == 300
    assert detailed.details == RepoDetails(project="P", color=[1, 2], keywords=["k"], description="")
    assert by_uid["github/user/bare"].details is None
    assert restored.repos.days_to_update == 14
    assert restored.repos.last_update == 300
    assert restored.colors.data == {"Python": "#3572A5", "C": "#555555"}
    assert restored.colors.last_update == 250


def test_encoding_is_deterministic():
    assert encode_cache(_sample_cache()) == encode_cache(_sample_cache())


def test_blob_is_compressed_json():
    document = json.loads(zlib.decompress(encode_cache(_sample_cache())))

    assert set(document) == {"repos", "colors"}
    assert [r["uid"] for r in document["repos"]["data"]] == ["github/user/bare", "github/user/detailed"]


def test_garbage_blob_raises():
    with pytest.raises(CacheDecodeError):
        decode_cache(b"not a zlib stream")


def test_schema_mismatch_raises():
    blob = zlib.compress(json.dumps({"repos": {"data": []}}).encode("utf-8"))

    with pytest.raises(CacheDecodeError):
        decode_cache(blob)


def test_unknown_detail_field_raises():
    document = json.loads(zlib.decompress(encode_cache(_sample_cache())))
    document["repos"]["data"][1]["details"]["logo"] = "x.png"
    blob = zlib.compress(json.dumps(document).encode("utf-8"))

    with pytest.raises(CacheDecodeError):
        decode_cache(blob)


def test_load_missing_file_gives_default(tmp_path):
    cache = load_cache(tmp_path / "absent.cache", repos_ttl_days=5, colors_ttl_days=9)

    assert cache.is_empty()
    assert cache.repos.days_to_update == 5
    assert cache.colors.days_to_update == 9


def test_load_corrupt_file_gives_default(tmp_path):
    path = tmp_path / "broken.cache"
    path.write_bytes(b"\x00\x01garbage")

    cache = load_cache(path)

    assert cache.is_empty()
    assert cache.repos.last_update == 0


def test_load_non_finite_timestamp_gives_default(tmp_path):
    document = json.loads(zlib.decompress(encode_cache(_sample_cache())))
    document["repos"]["data"][0]["last_sync"] = float("inf")
    path = tmp_path / "overflow.cache"
    # json.dumps writes the non-standard ``Infinity`` literal, which json.loads accepts.
    path.write_bytes(zlib.compress(json.dumps(document).encode("utf-8")))

    with pytest.raises(CacheDecodeError):
        decode_cache(path.read_bytes())
    assert load_cache(path).is_empty()


def test_load_deeply_nested_document_gives_default(tmp_path):
    path = tmp_path / "nested.cache"
    path.write_bytes(zlib.compress(b"[" * 200_000 + b"]" * 200_000))

    cache = load_cache(path)

    assert cache.is_empty()
    assert cache.repos.last_update == 0


def test_save_then_load(tmp_path):
    path = tmp_path / "nested" / "dir" / "reposcrape.cache"

    save_cache(_sample_cache(), path)
    loaded = load_cache(path)

    assert path.exists()
    assert not path.with_name(path.name + ".tmp").exists()
    assert {r.uid for r in loaded.repos.data} == {"github/user/detailed", "github/user/bare"}
