"""
VibeSync Song Catalog Loader
데모 모드용 곡 카탈로그 로더 + 인메모리 벡터 인덱스
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Literal

import numpy as np

from .embedding import HashEmbeddingClient

logger = logging.getLogger(__name__)

IndexField = Literal["lyrics", "general"]

_DEMO_MOODS = [
    "hopeful", "overwhelmed", "calm", "restless", "lonely", "euphoric",
    "melancholic", "angry", "nostalgic", "dreamy", "confident", "heartbroken",
]
_DEMO_IMAGES = ["rain", "sunrise", "highway", "ocean", "city", "fire", "stars", "echo"]
_DEMO_GENRES = ["rock", "pop", "hip-hop", "indie", "electronic", "jazz"]


@dataclass
class SongEntry:
    """카탈로그 곡"""
    song_id: Any
    title: str
    artist: str
    genre: str = ""
    lyrics: str = ""


@dataclass
class SongCatalog:
    songs: Dict[Any, SongEntry]
    song_ids: List[Any]


@dataclass
class CatalogIndex:
    """카탈로그 임베딩 행렬 (행 순서 = song_ids 순서)"""
    song_ids: List[Any]
    embeddings: np.ndarray
    field: IndexField


def _extract_field(item: Dict, candidates: List[str], default: str = "") -> str:
    """여러 후보 키에서 필드 추출 (리스트는 ', '로 결합)"""
    for key in candidates:
        if key in item:
            val = item[key]
            if isinstance(val, list):
                return ", ".join(str(v) for v in val if v)
            return str(val) if val else default
    return default


def _demo_catalog(size: int = 240) -> SongCatalog:
    songs: Dict[Any, SongEntry] = {}
    song_ids: List[Any] = []
    for i in range(1, size + 1):
        mood = _DEMO_MOODS[i % len(_DEMO_MOODS)]
        image = _DEMO_IMAGES[(i // len(_DEMO_MOODS)) % len(_DEMO_IMAGES)]
        second = _DEMO_MOODS[(i * 7) % len(_DEMO_MOODS)]
        entry = SongEntry(
            song_id=i,
            title=f"{mood.title()} {image.title()} {i}",
            artist=f"Demo Artist {i % 40}",
            genre=_DEMO_GENRES[i % len(_DEMO_GENRES)],
            lyrics=f"feeling {mood} and {second} under the {image}",
        )
        songs[i] = entry
        song_ids.append(i)
    return SongCatalog(songs=songs, song_ids=song_ids)


def load_song_catalog(path: str, demo_mode: bool) -> SongCatalog:
    """
    곡 카탈로그 JSON 로드

    Args:
        path: JSON 파일 경로 (리스트 또는 {id: song} 딕셔너리)
        demo_mode: 데모 모드 여부 (파일 없으면 더미 생성)

    Returns:
        SongCatalog
    """
    songs: Dict[Any, SongEntry] = {}
    song_ids: List[Any] = []

    file_path = Path(path) if path else None

    if file_path and file_path.exists():
        try:
            logger.info(f"Loading song catalog: {file_path}")
            with open(file_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"Song catalog load failed: {e}")
            if not demo_mode:
                raise RuntimeError(f"Song catalog load failed: {e}") from e
            data = []

        items: List[Any] = []
        if isinstance(data, list):
            items = data
        elif isinstance(data, dict):
            if all(isinstance(v, dict) for v in data.values()):
                items = list(data.values())
            else:
                items = [data]

        for item in items:
            if not isinstance(item, dict):
                continue

            sid = item.get("id", item.get("song_id"))
            if sid is None or sid == "":
                continue

            if sid in songs:
                logger.debug(f"Skipping duplicate song id: {sid}")
                continue

            entry = SongEntry(
                song_id=sid,
                title=_extract_field(item, ["title", "song_name", "name"], default="Unknown"),
                artist=_extract_field(
                    item,
                    ["artist", "artist_name", "artist_name_basket", "artists"],
                    default="Unknown"
                ),
                genre=_extract_field(item, ["genre", "genres"]),
                lyrics=_extract_field(item, ["lyrics", "lyrics_snippet"]),
            )
            songs[sid] = entry
            song_ids.append(sid)

        logger.info(f"Song catalog loaded: {len(songs):,} songs")

    if not songs and demo_mode:
        logger.warning("Demo mode: generating dummy catalog")
        return _demo_catalog()

    if not songs:
        raise RuntimeError(f"Song catalog is empty: {path}")

    return SongCatalog(songs=songs, song_ids=song_ids)


def _index_text(entry: SongEntry, field: IndexField) -> str:
    if field == "lyrics":
        return entry.lyrics or f"{entry.title} {entry.artist}"
    return f"{entry.title} {entry.artist} {entry.genre} {entry.lyrics}".strip()


def build_catalog_index(
    catalog: SongCatalog,
    embedder: HashEmbeddingClient,
    field: IndexField
) -> CatalogIndex:
    """카탈로그 전체 임베딩 행렬 생성"""
    rows = [embedder.embed_sync(_index_text(catalog.songs[sid], field)) for sid in catalog.song_ids]
    if rows:
        embeddings = np.asarray(rows, dtype=np.float32)
    else:
        embeddings = np.zeros((0, embedder.dim), dtype=np.float32)
    logger.info(f"Catalog index built: field={field}, shape={embeddings.shape}")
    return CatalogIndex(song_ids=list(catalog.song_ids), embeddings=embeddings, field=field)
