from __future__ import annotations

"""Lookup of bundled sound assets with an in-memory cache."""

from pathlib import Path


ASSETS_DIR = Path(__file__).resolve().parents[1] / "assets"
SOUND_EXTENSIONS = (".wav",)
_SOUND_CACHE: dict[str, Path | None] = {}


def get_asset_path(relative: str) -> Path:
    """Resolves a path relative to `assets/`."""
    return ASSETS_DIR / relative


def asset_exists(relative: str) -> bool:
    return get_asset_path(relative).exists()


def find_sound(name: str) -> Path | None:
    """Returns the file for a named alarm sound, or `None` if it is not bundled."""
    if name in _SOUND_CACHE:
        return _SOUND_CACHE[name]

    found: Path | None = None
    for extension in SOUND_EXTENSIONS:
        relative = f"sounds/{name}{extension}"
        if asset_exists(relative):
            found = get_asset_path(relative)
            break

    _SOUND_CACHE[name] = found
    return found


def clear_cache() -> None:
    _SOUND_CACHE.clear()
