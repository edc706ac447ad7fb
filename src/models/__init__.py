"""Database model type definitions."""

from src.models.letter import Letter, LetterStatus, Reply
from src.models.profile import Profile
from src.models.song import Artist, Song, SongProvider

__all__ = [
    "Artist",
    "Letter",
    "LetterStatus",
    "Profile",
    "Reply",
    "Song",
    "SongProvider",
]
