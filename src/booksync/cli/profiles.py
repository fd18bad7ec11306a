"""Device profiles providing default source and destination directories.

Profiles:
- kindle-workstation: Linux workstation to a udisks-mounted Kindle
- kindle-mac: Mac (Apple Books iCloud folder and documents) to a Kindle
- kobo: Linux workstation to a udisks-mounted Kobo
"""

from __future__ import annotations

import getpass
from dataclasses import dataclass
from pathlib import Path

from booksync.core.config import ConfigError
from booksync.sync.types import SourceSpec

DEFAULT_PROFILE = "kindle-workstation"


@dataclass(frozen=True)
class SourceDefault:
    """A default source directory of a profile."""

    path: Path
    extensions: tuple[str, ...]
    category: str | None = None

    def to_spec(self, extensions: tuple[str, ...] | None = None) -> SourceSpec:
        """Build the SourceSpec, optionally overriding the extensions."""
        return SourceSpec.create(
            self.path, extensions or self.extensions, category=self.category
        )


@dataclass(frozen=True)
class Profile:
    """Defaults for one kind of device and workstation."""

    name: str
    destination: Path
    sources: tuple[SourceDefault, ...]
    destination_hint: str = ""

    @property
    def extensions(self) -> tuple[str, ...]:
        """All extensions used by this profile's sources, in order."""
        seen: list[str] = []
        for source in self.sources:
            for ext in source.extensions:
                if ext not in seen:
                    seen.append(ext)
        return tuple(seen)


def build_profiles(
    home: Path | None = None, username: str | None = None
) -> dict[str, Profile]:
    """Build the known profiles for a user.

    Args:
        home: Home directory (defaults to the current user's).
        username: User name used in automount paths (defaults to current).

    Returns:
        Profiles keyed by name.
    """
    home = home or Path.home()
    username = username or getpass.getuser()
    documents = home / "Documents"

    mounted_hint = (
        "are you sure your e-reader is plugged in and mounted? "
        "Double-check by opening Files and seeing whether it is connected"
    )

    profiles = [
        Profile(
            name="kindle-workstation",
            destination=Path("/media") / username / "Kindle" / "documents" / "PDFs",
            sources=(SourceDefault(documents, (".mobi", ".pdf")),),
            destination_hint=mounted_hint,
        ),
        Profile(
            name="kindle-mac",
            destination=Path("/Volumes") / "Kindle" / "documents" / "PDFs",
            sources=(
                SourceDefault(
                    home
                    / "Library"
                    / "Mobile Documents"
                    / "iCloud~com~apple~iBooks"
                    / "Documents",
                    (".pdf",),
                    category="found books in Apple Books iCloud Folder",
                ),
                SourceDefault(documents, (".mobi",)),
                SourceDefault(home / "Desktop", (".mobi",)),
            ),
            destination_hint=(
                "are you sure your Kindle is plugged in? Double-check by "
                "opening Finder and seeing if it is connected"
            ),
        ),
        Profile(
            name="kobo",
            destination=Path("/media") / username / "KOBOeReader",
            sources=(SourceDefault(documents, (".epub", ".pdf")),),
            destination_hint=mounted_hint,
        ),
    ]
    return {profile.name: profile for profile in profiles}


PROFILE_NAMES = ("kindle-workstation", "kindle-mac", "kobo")


def get_profile(name: str, home: Path | None = None) -> Profile:
    """Get a profile by name.

    Raises:
        ConfigError: If no such profile exists.
    """
    profiles = build_profiles(home=home)
    if name not in profiles:
        raise ConfigError(
            f"unknown profile {name!r} (choose from {', '.join(sorted(profiles))})"
        )
    return profiles[name]
