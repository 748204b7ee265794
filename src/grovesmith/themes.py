"""Profile themes for recipient cards and headers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True, slots=True)
class ProfileTheme:
    id: str
    name: str
    start_color: str
    end_color: str
    text_color: str = "#1f2937"

    @property
    def gradient_css(self) -> str:
        return f"linear-gradient(135deg,{self.start_color},{self.end_color})"


AVAILABLE_THEMES: Tuple[ProfileTheme, ...] = (
    ProfileTheme("sunset", "Sunset Dreams", "#fbcfe8", "#e9d5ff"),
    ProfileTheme("ocean", "Ocean Breeze", "#bfdbfe", "#a5f3fc"),
    ProfileTheme("forest", "Forest Adventure", "#bbf7d0", "#a7f3d0"),
    ProfileTheme("sunshine", "Sunshine Valley", "#fef08a", "#fed7aa"),
    ProfileTheme("lavender", "Lavender Fields", "#e9d5ff", "#c7d2fe"),
    ProfileTheme("cherry", "Cherry Blossom", "#fecdd3", "#fbcfe8"),
    ProfileTheme("mint", "Mint Chocolate", "#99f6e4", "#bbf7d0"),
    ProfileTheme("cosmic", "Cosmic Purple", "#c4b5fd", "#d8b4fe"),
    ProfileTheme("peach", "Peach Sorbet", "#fed7aa", "#fecdd3"),
    ProfileTheme("aurora", "Aurora Sky", "#a5f3fc", "#fbcfe8"),
)

UNLOCKED_BY_DEFAULT = 3


def _string_hash(value: str) -> int:
    # h = h * 31 + ord(ch), wrapped to a signed 32-bit integer after every step
    result = 0
    for char in value:
        result = (result * 31 + ord(char)) & 0xFFFFFFFF
    if result >= 0x80000000:
        result -= 0x100000000
    return result


def theme_for(recipient_id: str) -> ProfileTheme:
    """Return the theme deterministically assigned to ``recipient_id``."""

    index = abs(_string_hash(recipient_id)) % len(AVAILABLE_THEMES)
    return AVAILABLE_THEMES[index]


def theme_by_id(theme_id: str) -> Optional[ProfileTheme]:
    for theme in AVAILABLE_THEMES:
        if theme.id == theme_id:
            return theme
    return None


def unlocked_themes() -> Tuple[ProfileTheme, ...]:
    """Themes open to every recipient from the start."""

    return AVAILABLE_THEMES[:UNLOCKED_BY_DEFAULT]
