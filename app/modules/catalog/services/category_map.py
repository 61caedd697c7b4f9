from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional

from app.core.config import STEAM_CDN_URL


@dataclass(frozen=True)
class CategoryInfo:
    genre_id: str
    description: str
    representative_app: int
    header_app: int

    @property
    def representative_image(self) -> str:
        return f"{STEAM_CDN_URL}/{self.representative_app}/header.jpg"

    @property
    def header_image(self) -> str:
        return f"{STEAM_CDN_URL}/{self.header_app}/header.jpg"


# Steam store genre ids. Several categories share a genre on purpose
# (puzzle/arcade/casual -> Casual); keep the table literal.
CATEGORIES: Mapping[str, CategoryInfo] = MappingProxyType({
    "action": CategoryInfo("1", "Fast-paced games with combat and excitement", 730, 1245620),
    "strategy": CategoryInfo("2", "Tactical games requiring planning and strategy", 813780, 294100),
    "rpg": CategoryInfo("3", "Role-playing games with character progression", 1086940, 292030),
    "casual": CategoryInfo("4", "Easy to pick up games for short sessions", 413150, 1097840),
    "puzzle": CategoryInfo("4", "Brain-teasing puzzles and logic games", 1097840, 945360),
    "arcade": CategoryInfo("4", "Classic arcade-style games", 1097840, 1794680),
    "racing": CategoryInfo("9", "High-speed racing and driving games", 1551360, 2206760),
    "sports": CategoryInfo("18", "Sports simulation and arcade games", 2195250, 1811260),
    "indie": CategoryInfo("23", "Independent games from creative developers", 1794680, 1818750),
    "adventure": CategoryInfo("25", "Story-driven exploration games", 1818750, 1174180),
    "horror": CategoryInfo("25", "Scary and atmospheric horror games", 381210, 1942110),
    "simulation": CategoryInfo("28", "Life and world simulation games", 294100, 1222670),
    "multiplayer": CategoryInfo("29", "Games designed for multiple players", 730, 570),
})


def lookup_category(name: str) -> Optional[CategoryInfo]:
    return CATEGORIES.get(name.strip().lower())
