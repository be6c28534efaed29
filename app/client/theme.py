"""Persisted UI theme preference: a named theme plus a dark-mode flag."""

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass

from app.client.storage import THEME_KEY, KeyValueStorage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Theme:
    name: str
    family: str
    dark: bool
    primary: str
    background: str


THEMES: dict[str, Theme] = {
    t.name: t
    for t in (
        Theme("light", "default", False, "#6366f1", "#ffffff"),
        Theme("dark", "default", True, "#818cf8", "#0f172a"),
        Theme("lightBlue", "blue", False, "#2563eb", "#f8fafc"),
        Theme("darkBlue", "blue", True, "#60a5fa", "#0b1120"),
        Theme("lightGreen", "green", False, "#16a34a", "#f7fdf9"),
        Theme("darkGreen", "green", True, "#4ade80", "#0a1a10"),
    )
}
DEFAULT_THEME = "light"


@dataclass(frozen=True)
class ThemeConfig:
    theme: str
    dark_mode: bool

    def to_json(self) -> str:
        return json.dumps({"theme": self.theme, "darkMode": self.dark_mode})


class ThemeStore:
    def __init__(self, storage: KeyValueStorage) -> None:
        self._storage = storage
        self._listeners: list[Callable[[ThemeConfig], None]] = []
        self._config = self._load()

    @property
    def config(self) -> ThemeConfig:
        return self._config

    @property
    def theme(self) -> Theme:
        return THEMES[self._config.theme]

    def subscribe(self, listener: Callable[[ThemeConfig], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def set_theme(self, name: str) -> ThemeConfig:
        if name not in THEMES:
            raise ValueError(f"Unknown theme: {name}")
        return self._apply(ThemeConfig(theme=name, dark_mode=THEMES[name].dark))

    def set_dark_mode(self, dark: bool) -> ThemeConfig:
        """Switch to the light or dark variant of the current theme family."""
        family = THEMES[self._config.theme].family
        for theme in THEMES.values():
            if theme.family == family and theme.dark == dark:
                return self._apply(ThemeConfig(theme=theme.name, dark_mode=dark))
        return self._apply(ThemeConfig(theme=self._config.theme, dark_mode=dark))

    def toggle_dark_mode(self) -> ThemeConfig:
        return self.set_dark_mode(not self._config.dark_mode)

    def _load(self) -> ThemeConfig:
        default = ThemeConfig(theme=DEFAULT_THEME, dark_mode=THEMES[DEFAULT_THEME].dark)
        raw = self._storage.get_item(THEME_KEY)
        if raw is None:
            return default
        try:
            data = json.loads(raw)
            name = data["theme"]
            dark = bool(data.get("darkMode", THEMES[name].dark))
        except (ValueError, KeyError, TypeError):
            logger.warning("Stored theme preference is unreadable; using default")
            return default
        return ThemeConfig(theme=name, dark_mode=dark)

    def _apply(self, config: ThemeConfig) -> ThemeConfig:
        self._config = config
        self._storage.set_item(THEME_KEY, config.to_json())
        for listener in list(self._listeners):
            listener(config)
        return config
