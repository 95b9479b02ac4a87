"""Theme, topic, category and tab preferences, stored in the shared blob."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from wikiwisch.storage.migrations import DEFAULT_STATE
from wikiwisch.storage.state import StateStore

logger = logging.getLogger(__name__)

CATEGORY_FEEDS = ("arxiv", "medrxiv", "biorxiv")


@dataclass(frozen=True)
class Preferences:
    """Read-only view of the preference fields."""

    theme: str
    topics: tuple[str, ...]
    arxiv_category: str
    medrxiv_category: str
    biorxiv_category: str
    tab_order: tuple[str, ...]
    enabled_tabs: tuple[str, ...]

    @classmethod
    def from_state(cls, state: dict) -> Preferences:
        return cls(
            theme=state.get("theme", DEFAULT_STATE["theme"]),
            topics=tuple(state.get("topics") or ()),
            arxiv_category=state.get("arxiv_category", DEFAULT_STATE["arxiv_category"]),
            medrxiv_category=state.get("medrxiv_category", DEFAULT_STATE["medrxiv_category"]),
            biorxiv_category=state.get("biorxiv_category", DEFAULT_STATE["biorxiv_category"]),
            tab_order=tuple(state.get("tab_order") or ()),
            enabled_tabs=tuple(state.get("enabled_tabs") or ()),
        )

    def category_for(self, feed: str) -> str | None:
        if feed not in CATEGORY_FEEDS:
            return None
        return getattr(self, f"{feed}_category")

    def to_dict(self) -> dict:
        return {
            "theme": self.theme,
            "topics": list(self.topics),
            "arxiv_category": self.arxiv_category,
            "medrxiv_category": self.medrxiv_category,
            "biorxiv_category": self.biorxiv_category,
            "tab_order": list(self.tab_order),
            "enabled_tabs": list(self.enabled_tabs),
        }


class PreferenceStore:
    """Setters over the preference fields.

    Values are stored as given; unknown themes or categories simply match
    nothing when rendered.
    """

    def __init__(self, store: StateStore) -> None:
        self._store = store

    def get(self) -> Preferences:
        return Preferences.from_state(self._store.get())

    def set_theme(self, theme: str) -> Preferences:
        return self._set("theme", theme)

    def set_topics(self, topics: list[str]) -> Preferences:
        return self._set("topics", list(dict.fromkeys(topics)))

    def toggle_topic(self, topic: str) -> Preferences:
        def apply(state: dict) -> None:
            topics = list(state.get("topics") or [])
            if topic in topics:
                topics.remove(topic)
            else:
                topics.append(topic)
            state["topics"] = topics

        self._store.mutate(apply)
        return self.get()

    def set_category(self, feed: str, category: str) -> Preferences:
        if feed not in CATEGORY_FEEDS:
            raise ValueError(f"Feed {feed!r} has no category preference")
        return self._set(f"{feed}_category", category)

    def set_tab_order(self, tab_order: list[str]) -> Preferences:
        return self._set("tab_order", list(tab_order))

    def toggle_tab(self, tab: str) -> Preferences:
        """Enable or disable ``tab``. The last enabled tab stays enabled."""

        def apply(state: dict) -> None:
            enabled = list(state.get("enabled_tabs") or [])
            if tab in enabled:
                if len(enabled) == 1:
                    logger.info("Refusing to disable %s, the last enabled tab", tab)
                    return
                enabled.remove(tab)
            else:
                enabled.append(tab)
            state["enabled_tabs"] = enabled

        self._store.mutate(apply)
        return self.get()

    def _set(self, key: str, value) -> Preferences:
        def apply(state: dict) -> None:
            state[key] = value

        self._store.mutate(apply)
        return self.get()
