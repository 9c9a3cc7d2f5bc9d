from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
import fcntl
from typing import Any, Dict, List
import yaml

from chatwarden.util.logger import get_logger

logger = get_logger("app_configuration")


CONFIG_PATH = Path("./config/app_config.yml").resolve()

DEFAULT_OFFENSIVE_WORDS: List[str] = [
    "porra", "merda", "caralho", "puta", "fdp", "desgraçado",
    "otario", "idiota", "burro", "imbecil", "cuzão", "babaca",
]
DEFAULT_LINK_PATTERN = r"https?://[^\s]+"
DEFAULT_DATABASE_PATH = "./data/chatwarden.db"


@dataclass(slots=True, frozen=True)
class ModerationSettings:
    """Resolved runtime settings consumed by the moderation and engagement code."""

    offensive_words: List[str] = field(default_factory=lambda: list(DEFAULT_OFFENSIVE_WORDS))
    link_pattern: str = DEFAULT_LINK_PATTERN
    command_prefix: str = "!"
    ranking_limit: int = 10
    lurker_threshold: int = 3
    lurker_limit: int = 10
    sticker_keyword: str = "figurinha"


def _section(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = data.get(key, {})
    return value if isinstance(value, dict) else {}


def _positive_int(value: Any, default: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default


class AppConfig:
    """File-lock based accessor around the YAML application configuration.

    The class caches the contents of ``./config/app_config.yml`` and resolves
    them into typed values. Every accessor falls back to its default when the
    key is missing or malformed, so a broken config never stops the bot.
    """

    def __init__(self, config_path: Path) -> None:
        self.config_path = config_path
        self._data: Dict[str, Any] = {}
        self.reload()

    # --------------------------
    # Private helpers
    # --------------------------
    def load_from_disk(self) -> Dict[str, Any]:
        try:
            with self.config_path.open("r", encoding="utf-8") as f:
                fcntl.flock(f.fileno(), fcntl.LOCK_SH)
                data = yaml.safe_load(f)
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        except FileNotFoundError:
            logger.error("[APP CONFIGURATION] Config file %s not found.", self.config_path)
            return {}
        except Exception as exc:
            logger.error("[APP CONFIGURATION] Failed to load config %s: %s", self.config_path, exc)
            return {}

        if not isinstance(data, dict):
            if data is not None:
                logger.error("[APP CONFIGURATION] Config %s is not a mapping; ignoring it.", self.config_path)
            return {}
        return data

    # --------------------------
    # Public API
    # --------------------------
    def reload(self) -> Dict[str, Any]:
        """Re-read the YAML file and return the loaded mapping (``{}`` on error)."""
        self._data = self.load_from_disk()
        return self._data

    @property
    def data(self) -> Dict[str, Any]:
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    # --------------------------
    # High-level shortcuts
    # --------------------------
    @property
    def offensive_words(self) -> List[str]:
        """Default blocklist used until the list is edited from the control surface."""
        words = _section(self._data, "moderation").get("offensive_words")
        if not isinstance(words, list):
            return list(DEFAULT_OFFENSIVE_WORDS)
        return [str(word).strip() for word in words if str(word).strip()]

    @property
    def link_pattern(self) -> str:
        value = _section(self._data, "moderation").get("link_pattern")
        return str(value) if value else DEFAULT_LINK_PATTERN

    @property
    def command_prefix(self) -> str:
        value = _section(self._data, "commands").get("prefix")
        return str(value) if value else "!"

    @property
    def ranking_limit(self) -> int:
        return _positive_int(_section(self._data, "engagement").get("ranking_limit"), 10)

    @property
    def lurker_threshold(self) -> int:
        return _positive_int(_section(self._data, "engagement").get("lurker_threshold"), 3)

    @property
    def lurker_limit(self) -> int:
        return _positive_int(_section(self._data, "engagement").get("lurker_limit"), 10)

    @property
    def sticker_keyword(self) -> str:
        value = _section(self._data, "stickers").get("keyword")
        return str(value).strip().lower() if value else "figurinha"

    @property
    def database_path(self) -> Path:
        value = _section(self._data, "database").get("path")
        return Path(str(value) if value else DEFAULT_DATABASE_PATH).resolve()

    def moderation_settings(self) -> ModerationSettings:
        """Bundle the moderation and engagement values into one immutable object."""
        return ModerationSettings(
            offensive_words=self.offensive_words,
            link_pattern=self.link_pattern,
            command_prefix=self.command_prefix,
            ranking_limit=self.ranking_limit,
            lurker_threshold=self.lurker_threshold,
            lurker_limit=self.lurker_limit,
            sticker_keyword=self.sticker_keyword,
        )


# Shared application-wide configuration instance
app_config = AppConfig(CONFIG_PATH)
