import json
import logging
from os import environ
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_PREFERENCES_PATH = "~/.smart_bookmarks/preferences.json"


class PreferenceError(Exception):
    """Exception raised when preferences cannot be written."""

    pass


class PreferenceStore:
    """Local storage for the dark mode preference.

    The preference is a single boolean kept in a JSON file, read on startup
    and written on every toggle.

    Attributes:
        path: Location of the preferences file
    """

    def __init__(self, path: str | Path | None = None) -> None:
        """Initialize the store and read the persisted value."""
        raw_path = path or environ.get("PREFERENCES_PATH", DEFAULT_PREFERENCES_PATH)
        self.path: Path = Path(raw_path).expanduser()
        self._dark_mode: bool = self._load()

    def _load(self) -> bool:
        if not self.path.exists():
            return False
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(
                "preferences_unreadable",
                extra={"path": str(self.path), "error": str(e)},
            )
            return False
        return isinstance(data, dict) and data.get("dark_mode") is True

    def _save(self) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(
                json.dumps({"dark_mode": self._dark_mode}), encoding="utf-8"
            )
        except OSError as e:
            raise PreferenceError(f"Failed to save preferences: {str(e)}")

    @property
    def dark_mode(self) -> bool:
        return self._dark_mode

    def toggle_dark_mode(self) -> bool:
        """Flip and persist the dark mode preference.

        Returns:
            The new value

        Raises:
            PreferenceError: If the preference cannot be written
        """
        self._dark_mode = not self._dark_mode
        try:
            self._save()
        except PreferenceError:
            self._dark_mode = not self._dark_mode
            raise
        return self._dark_mode
