"""
Settings Manager
Handles application settings with optional persistence in the user home directory
"""
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional
import threading

logger = logging.getLogger(__name__)


class SettingsManager:
    """Manages resolver settings with persistence"""

    DEFAULT_BASE_URL = "https://watchanimeworld.in"

    REQUIRED_USER_AGENTS = [
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
        "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    ]

    DEFAULT_SETTINGS = {
        # Upstream site
        "base_url": DEFAULT_BASE_URL,

        # Requests
        "user_agents": list(REQUIRED_USER_AGENTS),
        "request_timeout_seconds": 30.0,
        "request_max_retries": 3,
        "request_retry_delay_seconds": 1.0,

        # Cache
        "cache_enabled": True,
        "cache_ttl_seconds": {
            "home": 300,
            "search": 600,
            "anime": 1800,
            "episode": 3600,
            "category": 900,
        },
        # "none" stream results; 0 disables negative caching
        "cache_negative_ttl_seconds": 300,

        # Stream resolver
        "resolver_max_depth": 5,
        "resolver_redirect_markers": ["/api/player1.php", "/api/player.php"],
        "resolver_redirect_param": "data",
        "resolver_redirect_referer": "",
        "resolver_placeholder_urls": [
            "https://example.com",
            "http://example.com",
            "https://content.jwplatform.com/videos/",
            "https://cdn.plyr.io/static/demo/",
            "https://test-videos.co.uk/",
        ],
    }

    def __init__(self, data_dir: Optional[str] = None, persist: bool = True):
        env_dir = str(os.environ.get("ANIMESTREAM_DATA_DIR", "") or "").strip()
        raw_dir = data_dir or env_dir
        self.settings_dir = Path(raw_dir).expanduser() if raw_dir else (Path.home() / ".animestream")
        self.settings_file = self.settings_dir / "settings.json"
        self._persist = persist

        self._lock = threading.RLock()
        self._settings: Dict[str, Any] = {}
        self._load()

    def _defaults(self) -> Dict[str, Any]:
        # Nested containers must not be shared with DEFAULT_SETTINGS.
        return json.loads(json.dumps(self.DEFAULT_SETTINGS))

    def _load(self):
        """Load settings from file"""
        with self._lock:
            defaults = self._defaults()
            if self._persist and self.settings_file.exists():
                try:
                    with open(self.settings_file, "r", encoding="utf-8") as f:
                        loaded = json.load(f)
                    if not isinstance(loaded, dict):
                        raise ValueError("settings file must contain a JSON object")
                    self._settings = {**defaults, **loaded}
                    # Deep-merge TTLs so new operations get default values.
                    loaded_ttls = loaded.get("cache_ttl_seconds", {})
                    if isinstance(loaded_ttls, dict):
                        self._settings["cache_ttl_seconds"] = {**defaults["cache_ttl_seconds"], **loaded_ttls}
                    else:
                        self._settings["cache_ttl_seconds"] = defaults["cache_ttl_seconds"]
                except (OSError, ValueError) as e:
                    logger.warning("Error loading settings from %s: %s", self.settings_file, e)
                    self._settings = defaults
            else:
                self._settings = defaults
            self._ensure_required_values()

    def _ensure_required_values(self) -> bool:
        changed = False
        agents = [str(a).strip() for a in (self._settings.get("user_agents") or []) if str(a or "").strip()]
        if not agents:
            agents = list(self.REQUIRED_USER_AGENTS)
            changed = True
        self._settings["user_agents"] = agents
        base_url = str(self._settings.get("base_url") or "").strip().rstrip("/")
        if not base_url.startswith("http"):
            base_url = self.DEFAULT_BASE_URL
            changed = True
        self._settings["base_url"] = base_url
        if int(self._settings.get("request_max_retries", 0) or 0) < 0:
            self._settings["request_max_retries"] = 0
            changed = True
        if int(self._settings.get("resolver_max_depth", 0) or 0) <= 0:
            self._settings["resolver_max_depth"] = 5
            changed = True
        return changed

    def _save(self):
        """Save settings to file"""
        if not self._persist:
            return
        with self._lock:
            try:
                self.settings_dir.mkdir(parents=True, exist_ok=True)
                with open(self.settings_file, "w", encoding="utf-8") as f:
                    json.dump(self._settings, f, indent=2)
            except OSError as e:
                logger.warning("Error saving settings to %s: %s", self.settings_file, e)

    def get(self, key: str, default=None) -> Any:
        """Get a setting value"""
        with self._lock:
            return self._settings.get(key, default)

    def set(self, key: str, value: Any):
        """Set a setting value and save"""
        with self._lock:
            self._settings[str(key)] = value
            self._ensure_required_values()
            self._save()

    def update(self, settings_dict: Dict[str, Any]):
        """Update multiple settings at once"""
        with self._lock:
            self._settings.update(dict(settings_dict or {}))
            self._ensure_required_values()
            self._save()

    def get_all(self) -> Dict[str, Any]:
        """Get all settings"""
        with self._lock:
            return self._settings.copy()

    def reset(self):
        """Reset to default settings"""
        with self._lock:
            self._settings = self._defaults()
            self._ensure_required_values()
            self._save()

    def ttl_for(self, operation: str) -> float:
        """TTL in seconds for a cached operation (home, search, anime, episode, category)."""
        ttls = self.get("cache_ttl_seconds", {}) or {}
        default_ttls = self.DEFAULT_SETTINGS["cache_ttl_seconds"]
        return float(ttls.get(operation, default_ttls.get(operation, 300)) or 0)

    def redirect_referer(self) -> str:
        referer = str(self.get("resolver_redirect_referer", "") or "").strip()
        if referer:
            return referer
        return self.get("base_url", self.DEFAULT_BASE_URL).rstrip("/") + "/"
