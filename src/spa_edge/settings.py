"""Edge server configuration settings.

EdgeSettings is the single configuration object accepted by create_app().
It is a plain frozen dataclass (not env-coupled) so tests can inject config
without touching os.environ; ``from_env`` is the production factory.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping
from urllib.parse import urlparse

DEFAULT_PORT = 8080
DEFAULT_PROXY_PATHS: tuple[str, ...] = ("/query",)
DEFAULT_PROXY_TIMEOUT = 30.0


class SettingsError(ValueError):
    """Raised when the edge configuration is invalid."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        formatted = "\n".join(f"- {e}" for e in errors)
        super().__init__(f"Invalid configuration:\n{formatted}")


def split_csv(raw: str) -> tuple[str, ...]:
    """Split a comma-separated value, trimming entries and dropping blanks."""
    return tuple(part.strip() for part in raw.split(",") if part.strip())


def split_allow_list(raw: str) -> tuple[str, ...]:
    """Split ``ALLOW_REMOTE_IPS`` keeping every entry as written.

    Blank entries survive: inside a non-empty list they are empty prefixes
    that admit every address. Entries are trimmed only when matched.
    """
    if not raw:
        return ()
    return tuple(raw.split(","))


def normalize_proxy_paths(paths: tuple[str, ...] | list[str]) -> tuple[str, ...]:
    cleaned = tuple(p.strip() for p in paths if p.strip())
    return cleaned or DEFAULT_PROXY_PATHS


@dataclass(frozen=True, slots=True)
class EdgeSettings:
    """Configuration for the SPA edge application.

    Only ``dist_dir`` is required. Everything else defaults to an open,
    proxy-less server listening on port 8080.
    """

    # ── Static bundle ──────────────────────────────────────────────
    dist_dir: Path | None = None
    """Root of the built SPA. Must exist and contain the entry document."""

    # ── Listener ───────────────────────────────────────────────────
    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT

    # ── Access control ─────────────────────────────────────────────
    allow_remote_ips: tuple[str, ...] = ()
    """Exact IPs or literal prefixes (``10.0.0.``). Empty means open access."""

    # ── Reverse proxy ──────────────────────────────────────────────
    proxy_url: str = ""
    """Upstream base URL. Empty disables proxying entirely."""

    proxy_paths: tuple[str, ...] = DEFAULT_PROXY_PATHS
    """Path patterns forwarded upstream (prefix or single ``*`` wildcard)."""

    proxy_timeout: float = DEFAULT_PROXY_TIMEOUT
    """Connect/read timeout in seconds for upstream calls."""

    def __post_init__(self) -> None:
        if self.dist_dir is not None and not isinstance(self.dist_dir, Path):
            object.__setattr__(self, "dist_dir", Path(self.dist_dir))
        object.__setattr__(self, "allow_remote_ips", tuple(self.allow_remote_ips))
        object.__setattr__(self, "proxy_paths", normalize_proxy_paths(self.proxy_paths))
        object.__setattr__(self, "proxy_url", self.proxy_url.strip())

    @property
    def proxy_enabled(self) -> bool:
        return bool(self.proxy_url)

    def validate(self) -> list[str]:
        """Return a list of configuration errors. Empty means valid."""
        errors: list[str] = []
        if self.dist_dir is None or not str(self.dist_dir):
            errors.append("DIST_DIR is required")
        elif not self.dist_dir.is_dir():
            errors.append(f"Directory {self.dist_dir} does not exist")

        if self.proxy_url:
            parsed = urlparse(self.proxy_url)
            if parsed.scheme not in ("http", "https") or not parsed.netloc:
                errors.append(
                    f"PROXY_URL must be an http(s) URL with a host, got {self.proxy_url!r}"
                )

        if not 0 < self.port < 65536:
            errors.append(f"PORT must be between 1 and 65535, got {self.port}")
        if self.proxy_timeout <= 0:
            errors.append(f"PROXY_TIMEOUT must be positive, got {self.proxy_timeout}")
        return errors

    def require_valid(self) -> EdgeSettings:
        """Return self, or raise SettingsError listing every problem."""
        errors = self.validate()
        if errors:
            raise SettingsError(errors)
        return self

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> EdgeSettings:
        """Build settings from environment variables.

        This is a convenience factory for production use. Tests should
        construct EdgeSettings directly.
        """
        if env is None:
            env = dict(os.environ)

        dist_raw = env.get("DIST_DIR", "").strip()

        port_raw = env.get("PORT", "").strip()
        try:
            port = int(port_raw) if port_raw else DEFAULT_PORT
        except ValueError:
            raise SettingsError([f"PORT must be an integer, got {port_raw!r}"]) from None

        timeout_raw = env.get("PROXY_TIMEOUT", "").strip()
        try:
            timeout = float(timeout_raw) if timeout_raw else DEFAULT_PROXY_TIMEOUT
        except ValueError:
            raise SettingsError(
                [f"PROXY_TIMEOUT must be a number, got {timeout_raw!r}"]
            ) from None

        return cls(
            dist_dir=Path(dist_raw) if dist_raw else None,
            host=env.get("HOST", "").strip() or "0.0.0.0",
            port=port,
            allow_remote_ips=split_allow_list(env.get("ALLOW_REMOTE_IPS", "")),
            proxy_url=env.get("PROXY_URL", ""),
            proxy_paths=split_csv(env.get("PROXY_PATHS", "")),
            proxy_timeout=timeout,
        )
