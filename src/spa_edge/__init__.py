"""SPA edge server: static bundle + IP allow-list + path-based reverse proxy.

Usage:
    from spa_edge import create_app, EdgeSettings
    app = create_app(EdgeSettings(dist_dir=Path("dist")))
"""

from .main import create_app
from .settings import EdgeSettings, SettingsError

__all__ = [
    'EdgeSettings',
    'SettingsError',
    'create_app',
]
