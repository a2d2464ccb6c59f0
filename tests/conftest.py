"""Pytest configuration for spa_edge tests."""
import sys
from pathlib import Path

# Add src/ to path for src-layout imports
_PROJECT_ROOT = Path(__file__).parent.parent
_SRC = _PROJECT_ROOT / 'src'
if str(_SRC) not in sys.path:
    sys.path.insert(0, str(_SRC))

import pytest

INDEX_HTML = '<!DOCTYPE html><html><body>SPA</body></html>'


@pytest.fixture
def dist_dir(tmp_path):
    """A built SPA bundle with only the entry document."""
    dist = tmp_path / 'dist'
    dist.mkdir()
    (dist / 'index.html').write_text(INDEX_HTML)
    return dist


@pytest.fixture
def full_dist_dir(dist_dir):
    """Bundle with assets and a nested section that has its own index."""
    (dist_dir / 'app.js').write_text('console.log("app");')
    assets = dist_dir / 'assets'
    assets.mkdir()
    (assets / 'logo.svg').write_text('<svg/>')
    docs = dist_dir / 'docs'
    docs.mkdir()
    (docs / 'index.html').write_text('<html>docs</html>')
    (dist_dir / 'empty').mkdir()
    return dist_dir
