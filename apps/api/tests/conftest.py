import pytest

from config import settings
from main import app
from routers import rate_limit


@pytest.fixture(autouse=True)
def reset_local_rate_limit_counters():
    """Keep in-memory rate-limit state isolated between tests."""
    previous = getattr(app.state, "disable_rate_limits", False)
    app.state.disable_rate_limits = True
    rate_limit._local_counters.clear()
    yield
    rate_limit._local_counters.clear()
    app.state.disable_rate_limits = previous


@pytest.fixture
def posts_dir(tmp_path, monkeypatch):
    """A posts directory with two dated posts, wired into settings."""
    directory = tmp_path / "posts"
    directory.mkdir()
    (directory / "hello-world.md").write_text(
        "---\ntitle: Hello World\ndate: 2024-01-02\ncategory: meta\n---\n\nFirst post body.\n",
        encoding="utf-8",
    )
    (directory / "async-python.md").write_text(
        "---\ndate: 2024-03-05\ncategory: python\ntags: [python, asyncio]\n---\n\n# Async Python\n\nBody text.\n",
        encoding="utf-8",
    )
    monkeypatch.setattr(settings, "POSTS_DIR", str(directory))
    return directory
