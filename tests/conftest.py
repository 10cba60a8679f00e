import pytest

from app.main import app
from app.services.change_tracking import change_tracker
from app.services.link_index import link_index


@pytest.fixture(autouse=True)
def reset_state():
    """Clear the slowapi in-memory counter and in-process stores before every test."""
    app.state.limiter._storage.reset()
    link_index.clear()
    change_tracker.clear()
    yield
