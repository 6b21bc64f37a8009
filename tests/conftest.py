import logging

import pytest

from hbs.registry import reset_registry


@pytest.fixture(autouse=True)
def _fresh_default_registry():
    # module-level compile/render share one process-wide registry
    reset_registry()
    yield
    reset_registry()


@pytest.fixture
def reset_hbs_logging():
    """Removes handlers installed by the CLI on the `hbs` logger."""
    log = logging.getLogger("hbs")
    handlers, level = list(log.handlers), log.level
    yield
    for h in list(log.handlers):
        if h not in handlers:
            log.removeHandler(h)
    log.setLevel(level)
