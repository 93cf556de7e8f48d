import os
import tempfile
from pathlib import Path

import pytest

# main.py bootstraps its rule store on import; keep it out of the source tree.
os.environ.setdefault("RULES_DB_PATH", str(Path(tempfile.mkdtemp()) / "rules.db"))

from rigcheck.data.repository import InMemoryRuleRepository  # noqa: E402
from rigcheck.data.seed import DEFAULT_CATEGORY_TAGS, DEFAULT_RULES  # noqa: E402
from rigcheck.registry.registry import build_default_registry  # noqa: E402
from rigcheck.schemas import ComponentInstance, RawSpecification  # noqa: E402
from rigcheck.service import ValidationService  # noqa: E402


@pytest.fixture
def registry():
    return build_default_registry()


@pytest.fixture
def repository():
    return InMemoryRuleRepository(DEFAULT_CATEGORY_TAGS, DEFAULT_RULES)


@pytest.fixture
def service(repository, registry):
    return ValidationService(repository, registry)


@pytest.fixture
def component():
    """组件工厂 - build a ComponentInstance from keyword specifications"""

    def _make(title: str = "", **specs) -> ComponentInstance:
        return ComponentInstance(
            id=title.lower().replace(" ", "-") or "part",
            title=title,
            specifications=[RawSpecification(name=k, raw_value=v) for k, v in specs.items()],
        )

    return _make
