# tests/conftest.py
"""
Pytest configuration and shared fixtures for sponsor tree tests.

Run:
    pytest tests -v
"""
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from config import Config
from models import Base
from sponsor_tree.config.policy import TreeVariant
from sponsor_tree.hierarchy import HierarchyIndex

# =============================================================================
# CONSTANTS
# =============================================================================

SAMPLE_MEMBERS = [
    # (id, name, sponsorId)
    ("C", "Company", None),
    ("A", "Alice", "C"),
    ("B", "Bob", "A"),
    ("E", "Eve", "B"),
]



# =============================================================================
# CONFIG FIXTURES
# =============================================================================

@pytest.fixture(autouse=True)
def clean_config():
    """Every test starts without loaded configuration."""
    Config.reset()
    yield
    Config.reset()


# =============================================================================
# TREE FIXTURES
# =============================================================================

@pytest.fixture
def sample_index():
    """Chain Company <- Alice <- Bob <- Eve (unbounded variant)."""
    index = HierarchyIndex()
    for memberId, name, sponsorId in SAMPLE_MEMBERS:
        index.attach(memberId, name, sponsorId)
    return index


@pytest.fixture
def binary_index():
    """Binary tree with root C and children A, B."""
    index = HierarchyIndex(TreeVariant.BINARY)
    index.attach("C", "Company", None)
    index.attach("A", "Alice", "C")
    index.attach("B", "Bob", "C")
    return index


@pytest.fixture
def wide_index():
    """
    Unbounded tree:

        R
        ├── X
        │   ├── X1
        │   └── X2
        ├── Y
        └── Z
            └── Z1
    """
    index = HierarchyIndex()
    index.attach("R", "R", None)
    for memberId, sponsorId in [("X", "R"), ("Y", "R"), ("Z", "R"),
                                ("X1", "X"), ("X2", "X"), ("Z1", "Z")]:
        index.attach(memberId, memberId, sponsorId)
    return index


# =============================================================================
# DATABASE FIXTURES
# =============================================================================

@pytest.fixture
def engine():
    """In-memory SQLite engine with all tables."""
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    """Create database session for each test."""
    Session = sessionmaker(bind=engine)
    session = Session()
    yield session
    session.close()
