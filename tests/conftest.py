"""
Name: Pytest Configuration and Shared Fixtures

Responsibilities:
  - Configure test environment (APP_ENV=test => in-memory adapters)
  - Provide reusable fixtures: repository, fake hasher, fake breach checker
  - Provide actors and seeded users for policy/use case tests
  - Reset cached singletons between tests

Collaborators:
  - pytest: Test framework
  - useradmin.container: composition root (reset_container)
  - useradmin.infrastructure.repositories.in_memory: repository under test

Notes:
  - Env vars are set BEFORE importing useradmin (Settings are cached)
  - Use @pytest.fixture(scope="function") for per-test isolation
"""

import os

os.environ["APP_ENV"] = "test"
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest  # noqa: E402

from useradmin.crosscutting import config as app_config  # noqa: E402

app_config.Settings.model_config["env_file"] = None

from useradmin.application.input_shaping import (  # noqa: E402
    PasswordPolicy,
    UserInputShaper,
)
from useradmin.application.user_rules import (  # noqa: E402
    build_create_rules,
    build_list_rules,
    build_update_rules,
)
from useradmin.container import reset_container  # noqa: E402
from useradmin.domain.entities import UserRecord, UserRole, UserStatus  # noqa: E402
from useradmin.domain.user_policy import Actor  # noqa: E402
from useradmin.infrastructure.repositories.in_memory import (  # noqa: E402
    InMemoryUserRepository,
)

STRONG_PASSWORD = "S3cure!pass"


def pytest_configure(config) -> None:
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, no external dependencies)"
    )


@pytest.fixture(autouse=True)
def _fresh_container():
    """R: Cada test arranca con singletons limpios (repo in-memory nuevo)."""
    app_config.get_settings.cache_clear()
    reset_container()
    yield
    app_config.get_settings.cache_clear()
    reset_container()


# ============================================================================
# Fakes
# ============================================================================


class FakePasswordHasher:
    """R: Hash determinístico y legible (no seguro, solo tests)."""

    PREFIX = "hashed::"

    def hash(self, plaintext: str) -> str:
        return f"{self.PREFIX}{plaintext}"

    def verify(self, password_hash: str, plaintext: str) -> bool:
        return password_hash == f"{self.PREFIX}{plaintext}"


class FakeBreachChecker:
    """R: Reporta como filtradas las passwords del set `leaked`."""

    def __init__(self, leaked=()):
        self.leaked = set(leaked)
        self.calls: list[str] = []

    def is_compromised(self, plaintext: str) -> bool:
        self.calls.append(plaintext)
        return plaintext in self.leaked


@pytest.fixture
def hasher() -> FakePasswordHasher:
    return FakePasswordHasher()


@pytest.fixture
def breach_checker() -> FakeBreachChecker:
    return FakeBreachChecker(leaked={"P4ssword!"})


# ============================================================================
# Repository / Shaper Fixtures
# ============================================================================


@pytest.fixture
def repo() -> InMemoryUserRepository:
    return InMemoryUserRepository()


@pytest.fixture
def shaper(repo, breach_checker) -> UserInputShaper:
    return UserInputShaper(repo, breach_checker)


@pytest.fixture
def password_policy() -> PasswordPolicy:
    return PasswordPolicy()


@pytest.fixture
def create_rules(password_policy):
    return build_create_rules(password_policy)


@pytest.fixture
def update_rules(password_policy):
    return build_update_rules(password_policy)


@pytest.fixture
def list_rules():
    return build_list_rules()


# ============================================================================
# Users / Actors
# ============================================================================


@pytest.fixture
def admin_user(repo, hasher) -> UserRecord:
    return repo.create(
        username="admin",
        email="admin@example.com",
        password_hash=hasher.hash(STRONG_PASSWORD),
        role=UserRole.ADMIN,
    )


@pytest.fixture
def member_user(repo, hasher) -> UserRecord:
    return repo.create(
        username="bob",
        email="bob@old.com",
        password_hash=hasher.hash(STRONG_PASSWORD),
        status=UserStatus.ACTIVE,
    )


@pytest.fixture
def other_user(repo, hasher) -> UserRecord:
    return repo.create(
        username="carol",
        email="carol@example.com",
        password_hash=hasher.hash(STRONG_PASSWORD),
    )


@pytest.fixture
def admin_actor(admin_user) -> Actor:
    return Actor.from_user(admin_user)


@pytest.fixture
def member_actor(member_user) -> Actor:
    return Actor.from_user(member_user)
