"""
Name: User Use Cases Tests

Responsibilities:
  - Validate list/get/create/update/delete flows (403/404/422/ok)
  - Verify authorization runs before shaping and before persistence
  - Verify status changes need the extra admin check
  - Verify passwords are hashed before reaching the repository
"""

from unittest.mock import MagicMock

import pytest

from useradmin.application.input_shaping import UserInputShaper
from useradmin.application.usecases.users import (
    CreateUserUseCase,
    DeleteUserUseCase,
    GetUserUseCase,
    ListUsersUseCase,
    UpdateUserUseCase,
    UserErrorCode,
)
from useradmin.domain.entities import UserStatus
from useradmin.domain.user_policy import Actor
from useradmin.infrastructure.repositories.in_memory import InMemoryUserRepository

pytestmark = pytest.mark.unit

STRONG_PASSWORD = "N3w!Password"


@pytest.fixture
def shaper_spy(shaper):
    return MagicMock(wraps=shaper)


@pytest.fixture
def create_uc(repo, shaper_spy, create_rules, hasher):
    return CreateUserUseCase(repo, shaper_spy, create_rules, hasher)


@pytest.fixture
def update_uc(repo, shaper_spy, update_rules, hasher):
    return UpdateUserUseCase(repo, shaper_spy, update_rules, hasher)


# ============================================================================
# Create
# ============================================================================


class TestCreateUser:
    def test_admin_creates_active_user_by_default(self, create_uc, admin_actor, repo):
        result = create_uc.execute(
            admin_actor,
            {
                "username": "dave",
                "email": "dave@example.com",
                "password": STRONG_PASSWORD,
                "password_confirmation": STRONG_PASSWORD,
            },
        )

        assert result.error is None
        assert result.user.status == UserStatus.ACTIVE
        assert result.user.password_hash == f"hashed::{STRONG_PASSWORD}"
        assert repo.find_by_id(result.user.id) == result.user

    def test_member_cannot_create(self, create_uc, member_actor, shaper_spy):
        result = create_uc.execute(member_actor, {"username": "x"})

        assert result.error.code == UserErrorCode.FORBIDDEN
        shaper_spy.shape.assert_not_called()

    def test_invalid_payload_is_not_persisted(self, create_uc, admin_actor, repo):
        before = len(repo.all())

        result = create_uc.execute(
            admin_actor, {"username": "a", "email": "bad-email", "password": "pw"}
        )

        assert result.error.code == UserErrorCode.VALIDATION_ERROR
        assert "email" in result.error.errors
        assert len(repo.all()) == before

    def test_storage_duplicate_maps_to_validation_error(
        self, admin_actor, create_rules, hasher
    ):
        class RacyRepository(InMemoryUserRepository):
            def exists_by_field(self, field, value, exclude_id=None):
                return False

        repo = RacyRepository()
        repo.create(
            username="taken", email="taken@example.com", password_hash="h"
        )
        use_case = CreateUserUseCase(
            repo, UserInputShaper(repo), create_rules, hasher
        )

        result = use_case.execute(
            admin_actor,
            {
                "username": "taken",
                "email": "new@example.com",
                "password": STRONG_PASSWORD,
                "password_confirmation": STRONG_PASSWORD,
            },
        )

        assert result.error.code == UserErrorCode.VALIDATION_ERROR
        assert result.error.errors == {
            "username": ["The username has already been taken."]
        }


# ============================================================================
# Update
# ============================================================================


class TestUpdateUser:
    def test_member_updates_own_profile(self, update_uc, member_actor, member_user):
        result = update_uc.execute(
            member_actor, member_user.id, {"username": "bob", "email": "b@x.com"}
        )

        assert result.error is None
        assert result.user.email == "b@x.com"
        assert result.user.status == member_user.status
        assert result.user.password_hash == member_user.password_hash

    def test_member_cannot_update_others_and_no_shaping_happens(
        self, update_uc, member_actor, other_user, shaper_spy
    ):
        result = update_uc.execute(
            member_actor, other_user.id, {"username": "bob", "email": "b@x.com"}
        )

        assert result.error.code == UserErrorCode.FORBIDDEN
        shaper_spy.shape.assert_not_called()

    def test_member_status_change_is_denied(
        self, update_uc, member_actor, member_user, repo
    ):
        result = update_uc.execute(
            member_actor,
            member_user.id,
            {"username": "bob", "email": "bob@old.com", "status": "inactive"},
        )

        assert result.error.code == UserErrorCode.FORBIDDEN
        assert repo.find_by_id(member_user.id).status == UserStatus.ACTIVE

    def test_member_resending_current_status_is_allowed(
        self, update_uc, member_actor, member_user
    ):
        result = update_uc.execute(
            member_actor,
            member_user.id,
            {"username": "bob", "email": "bob@old.com", "status": "active"},
        )

        assert result.error is None

    def test_admin_changes_status(self, update_uc, admin_actor, member_user):
        result = update_uc.execute(
            admin_actor,
            member_user.id,
            {"username": "bob", "email": "bob@old.com", "status": "suspended"},
        )

        assert result.user.status == UserStatus.SUSPENDED

    def test_new_password_is_hashed(self, update_uc, member_actor, member_user):
        result = update_uc.execute(
            member_actor,
            member_user.id,
            {"username": "bob", "email": "bob@old.com", "password": STRONG_PASSWORD},
        )

        assert result.user.password_hash == f"hashed::{STRONG_PASSWORD}"

    def test_duplicate_email_is_validation_error(
        self, update_uc, admin_actor, member_user, other_user
    ):
        result = update_uc.execute(
            admin_actor,
            member_user.id,
            {"username": "bob", "email": other_user.email},
        )

        assert result.error.code == UserErrorCode.VALIDATION_ERROR
        assert result.error.errors["email"] == ["The email has already been taken."]

    def test_missing_target_is_not_found(self, update_uc, admin_actor):
        result = update_uc.execute(admin_actor, 999, {"username": "x"})

        assert result.error.code == UserErrorCode.NOT_FOUND


# ============================================================================
# Get / Delete / List
# ============================================================================


class TestGetUser:
    def test_member_sees_self(self, repo, member_actor, member_user):
        result = GetUserUseCase(repo).execute(member_actor, member_user.id)
        assert result.user == member_user

    def test_member_cannot_see_others(self, repo, member_actor, other_user):
        result = GetUserUseCase(repo).execute(member_actor, other_user.id)
        assert result.error.code == UserErrorCode.FORBIDDEN

    def test_not_found_before_policy(self, repo):
        result = GetUserUseCase(repo).execute(Actor(id=1), 404)
        assert result.error.code == UserErrorCode.NOT_FOUND


class TestDeleteUser:
    def test_admin_deletes(self, repo, admin_actor, member_user):
        result = DeleteUserUseCase(repo).execute(admin_actor, member_user.id)

        assert result.user == member_user
        assert repo.find_by_id(member_user.id) is None

    def test_member_cannot_delete_self(self, repo, member_actor, member_user):
        result = DeleteUserUseCase(repo).execute(member_actor, member_user.id)

        assert result.error.code == UserErrorCode.FORBIDDEN
        assert repo.find_by_id(member_user.id) is not None

    def test_missing_user(self, repo, admin_actor):
        result = DeleteUserUseCase(repo).execute(admin_actor, 12345)
        assert result.error.code == UserErrorCode.NOT_FOUND


class TestListUsers:
    @pytest.fixture
    def list_uc(self, repo, shaper, list_rules):
        return ListUsersUseCase(repo, shaper, list_rules)

    def test_member_cannot_list(self, list_uc, member_actor):
        assert list_uc.execute(member_actor).error.code == UserErrorCode.FORBIDDEN

    def test_admin_lists_with_defaults(
        self, list_uc, admin_actor, member_user, other_user
    ):
        page = list_uc.execute(admin_actor).page

        assert page.total == 3
        assert page.page == 1
        assert page.per_page == 10
        assert [u.id for u in page.items] == sorted(u.id for u in page.items)

    def test_username_filter_is_substring(
        self, list_uc, admin_actor, member_user, other_user
    ):
        page = list_uc.execute(admin_actor, {"username": "AR"}).page

        assert [u.username for u in page.items] == ["carol"]

    def test_pagination(self, list_uc, admin_actor, member_user, other_user):
        page = list_uc.execute(admin_actor, {"per_page": "2", "page": "2"}).page

        assert page.total == 3
        assert len(page.items) == 1
        assert page.last_page == 2

    def test_invalid_query_is_validation_error(self, list_uc, admin_actor):
        result = list_uc.execute(admin_actor, {"per_page": "500"})

        assert result.error.code == UserErrorCode.VALIDATION_ERROR
        assert "per_page" in result.error.errors
