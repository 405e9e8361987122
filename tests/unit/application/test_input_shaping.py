"""
Name: User Input Shaper Tests

Responsibilities:
  - Validate shaping for create/update/list rule sets (errors, drops, defaults)
  - Verify uniqueness exclusion for the target's own row
  - Verify password policy and optional breach check
  - Verify output shaping never carries passwords

Notes:
  - In-memory repository; fake breach checker (no network)
"""

import pytest

from useradmin.application.input_shaping import (
    FieldRule,
    PasswordPolicy,
    RuleSet,
    Unique,
    UserInputShaper,
    hash_sensitive_fields,
    required,
    shape_output,
)
from useradmin.application.user_rules import (
    PAGE_MAX,
    build_create_rules,
    build_update_rules,
)
from useradmin.domain.entities import UserStatus

STRONG_PASSWORD = "S3cure!pass"

pytestmark = pytest.mark.unit


def _create_payload(**overrides):
    payload = {
        "username": "alice",
        "email": "alice@example.com",
        "password": STRONG_PASSWORD,
        "password_confirmation": STRONG_PASSWORD,
    }
    payload.update(overrides)
    return payload


# ============================================================================
# Create
# ============================================================================


class TestCreateShaping:
    def test_status_defaults_to_active_when_omitted(self, shaper, create_rules):
        result = shaper.shape(_create_payload(), create_rules)

        assert result.ok
        assert result.payload == {
            "username": "alice",
            "email": "alice@example.com",
            "password": STRONG_PASSWORD,
            "status": UserStatus.ACTIVE,
        }

    def test_explicit_status_is_converted_to_enum(self, shaper, create_rules):
        result = shaper.shape(_create_payload(status="pending"), create_rules)

        assert result.payload["status"] is UserStatus.PENDING

    def test_invalid_email_reports_email_violation(self, shaper, create_rules):
        result = shaper.shape(
            {"username": "a", "email": "bad-email", "password": "pw"}, create_rules
        )

        assert not result.ok
        assert result.failure.errors["email"] == [
            "The email field must be a valid email address."
        ]

    @pytest.mark.parametrize(
        "address",
        ["a..b@example.com", ".bob@example.com", "bob.@example.com", "bob@", "@x.com"],
    )
    def test_malformed_addresses_are_rejected(self, shaper, create_rules, address):
        result = shaper.shape(_create_payload(email=address), create_rules)

        assert not result.ok
        assert result.failure.errors["email"] == [
            "The email field must be a valid email address."
        ]

    def test_plus_addressing_is_accepted(self, shaper, create_rules):
        result = shaper.shape(
            _create_payload(email="alice+admin@example.com"), create_rules
        )

        assert result.ok
        assert result.payload["email"] == "alice+admin@example.com"

    def test_all_failures_are_collected(self, shaper, create_rules):
        result = shaper.shape({}, create_rules)

        assert result.failure.errors == {
            "username": ["The username field is required."],
            "email": ["The email field is required."],
            "password": ["The password field is required."],
        }

    def test_weak_password_lists_every_broken_rule(self, shaper, create_rules):
        result = shaper.shape(
            _create_payload(password="pw", password_confirmation="pw"), create_rules
        )

        assert result.failure.errors["password"] == [
            "The password field must be at least 8 characters.",
            "The password field must contain at least one uppercase "
            "and one lowercase letter.",
            "The password field must contain at least one number.",
            "The password field must contain at least one symbol.",
        ]

    def test_password_confirmation_must_match(self, shaper, create_rules):
        result = shaper.shape(
            _create_payload(password_confirmation="Other!123"), create_rules
        )

        assert result.failure.errors["password"] == [
            "The password field confirmation does not match."
        ]

    def test_confirmation_not_required_when_policy_disables_it(self, shaper):
        rules = build_create_rules(PasswordPolicy(require_confirmation=False))
        result = shaper.shape(
            _create_payload(password_confirmation=None), rules
        )

        assert result.ok

    def test_unknown_fields_are_dropped(self, shaper, create_rules):
        result = shaper.shape(_create_payload(role="admin", id=42), create_rules)

        assert "role" not in result.payload
        assert "id" not in result.payload
        assert "password_confirmation" not in result.payload

    def test_strings_are_trimmed(self, shaper, create_rules):
        result = shaper.shape(
            _create_payload(username="  alice  ", email=" alice@example.com "),
            create_rules,
        )

        assert result.payload["username"] == "alice"
        assert result.payload["email"] == "alice@example.com"

    def test_blank_string_counts_as_missing(self, shaper, create_rules):
        result = shaper.shape(_create_payload(username="   "), create_rules)

        assert result.failure.errors["username"] == ["The username field is required."]

    def test_username_max_length(self, shaper, create_rules):
        result = shaper.shape(_create_payload(username="x" * 41), create_rules)

        assert result.failure.errors["username"] == [
            "The username field must not be greater than 40 characters."
        ]

    def test_non_string_username_rejected(self, shaper, create_rules):
        result = shaper.shape(_create_payload(username=123), create_rules)

        assert result.failure.errors["username"] == [
            "The username field must be a string."
        ]

    def test_invalid_status_rejected(self, shaper, create_rules):
        result = shaper.shape(_create_payload(status="banned"), create_rules)

        assert result.failure.errors["status"] == ["The selected status is invalid."]

    def test_duplicate_username_and_email_conflict(
        self, shaper, create_rules, member_user
    ):
        result = shaper.shape(
            _create_payload(username="bob", email="BOB@old.com"), create_rules
        )

        assert result.failure.errors["username"] == [
            "The username has already been taken."
        ]
        assert result.failure.errors["email"] == ["The email has already been taken."]
        assert result.failure.conflicting_fields == ("username", "email")


# ============================================================================
# Update
# ============================================================================


class TestUpdateShaping:
    def test_self_update_keeps_only_supplied_fields(
        self, shaper, update_rules, member_user
    ):
        result = shaper.shape(
            {"username": "bob", "email": "b@x.com"},
            update_rules,
            exclude_id=member_user.id,
        )

        assert result.ok
        assert result.payload == {"username": "bob", "email": "b@x.com"}

    @pytest.mark.parametrize("password", [None, ""])
    def test_empty_optional_password_is_dropped(
        self, shaper, update_rules, member_user, password
    ):
        result = shaper.shape(
            {"username": "bob", "email": "bob@old.com", "password": password},
            update_rules,
            exclude_id=member_user.id,
        )

        assert result.ok
        assert "password" not in result.payload
        assert "status" not in result.payload

    def test_password_is_validated_when_present(
        self, shaper, update_rules, member_user
    ):
        result = shaper.shape(
            {"username": "bob", "email": "bob@old.com", "password": "short"},
            update_rules,
            exclude_id=member_user.id,
        )

        assert "password" in result.failure.errors

    def test_password_update_does_not_require_confirmation(
        self, shaper, update_rules, member_user
    ):
        result = shaper.shape(
            {"username": "bob", "email": "bob@old.com", "password": STRONG_PASSWORD},
            update_rules,
            exclude_id=member_user.id,
        )

        assert result.payload["password"] == STRONG_PASSWORD

    def test_own_email_does_not_conflict(self, shaper, update_rules, member_user):
        result = shaper.shape(
            {"username": member_user.username, "email": member_user.email},
            update_rules,
            exclude_id=member_user.id,
        )

        assert result.ok

    def test_other_users_email_conflicts(
        self, shaper, update_rules, member_user, other_user
    ):
        result = shaper.shape(
            {"username": "bob", "email": other_user.email},
            update_rules,
            exclude_id=member_user.id,
        )

        assert result.failure.errors == {
            "email": ["The email has already been taken."]
        }

    def test_present_status_must_be_valid(self, shaper, update_rules, member_user):
        result = shaper.shape(
            {"username": "bob", "email": "bob@old.com", "status": "deleted"},
            update_rules,
            exclude_id=member_user.id,
        )

        assert result.failure.errors["status"] == ["The selected status is invalid."]

    def test_absent_status_gets_no_default(self, shaper, update_rules, member_user):
        result = shaper.shape(
            {"username": "bob", "email": "bob@old.com"},
            update_rules,
            exclude_id=member_user.id,
        )

        assert "status" not in result.payload


# ============================================================================
# Idempotence
# ============================================================================


def test_shaping_is_idempotent(shaper, create_rules, member_user):
    raw = _create_payload(status="inactive", extra="ignored")

    first = shaper.shape(raw, create_rules)
    second = shaper.shape(raw, create_rules)

    assert first == second
    assert raw["password"] == STRONG_PASSWORD


def test_failures_are_idempotent(shaper, create_rules):
    raw = {"username": "a", "email": "bad-email", "password": "pw"}

    assert shaper.shape(raw, create_rules) == shaper.shape(raw, create_rules)


# ============================================================================
# Breach check
# ============================================================================


class TestBreachCheck:
    @pytest.fixture
    def rules(self):
        return build_update_rules(PasswordPolicy(check_breaches=True))

    def test_leaked_password_rejected(self, shaper, rules, member_user):
        result = shaper.shape(
            {"username": "bob", "email": "bob@old.com", "password": "P4ssword!"},
            rules,
            exclude_id=member_user.id,
        )

        assert result.failure.errors["password"] == [
            "The given password has appeared in a data leak. "
            "Please choose a different password."
        ]

    def test_clean_password_accepted(self, shaper, rules, member_user, breach_checker):
        result = shaper.shape(
            {"username": "bob", "email": "bob@old.com", "password": STRONG_PASSWORD},
            rules,
            exclude_id=member_user.id,
        )

        assert result.ok
        assert breach_checker.calls == [STRONG_PASSWORD]

    def test_remote_check_skipped_for_locally_weak_password(
        self, shaper, rules, member_user, breach_checker
    ):
        shaper.shape(
            {"username": "bob", "email": "bob@old.com", "password": "weak"},
            rules,
            exclude_id=member_user.id,
        )

        assert breach_checker.calls == []

    def test_check_disabled_by_default(
        self, shaper, update_rules, member_user, breach_checker
    ):
        result = shaper.shape(
            {"username": "bob", "email": "bob@old.com", "password": "P4ssword!"},
            update_rules,
            exclude_id=member_user.id,
        )

        assert result.ok
        assert breach_checker.calls == []


# ============================================================================
# List
# ============================================================================


class TestListShaping:
    def test_defaults_applied(self, shaper, list_rules):
        assert shaper.shape({}, list_rules).payload == {"per_page": 10, "page": 1}

    def test_numeric_strings_are_converted(self, shaper, list_rules):
        result = shaper.shape({"per_page": "25", "page": "3"}, list_rules)

        assert result.payload == {"per_page": 25, "page": 3}

    @pytest.mark.parametrize(
        "query,field,message",
        [
            ({"per_page": "0"}, "per_page", "The per page field must be at least 1."),
            (
                {"per_page": "101"},
                "per_page",
                "The per page field must not be greater than 100.",
            ),
            ({"page": "abc"}, "page", "The page field must be an integer."),
            ({"page": "0"}, "page", "The page field must be at least 1."),
            (
                {"page": "99999999999999999999999"},
                "page",
                "The page field must not be greater than 10000000.",
            ),
            ({"status": "gone"}, "status", "The selected status is invalid."),
        ],
    )
    def test_invalid_query(self, shaper, list_rules, query, field, message):
        assert shaper.shape(query, list_rules).failure.errors[field] == [message]

    def test_last_allowed_page_is_accepted(self, shaper, list_rules):
        result = shaper.shape({"page": str(PAGE_MAX)}, list_rules)

        assert result.payload["page"] == PAGE_MAX

    def test_filters_pass_through(self, shaper, list_rules):
        result = shaper.shape(
            {"username": "bo", "email": "bob@old.com", "status": "active"},
            list_rules,
        )

        assert result.payload["username"] == "bo"
        assert result.payload["email"] == "bob@old.com"
        assert result.payload["status"] is UserStatus.ACTIVE


# ============================================================================
# Output / hashing
# ============================================================================


def test_output_never_contains_password(member_user):
    out = shape_output(member_user.attributes())

    assert "password" not in out
    assert "password_hash" not in out
    assert out["username"] == "bob"


def test_output_drops_plain_password_even_without_rules():
    out = shape_output(
        {"username": "bob", "password": "x", "password_confirmation": "x"}
    )

    assert out == {"username": "bob"}


def test_hash_sensitive_fields_returns_new_mapping(hasher, create_rules):
    payload = {"username": "alice", "password": STRONG_PASSWORD}

    hashed = hash_sensitive_fields(payload, create_rules, hasher)

    assert hashed["password"] == f"hashed::{STRONG_PASSWORD}"
    assert payload["password"] == STRONG_PASSWORD


def test_unique_without_repository_is_a_wiring_error():
    rules = RuleSet(
        name="unwired",
        rules=(FieldRule("username", (required, Unique("users", "username"))),),
    )

    with pytest.raises(RuntimeError):
        UserInputShaper().shape({"username": "x"}, rules)
