"""
Unit tests for ProfileService.

Tests profile reads, partial updates with email uniqueness, and the
address sub-record, against the in-memory store.
"""

from unittest.mock import Mock

import pytest

from referly.adapters.store.memory import InMemoryAccountStore
from referly.domain.exceptions import ConflictError, NotFoundError, ValidationError
from referly.domain.lifecycle import AccountLifecycle
from referly.domain.ports import Address, UpdateResult
from referly.domain.profile import Profile, ProfileService


@pytest.fixture
def ann_id(lifecycle: AccountLifecycle) -> str:
    return lifecycle.register("Ann", "Lee", "ann@x.com", "555-0100").account_id


class TestGetProfile:
    def test_returns_computed_full_name(self, profiles: ProfileService, ann_id: str) -> None:
        assert profiles.get_profile(ann_id) == Profile(
            full_name="Ann Lee", email="ann@x.com", phone_number="555-0100"
        )

    def test_pending_account_has_profile(self, profiles: ProfileService, ann_id: str) -> None:
        """Profiles are readable in any lifecycle state."""
        assert profiles.get_profile(ann_id).full_name == "Ann Lee"

    def test_unknown_account_raises_not_found(self, profiles: ProfileService) -> None:
        with pytest.raises(NotFoundError):
            profiles.get_profile("missing")


class TestUpdateProfile:
    def test_partial_update_keeps_other_fields(
        self, profiles: ProfileService, ann_id: str
    ) -> None:
        updated = profiles.update_profile(ann_id, last_name="Park")

        assert updated == Profile(full_name="Ann Park", email="ann@x.com", phone_number="555-0100")

    def test_none_fields_are_ignored(self, profiles: ProfileService, ann_id: str) -> None:
        updated = profiles.update_profile(ann_id, first_name=None, phone_number="555-0111")

        assert updated.full_name == "Ann Lee"
        assert updated.phone_number == "555-0111"

    def test_empty_update_returns_current_profile(
        self, profiles: ProfileService, ann_id: str
    ) -> None:
        assert profiles.update_profile(ann_id) == profiles.get_profile(ann_id)

    def test_email_is_normalized(self, profiles: ProfileService, ann_id: str) -> None:
        updated = profiles.update_profile(ann_id, email="  Ann.Lee@X.com ")
        assert updated.email == "ann.lee@x.com"

    def test_email_change_moves_lookup(
        self, profiles: ProfileService, memory_store: InMemoryAccountStore, ann_id: str
    ) -> None:
        profiles.update_profile(ann_id, email="new@x.com")

        assert memory_store.get_by_email("ann@x.com") is None
        assert memory_store.get_by_email("new@x.com").id == ann_id

    def test_taken_email_raises_conflict(
        self, profiles: ProfileService, lifecycle: AccountLifecycle, ann_id: str
    ) -> None:
        """Changing to another account's email is rejected and changes nothing."""
        lifecycle.register("Bo", "Kim", "bo@x.com", "555-0101")

        with pytest.raises(ConflictError):
            profiles.update_profile(ann_id, email="bo@x.com", first_name="Annie")

        assert profiles.get_profile(ann_id).full_name == "Ann Lee"

    def test_same_email_is_not_a_conflict(self, profiles: ProfileService, ann_id: str) -> None:
        assert profiles.update_profile(ann_id, email="ann@x.com").email == "ann@x.com"

    def test_blank_field_raises_validation_error(
        self, profiles: ProfileService, ann_id: str
    ) -> None:
        with pytest.raises(ValidationError):
            profiles.update_profile(ann_id, first_name="  ")

    def test_unknown_field_raises_validation_error(
        self, profiles: ProfileService, ann_id: str
    ) -> None:
        with pytest.raises(ValidationError):
            profiles.update_profile(ann_id, coins="1000")

    def test_unknown_account_raises_not_found(self, profiles: ProfileService) -> None:
        with pytest.raises(NotFoundError):
            profiles.update_profile("missing", first_name="X")

    def test_store_email_taken_maps_to_conflict(self) -> None:
        store = Mock()
        store.update_profile.return_value = UpdateResult.EMAIL_TAKEN
        service = ProfileService(store=store)

        with pytest.raises(ConflictError):
            service.update_profile("some-id", email="dup@x.com")

        store.update_profile.assert_called_once_with("some-id", {"email": "dup@x.com"})


class TestAddress:
    def test_address_not_set_raises_not_found(
        self, profiles: ProfileService, ann_id: str
    ) -> None:
        with pytest.raises(NotFoundError):
            profiles.get_address(ann_id)

    def test_set_then_get(self, profiles: ProfileService, ann_id: str) -> None:
        address = Address(line1="1 Main St", city="Springfield", country="US")

        assert profiles.add_or_update_address(ann_id, address) == address
        assert profiles.get_address(ann_id) == address

    def test_update_replaces_whole_record(self, profiles: ProfileService, ann_id: str) -> None:
        profiles.add_or_update_address(
            ann_id, Address(line1="1 Main St", line2="Apt 4", city="Springfield")
        )
        profiles.add_or_update_address(ann_id, Address(line1="9 Elm Rd", city="Shelbyville"))

        stored = profiles.get_address(ann_id)
        assert stored.line1 == "9 Elm Rd"
        assert stored.line2 is None

    def test_set_for_unknown_account_raises_not_found(self, profiles: ProfileService) -> None:
        with pytest.raises(NotFoundError):
            profiles.add_or_update_address("missing", Address(city="Nowhere"))

    def test_get_for_unknown_account_raises_not_found(self, profiles: ProfileService) -> None:
        with pytest.raises(NotFoundError):
            profiles.get_address("missing")
