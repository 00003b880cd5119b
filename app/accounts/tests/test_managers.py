"""
Tests for the email-based user manager.
"""

from datetime import timedelta

import pytest
from django.utils import timezone

from accounts.models import LoyaltyTier, User


@pytest.mark.django_db
class TestUserManager:
    """Tests for UserManager.create_user / create_superuser."""

    def test_create_user_normalizes_email(self):
        """Should lowercase the domain part of the email."""
        user = User.objects.create_user(email="Fan@EXAMPLE.com")

        assert user.email == "Fan@example.com"

    def test_create_user_without_password_is_unusable(self):
        """Should not allow password login when no password is given."""
        user = User.objects.create_user(email="fan@example.com")

        assert not user.has_usable_password()

    def test_create_user_defaults(self):
        """Should create a non-staff bronze supporter."""
        user = User.objects.create_user(email="fan@example.com")

        assert user.is_staff is False
        assert user.is_creator is False
        assert user.loyalty_tier == LoyaltyTier.BRONZE

    def test_create_user_requires_email(self):
        """Should reject an empty email."""
        with pytest.raises(ValueError):
            User.objects.create_user(email="")

    def test_create_superuser(self):
        """Should set staff and superuser flags."""
        admin = User.objects.create_superuser(email="admin@example.com", password="x" * 12)

        assert admin.is_staff is True
        assert admin.is_superuser is True


@pytest.mark.django_db
class TestAccountAge:
    def test_account_age_days(self):
        """Should count whole days since joining."""
        user = User.objects.create_user(
            email="old@example.com",
            date_joined=timezone.now() - timedelta(days=10, hours=3),
        )

        assert user.account_age_days == 10
