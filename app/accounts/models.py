"""
Accounts models.

The platform identity service owns sign-up and login. This model carries
only the identity fields the economy and safety apps read: creator flag,
country for price parity, loyalty tier for discounts and the join date used
by the fraud checks.
"""

from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.db import models
from django.utils import timezone

from accounts.managers import UserManager
from core.model_mixins import UUIDPrimaryKeyMixin


class LoyaltyTier(models.TextChoices):
    """Supporter loyalty tiers (also used as creator levels)."""

    BRONZE = "bronze", "Bronze"
    SILVER = "silver", "Silver"
    GOLD = "gold", "Gold"
    PLATINUM = "platinum", "Platinum"
    DIAMOND = "diamond", "Diamond"


class User(UUIDPrimaryKeyMixin, AbstractBaseUser, PermissionsMixin):
    """
    Platform user: supporters, creators and staff.

    Fields:
        email: Primary identifier
        display_name: Public name
        is_creator: Whether the user can receive escrowed payments
        country: ISO 3166-1 alpha-2 code, used for purchasing power parity
        loyalty_tier: Supporter loyalty tier
        date_joined: Account creation time (drives new-account checks)
        last_active_at: Last time the user did anything on the platform
    """

    email = models.EmailField(
        unique=True,
        max_length=254,
        help_text="User's email address (primary identifier)",
    )
    display_name = models.CharField(
        max_length=80,
        blank=True,
        default="",
        help_text="Public display name",
    )
    is_creator = models.BooleanField(
        default=False,
        help_text="Whether this user sells messages, calls, meetings or events",
    )
    country = models.CharField(
        max_length=2,
        blank=True,
        default="",
        help_text="ISO 3166-1 alpha-2 country code",
    )
    loyalty_tier = models.CharField(
        max_length=16,
        choices=LoyaltyTier.choices,
        default=LoyaltyTier.BRONZE,
    )
    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(
        default=False,
        help_text="Staff can resolve disputes and moderate",
    )
    date_joined = models.DateTimeField(default=timezone.now)
    last_active_at = models.DateTimeField(null=True, blank=True)

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    objects = UserManager()

    class Meta:
        verbose_name = "user"
        verbose_name_plural = "users"
        ordering = ["-date_joined"]

    def __str__(self):
        return self.display_name or self.email

    @property
    def account_age_days(self) -> int:
        return (timezone.now() - self.date_joined).days
