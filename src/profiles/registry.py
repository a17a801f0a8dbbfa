"""Ordered vendor profile registry."""

from src.utils.logger import get_logger

from .base import VendorProfile
from .vendors import A101Profile, DefaultProfile, FLOProfile, TrendyolProfile

logger = get_logger(__name__)


def default_profiles() -> list[VendorProfile]:
    """Built-in profiles in priority order, fallback last."""
    return [TrendyolProfile(), A101Profile(), FLOProfile(), DefaultProfile()]


class ProfileRegistry:
    """First-match selection over an ordered list of profiles.

    A :class:`DefaultProfile` is appended when the list does not end
    with one, so :meth:`select` always returns a profile.

    Args:
        profiles: Profiles in priority order. Defaults to
            :func:`default_profiles`.
    """

    def __init__(self, profiles: list[VendorProfile] | None = None) -> None:
        self.profiles = list(profiles) if profiles is not None else default_profiles()
        if not self.profiles or not isinstance(self.profiles[-1], DefaultProfile):
            self.profiles.append(DefaultProfile())

    @property
    def names(self) -> list[str]:
        return [profile.name for profile in self.profiles]

    def select(self, text: str) -> VendorProfile:
        """Return the first profile whose predicate accepts ``text``.

        Args:
            text: Page text folded to ASCII lowercase.
        """
        for profile in self.profiles:
            if profile.matches(text):
                logger.info("Selected vendor profile '%s'", profile.name)
                return profile
        # Unreachable while the fallback is last
        return self.profiles[-1]
