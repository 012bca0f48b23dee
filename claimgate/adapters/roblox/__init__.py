"""Roblox adapters - Identity directory, agent presence and friend requests."""

from .friends import RobloxFriendRequests
from .identity import RobloxIdentityDirectory, profile_url
from .presence import RobloxPresenceService

__all__ = ["RobloxFriendRequests", "RobloxIdentityDirectory", "RobloxPresenceService", "profile_url"]
