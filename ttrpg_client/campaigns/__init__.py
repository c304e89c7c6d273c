"""Campaigns feature exports."""

from .api import CampaignApi
from .store import CampaignStore

__all__ = ["CampaignApi", "CampaignStore"]
