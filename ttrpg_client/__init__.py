"""Client-side role, access and membership engine for the campaign/session platform."""

from ttrpg_client.app import ClientApp

__all__ = ["ClientApp"]
