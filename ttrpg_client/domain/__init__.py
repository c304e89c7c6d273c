"""Shared engine: roles, access modes, snapshot cache and the action runner."""
