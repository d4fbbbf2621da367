"""Plugins bundled with the countdown bot."""
