"""Gameday bot: live MLB play-by-play for Discord channels."""
