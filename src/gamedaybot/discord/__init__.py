"""Discord integration for the gameday bot.

The bot runs in-process with FastAPI, sharing the same event loop. It owns
the gameday slash commands and is the outbound transport for play reports.

Optional: if DISCORD_BOT_TOKEN is not set, the app runs without Discord.
"""
