#!/usr/bin/env python3
"""
Roster Bot - Entry Point

Discord bot for managing players, teams and points.
The actual implementation is in the rosterbot package.

Usage:
    python bot.py                  run the bot
    python bot.py --test [text]    run a command locally without Discord
"""

if __name__ == "__main__":
    from rosterbot import main
    main()
