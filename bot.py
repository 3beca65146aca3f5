#!/usr/bin/env python3
"""
MCSR PB Bot - Entry Point

Telegram bot that tracks MCSR Ranked personal bests and finished matches.
The actual implementation is in the mcsrbot package.
"""

if __name__ == "__main__":
    from mcsrbot import main
    main()
