"""Telegram bot caller package.

Contains the message handlers, URL extraction and response formatting used
by the Telegram front end. The bot only consumes the scraping core; it adds
no scraping behaviour of its own.
"""
