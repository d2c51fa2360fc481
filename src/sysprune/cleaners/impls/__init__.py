"""Built-in OS cleanup catalogue; each module exports one ``CLEANER``."""
