"""orgpick - outline headings ranked by urgency and frecency."""

__version__ = "0.1.0"
