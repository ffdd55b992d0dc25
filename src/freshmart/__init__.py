"""freshmart: order lifecycle and notification fan-out for a grocery marketplace."""

__version__ = "0.1.0"
