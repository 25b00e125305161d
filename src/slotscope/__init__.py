"""slotscope: watches reservation pages and emails when a slot opens."""

__version__ = "0.1.0"
