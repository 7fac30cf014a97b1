"""Community services hub: bookings, capacity pools and loyalty tiers."""

__version__ = "1.0.0"
