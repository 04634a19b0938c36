"""Business logic services package."""
