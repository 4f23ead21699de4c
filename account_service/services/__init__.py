"""Business logic and persistence for user accounts."""
