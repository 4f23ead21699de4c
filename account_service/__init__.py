"""User account service: registration, login and role-based administration."""
