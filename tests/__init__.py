"""Test package. Points settings at an in-memory database before the app is imported."""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["API_PREFIX"] = "/api"
os.environ.setdefault("LOG_LEVEL", "WARNING")
