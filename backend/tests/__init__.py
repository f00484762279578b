"""Test package initialization."""

import os

# Default settings to satisfy agrihub.core.config.Settings requirements for tests
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("ENVIRONMENT", "test")
# Cheapest bcrypt cost passlib accepts; production default is 10.
os.environ.setdefault("BCRYPT_ROUNDS", "4")
