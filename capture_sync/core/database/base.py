# File: capture_sync/core/database/base.py

from sqlalchemy.orm import declarative_base

# The shared registry. Feature tables (key-value entries) inherit from this.
Base = declarative_base()
