# File: ingest_engine/core/database/base.py

from sqlalchemy.orm import declarative_base

# The shared registry. The observability tables (events, blob metadata) inherit from this.
Base = declarative_base()
