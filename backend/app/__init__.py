"""
Notebook Backend: Application Package
======================================

Analytics core of the notebook app: tracks usage events and computes
summaries over events and notes. Note CRUD and authentication are served
by the hosted backend and only read from here.

Layers:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   Services (ingestion, aggregation) │  ← validation, folds
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
