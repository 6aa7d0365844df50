"""
Funnel Metrics Package.

Multi-channel metric normalization and performance-scoring engine with a thin
FastAPI service layer. Raw campaign records from a shared document collection
are normalized per channel, turned into benchmarked 0-100 scores and tiers,
aggregated by platform, campaign and time, and summarized as insights.

Subpackages:
    - api: FastAPI route handlers
    - core: Configuration, benchmark tables, errors and dependencies
    - models: Pydantic schemas and enums
    - services: Extraction, rates, scoring, aggregation, insights, dispatch
"""

__version__ = "1.0.0"
