"""
Rate Intelligence Backend Package.

Competitive rate intelligence and recommendation pipeline for hotel revenue
management. Collects competitor rates, computes market statistics and produces
confidence-scored rate suggestions that a revenue manager can review and apply.

Subpackages:
    - api: FastAPI route handlers
    - core: Configuration, exceptions, database and storage capabilities
    - models: Pydantic schemas and enums
    - services: Collector, market statistics, recommendation engine, pipeline
    - sql: Parameterized SQL queries and schema DDL
"""

__version__ = "1.0.0"
