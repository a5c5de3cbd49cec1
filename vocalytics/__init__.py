"""
Vocalytics Backend Package.

FastAPI service layer for the Vocalytics call analytics dashboard. Pulls call
logs from the telephony platform, merges them with transcription output,
scores each call for quality and rolls the scores up per campaign or agent.

Subpackages:
    - api: FastAPI route handlers
    - core: Configuration, database, and dependencies
    - models: Pydantic schemas and enums
    - services: Normalization, scoring, aggregation and supplier clients
    - sql: Parameterized SQL queries for the call store
"""

__version__ = "1.0.0"
