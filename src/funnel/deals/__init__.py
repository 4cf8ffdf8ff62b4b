"""Deal pipeline -- models, schemas, repository, and dashboard aggregation.

Provides DealModel, the Pydantic wire schemas (enums travel as integers),
DealRepository for owner-scoped async CRUD and archiving, and the pure
aggregation functions behind GET /api/deals/dashboard.
"""
