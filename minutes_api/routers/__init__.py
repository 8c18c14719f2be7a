"""FastAPI routers for the service.

Routers are grouped by domain; the service currently has one (meetings).
"""
