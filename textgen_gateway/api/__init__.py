"""
API Package - FastAPI routes, dependencies and middleware.
"""
