"""
FastAPI integration: dependencies, exception handlers and routers.
"""
