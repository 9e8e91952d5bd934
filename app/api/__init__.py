# app/api/__init__.py
"""HTTP layer: dependencies, problem responses and routers."""
