"""
HTTP layer: exception handlers, dependencies and routers
"""
