"""HTTP layer of the connector, built on FastAPI.

- **main**: Application factory
- **routes**: Status and command relay routes
- **middleware**: Request pipeline and exception handlers
- **schemas**: Request-scoped log context
- **utils**: Response classes
"""
