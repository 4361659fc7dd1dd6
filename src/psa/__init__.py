"""
PSA - record mapping and request dispatch for small CRUD applications.

- psa.core: errors, settings, database layer, application context
- psa.record: entities, column overrides, the record mapper
- psa.framework: controllers, dispatcher, audit logging, validation
"""

__version__ = "1.0.0"
