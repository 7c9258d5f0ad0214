"""
Service layer: credential hashing, tokens, authentication and owner-scoped
task operations. Services return ``ServiceResult`` values and depend on the
store protocols in ``app.services.stores`` rather than on SQLAlchemy.
"""
