"""
Service layer root package.

Each subpackage implements use-cases on top of the SQLAlchemy models,
repositories and pydantic schemas. Services own the transaction; every
acting user is passed in explicitly.
"""
