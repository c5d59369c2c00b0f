"""
Book Keeper Backend - Services Layer
=====================================

Service Inventory:
    - UserService:     identity store (register, login, profile, password)
    - CatalogService:  books and book categories
    - LoanService:     issue → approve → complete ticket workflow
    - AccessPolicy:    AdminOnly / SelfOrAdmin / SelfExcludingAdmin checks
    - security:        bcrypt hashing and JWT bearer tokens

Services receive the request's AsyncSession on every call and hold no
per-request state, so the module-level singletons are safe to share.
"""
