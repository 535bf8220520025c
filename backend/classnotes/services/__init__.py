"""
ClassNotes Backend - Services Layer
=====================================

What:  Business logic between routes (HTTP) and the database.
How:   Services receive the request's AsyncSession per call and hold no
       per-request state. create_app() builds one instance of each and
       stores it on app.state; routes get them through dependencies.

Service Inventory:
    - PasswordHasher / TokenSigner (abstract): security primitives
    - Argon2PasswordHasher / JWTTokenSigner: argon2-cffi and PyJWT backends
    - AuthService: accounts, login and token verification
    - CatalogService: classes, semesters and subjects
    - FileStore: upload validation, blob storage and removal
    - NoteService: orchestrates upload → store → persist for notes
"""
