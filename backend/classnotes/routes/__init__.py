"""
ClassNotes Backend - API Routes Package
=========================================

What:  HTTP route handlers that accept requests and return responses.

Route Inventory:
    - auth.py:     POST /api/register, POST /api/login
    - users.py:    GET/POST /api/users, DELETE /api/users/{id}
    - catalog.py:  GET/POST/DELETE for /api/classes, /api/semesters,
                   /api/subjects
    - notes.py:    GET/POST /api/notes, DELETE /api/notes/{id}
    - health.py:   GET /health

Design Principle:
    Routes are THIN. They extract data from the request, call a service
    and pick the status code. Business rules live in services.

Auth:
    Every /api route except register and login depends on require_user.
"""
