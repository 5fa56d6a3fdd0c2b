# Routes package init
"""
LoveAlbum Backend — API Routes Package
=======================================

What:  HTTP route handlers that accept requests and return responses.
How:   Each route module handles one resource; handlers extract request
       data, call a service and shape the response.

Route Inventory:
    - albums.py:      GET/POST /api/albums, GET/PUT/DELETE /api/albums/{slug}
    - views.py:       GET /api/albums/{slug}/preview | carousel | letters
    - admin.py:       /api/admin/login, verify, logout, albums
    - notes.py:       GET/POST /api/notes
    - analytics.py:   GET/POST /api/analytics
    - categories.py:  GET /api/categories
    - uploads.py:     POST /api/upload, GET /uploads/{path}
    - health.py:      GET /health

Business logic belongs in services, not routes.
"""
