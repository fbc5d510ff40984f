# Routes package init
"""
Postbox Backend — API Routes Package
======================================

Route Inventory:
    - messages.py: GET    /messages              (list all)
                   GET    /messages/{id}         (single message)
                   POST   /messages              (create + link to author)
                   PUT    /messages/{id}         (partial update)
                   DELETE /messages/{id}         (delete + unlink from author)
    - users.py:    POST   /users, GET /users/{id}
    - health.py:   GET    /health

Routes stay thin: parse the request, call a service, shape the response.
"""
