# Services package init
"""
Postbox Backend — Services Layer
==================================

What:  Business logic between routes (HTTP) and the database (persistence).
How:   Services take the request's AsyncSession plus validated schemas,
       apply the rules, and return response schemas or raise app errors.

Service Inventory:
    - MessageService: message CRUD, delegating list upkeep to backrefs
    - backrefs:       locks authors and links/unlinks message ids
    - UserService:    user creation, lookup and password hashing
"""
