# Routes package init
"""
ReadSync Backend — API Routes Package
======================================

Route Inventory:
    - auth.py:             POST   /auth/register
                           POST   /auth/login
    - reading_records.py:  POST   /reading-records            (sync one record)
                           GET    /reading-records            (paginated list)
                           GET    /reading-records/{fileId}
                           DELETE /reading-records/{fileId}
    - health.py:           GET    /health

Routes stay thin: parse the request, call a service, wrap the result in
`{success, message?, data?}`. Errors are raised as ReadSyncError subclasses
and rendered by the handlers in readsync.main.
"""
