# Services package init
"""
ReadSync Backend — Services Layer
==================================

What:  Business logic between routes (HTTP) and persistence / identity.

Service Inventory:
    - IdentityProvider (abstract): contract for the external auth backend
    - SupabaseAuthService: GoTrue REST implementation over httpx
    - auth_guard: bearer-token extraction and verification (explicit result)
    - AuthService: register/login rules and response shaping
    - ReadingRecordService: upsert, get, delete, list for reading_records
"""
