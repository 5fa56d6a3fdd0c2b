# Services package init
"""
LoveAlbum Backend — Services Layer
===================================

What:  Business logic between routes (HTTP) and the database.
How:   Each service is a class with a module-level singleton; methods take
       the request's AsyncSession and raise app.exceptions errors.

Service Inventory:
    - AlbumService:      album create / read / list / update / visibility / delete
    - AlbumCache:        in-process TTL cache for single-album reads
    - FileService:       upload validation, storage, chunk assembly, serving, cleanup
    - NoteService:       album guestbook notes
    - AnalyticsService:  per-day event counters and totals
    - AuthService:       bcrypt passwords and JWT admin sessions
    - CategoryService:   gallery categories with public album counts
    - ViewService:       preview card, carousel and flipbook payloads
"""
