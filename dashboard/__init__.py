"""
Home Dashboard - Server Package
================================
The web server behind the home-automation dashboard.

This package provides:
- FastAPI web application serving the dashboard pages (desktop/mobile)
- Session-cookie login backed by a flat users.json file
- Per-key JSON blob storage under data/
- Device list / toggle / brightness API polled by the dashboard grid

Architecture:
    main.py     -> FastAPI app creation, error handlers, static mounts
    config.py   -> Read config.yaml and the session secret
    users.py    -> Account storage and bcrypt password checks
    sessions.py -> Server-held sessions, signed cookies, route gating
    storage.py  -> Per-key JSON document store
    devices.py  -> Device registry and status snapshot
    pages.py    -> Mobile-aware HTML page routes
    routes.py   -> Auth form endpoints and the JSON API
    eventlog.py -> Console + per-day file event log
    jsonfile.py -> Atomic JSON file helpers
"""
