"""Remote sync for healthsync.

Modules:
    auth     — Bearer credential lifecycle (login, lookup, clear)
    client   — Send one DailyRecord to the persistence endpoint
    backfill — Sequential, fail-forward range sync and report
    errors   — Source, sync and auth error taxonomy
"""
