"""
Core services: the search ranking engine and the refresh-token rotation guard.

Services never reach the global `models.storage`; callers inject a session or a store.
"""
