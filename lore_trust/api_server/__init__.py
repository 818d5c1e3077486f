"""
API server package — read-only HTTP interface over persisted reputation data.
"""
