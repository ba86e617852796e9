"""
System-context queries for worker code.

Unlike the web app's user-scoped queries, these take no user id: the
pipeline reads and writes rows on behalf of every user. Every function
takes an open Session and commits its own single-row change.
"""
