"""blog/ -- Blog posts: authoring, reads, feeds, and search.

Layer rule: blog/ may import from core/ and auth/ (author joins and counters).
It does NOT import from api/ or media/.
"""
