"""media/ -- Object storage for user uploads (banner and inline images)."""
