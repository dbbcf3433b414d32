"""Campus societies notification service."""
