"""Identity and access-control service."""
