"""User interfaces for NOT10."""
