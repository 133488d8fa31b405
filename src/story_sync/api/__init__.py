"""Reference backend serving the remote store HTTP contract."""
