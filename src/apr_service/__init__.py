"""SSV Network APR sampling service."""
