"""Adapters connecting the sync domain to storage, HTTP and the aggregator."""
