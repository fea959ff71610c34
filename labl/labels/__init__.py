"""Batch operations and snapshot files built on the label client."""
