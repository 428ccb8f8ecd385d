"""On-disk peeling reports."""
