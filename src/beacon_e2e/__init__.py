"""End-to-end harness for running a local cluster of beacon nodes."""
