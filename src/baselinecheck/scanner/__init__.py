"""File discovery, batch scanning and the scan pipeline."""
