"""Log format detection, record extraction and timestamp normalization."""
