"""Input/output: decoding, delimited text, workbooks and config."""
