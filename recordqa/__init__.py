"""RecordQA - natural-language questions over imported maintenance records."""
