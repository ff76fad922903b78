"""Judge prompt, schema, extraction and scoring strategies."""
