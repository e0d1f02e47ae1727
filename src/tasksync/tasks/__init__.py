"""Task model, markdown parsing, layout planning, reconciliation and I/O."""
