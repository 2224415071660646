"""Analysis pipeline."""
