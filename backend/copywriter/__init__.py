"""Copywriter backend: generation, quality control and selection of marketing copy."""
