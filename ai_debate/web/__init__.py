"""HTTP interface for the debate engine."""
