"""HTTP interface of the launcher."""
