"""HTTP surface of the order relay."""
