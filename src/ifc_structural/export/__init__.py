"""Model export: plan rendering."""
