"""Core document model, path lookup and merge engine (no CLI or network code)."""
