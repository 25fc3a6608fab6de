"""HTTP trigger surface for cloudkeeper operations."""
