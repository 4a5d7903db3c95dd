"""API routes and endpoints."""
