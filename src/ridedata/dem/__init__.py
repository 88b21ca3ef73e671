"""Digital elevation model providers, HTTP client and fetch orchestration."""
