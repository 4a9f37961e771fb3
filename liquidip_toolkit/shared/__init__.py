"""Cross-cutting helpers: errors, logging, retries, settings."""
