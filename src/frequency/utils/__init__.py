"""Cross-cutting helpers."""
