"""Command implementations behind the ``liquidip`` CLI."""
