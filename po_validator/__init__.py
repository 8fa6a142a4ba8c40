"""Placeholder and AI-assisted review of translations in gettext PO files."""
