"""Core logic for Coda Doc Exporter.

The Gradio UI lives in `app.py`. This package contains:
- a small client for the Coda REST API
- selection state (tables, columns, attribute overrides)
- the pure projection of a table into column- or row-centric JSON
- persistence of credentials and saved documents
"""
