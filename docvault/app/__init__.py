"""Application layer for docvault.

Components here orchestrate ingestion and reconciliation. Storage, search,
OCR and route publishing are reached only through the port interfaces.
"""
