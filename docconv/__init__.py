"""Assemble uploaded images, text documents and PDFs into one output artifact.

Packages:
- docconv.docs: data model, ingestion, ordering and format writers
- docconv.image: decode / enhance / encode rasters
- docconv.render: font handling and the cover page
- docconv.pipeline: the conversion orchestrator
"""
