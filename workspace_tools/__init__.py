"""Workspace tools.

Romanian identity card OCR (Tesseract with OpenCV preprocessing and
rule-based field extraction) and an MCP server that fetches pages from
popular online documentation sites.
"""

__version__ = "0.1.0"
