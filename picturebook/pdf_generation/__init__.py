"""
Printable PDF export for generated picture books.
"""

from .builder import PAGE_SIZES, StorybookPDFBuilder, decode_data_uri

__all__ = ["PAGE_SIZES", "StorybookPDFBuilder", "decode_data_uri"]
