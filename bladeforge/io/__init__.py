"""
Document file input/output for BladeForge.
"""

from .document_file import load_document, save_document, document_to_dict, DocumentFileError

__all__ = ['load_document', 'save_document', 'document_to_dict', 'DocumentFileError']
