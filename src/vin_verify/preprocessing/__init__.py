"""
Document Image Preprocessing Module
===================================

Usage:
    from vin_verify.preprocessing import DocumentPreprocessor
    
    preprocessor = DocumentPreprocessor()
    processed = preprocessor.process(preprocessor.decode(content))
"""

from .document_preprocessor import (
    DocumentPreprocessor,
    PreprocessConfig,
    PreprocessStrategy,
)

__all__ = [
    'DocumentPreprocessor',
    'PreprocessConfig',
    'PreprocessStrategy',
]
