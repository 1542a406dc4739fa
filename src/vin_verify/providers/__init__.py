"""
VIN Verify Recognition Providers
================================

Adapters for the external recognition services that turn captured media
into free text.

Supported providers:
- PaddleOCR (local, images)
- Gemini (remote API, images, PDFs, audio, video)
"""

from .recognition import (
    ProviderType,
    RecognitionResult,
    RecognitionProvider,
    ProviderConfig,
    PaddleOCRConfig,
    GeminiConfig,
    PaddleOCRProvider,
    GeminiProvider,
    RecognitionProviderFactory,
)

__all__ = [
    "ProviderType",
    "RecognitionResult",
    "RecognitionProvider",
    "ProviderConfig",
    "PaddleOCRConfig",
    "GeminiConfig",
    "PaddleOCRProvider",
    "GeminiProvider",
    "RecognitionProviderFactory",
]
