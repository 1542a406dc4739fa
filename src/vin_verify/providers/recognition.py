"""
Recognition Providers - Multi-Backend Abstraction Layer
=======================================================

Turns captured media (bytes + MIME hint) into free text for identifier
extraction. These are collaborators of the verification engine; the engine
itself never performs recognition.

Backends:
- PaddleOCR (local, images only)
- Gemini (remote REST API, images, PDFs, audio and video)

Usage:
    from vin_verify.providers import RecognitionProviderFactory
    
    provider = RecognitionProviderFactory.create("gemini", api_key="...")
    result = provider.recognize_with_retry(content, "image/jpeg")
    print(result.text)
"""

import base64
import time
import logging
import numpy as np
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Type, Union

import httpx

from ..config import get_config
from ..core.errors import ServiceError
from ..preprocessing import DocumentPreprocessor, PreprocessConfig, PreprocessStrategy

logger = logging.getLogger(__name__)


# =============================================================================
# ENUMS AND DATA CLASSES
# =============================================================================

class ProviderType(str, Enum):
    """Supported recognition provider types."""
    PADDLEOCR = "paddleocr"
    GEMINI = "gemini"


@dataclass
class RecognitionResult:
    """
    Standardized recognition result across all providers.
    
    Attributes:
        text: Recognized free text
        confidence: Confidence score (0.0 to 1.0), 0.0 when the service gives none
        provider: Name of the provider used
        metadata: Additional provider-specific metadata
    """
    text: str
    confidence: float = 0.0
    provider: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)
    
    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "text": self.text,
            "confidence": self.confidence,
            "provider": self.provider,
            "metadata": self.metadata,
        }


@dataclass
class ProviderConfig:
    """Base configuration for recognition providers."""
    timeout: float = 60.0  # seconds
    max_retries: int = 3
    retry_delay: float = 1.0  # seconds


@dataclass
class PaddleOCRConfig(ProviderConfig):
    """PaddleOCR-specific configuration."""
    lang: str = "japan"
    use_gpu: bool = False
    det_db_box_thresh: float = 0.3
    preprocess_strategy: PreprocessStrategy = PreprocessStrategy.STANDARD


@dataclass
class GeminiConfig(ProviderConfig):
    """Gemini REST API configuration."""
    api_key: Optional[str] = None
    model: str = "gemini-2.0-flash-exp"
    endpoint: str = "https://aiplatform.googleapis.com/v1/publishers/google/models"
    document_prompt: str = (
        "Read this vehicle export/deregistration certificate and transcribe it.\n"
        "Most important: the chassis number (車台番号) printed in the top-right field, "
        "for example AAZH20-1002549. Copy hyphens and spaces exactly.\n"
        "Output one item per line in the form '<label>: <value>', starting with\n"
        "車台番号: <chassis number>\n"
        "then registration number, vehicle name, model code, engine model, first "
        "registration date, owner, user and issue date. Write 不明 for anything unreadable."
    )
    transcription_prompt: str = (
        "Transcribe this recording verbatim in its original language with natural "
        "punctuation. If a chassis number or VIN is spoken, write it on its own line "
        "as '車台番号: <value>'."
    )


# =============================================================================
# BASE PROVIDER
# =============================================================================

class RecognitionProvider(ABC):
    """
    Abstract base class for recognition providers.
    
    All backends implement ``recognize(content, mime_hint)``. Failures are
    reported as ServiceError with a human-readable message.
    """
    
    config: ProviderConfig
    _initialized: bool = False
    
    @property
    @abstractmethod
    def name(self) -> str:
        """Return the provider name."""
        ...
    
    @property
    @abstractmethod
    def is_available(self) -> bool:
        """Check if the provider is available and properly configured."""
        ...
    
    @property
    def is_initialized(self) -> bool:
        """Check if the provider has been initialized."""
        return self._initialized
    
    def supports(self, mime_hint: str) -> bool:
        """Whether this provider can handle the given MIME type."""
        return True
    
    @abstractmethod
    def initialize(self) -> None:
        """
        Prepare the backend.
        
        Raises:
            ServiceError: If initialization fails
        """
        ...
    
    @abstractmethod
    def recognize(self, content: bytes, mime_hint: str = "image/jpeg", **kwargs) -> RecognitionResult:
        """
        Recognize text in media content.
        
        Args:
            content: Raw file bytes
            mime_hint: Declared MIME type of the content
            **kwargs: Provider-specific options
            
        Returns:
            RecognitionResult with the recognized text
            
        Raises:
            ServiceError: If recognition fails
        """
        ...
    
    def recognize_with_retry(self, content: bytes, mime_hint: str = "image/jpeg", **kwargs) -> RecognitionResult:
        """
        Recognize with retry/backoff using provider config.
        """
        max_retries = getattr(self.config, "max_retries", 1) or 1
        retry_delay = getattr(self.config, "retry_delay", 0.0) or 0.0
        
        def _should_retry(exc: Exception) -> bool:
            if isinstance(exc, ServiceError):
                return exc.details.get("retryable", True)
            return isinstance(exc, (TimeoutError, ConnectionError))
        
        for attempt in range(max_retries):
            try:
                return self.recognize(content, mime_hint, **kwargs)
            except Exception as exc:
                if attempt >= max_retries - 1 or not _should_retry(exc):
                    raise
                sleep_for = retry_delay * (2 ** attempt)
                logger.warning(
                    "Retrying recognition provider %s after error (attempt %d/%d, sleep %.2fs): %s",
                    self.name,
                    attempt + 1,
                    max_retries,
                    sleep_for,
                    exc,
                )
                if sleep_for > 0:
                    time.sleep(sleep_for)
        
        raise ServiceError("Recognition failed without exception", provider=self.name)


# =============================================================================
# PADDLEOCR PROVIDER
# =============================================================================

class PaddleOCRProvider(RecognitionProvider):
    """
    Local PaddleOCR text recognition for captured document images.
    
    Recognized lines are joined with newlines so labels and values stay
    separate tokens for identifier extraction.
    """
    
    def __init__(self, config: Optional[PaddleOCRConfig] = None):
        self.config = config or PaddleOCRConfig()
        self._ocr = None
        self._initialized = False
        self._preprocessor = DocumentPreprocessor(
            config=PreprocessConfig(strategy=self.config.preprocess_strategy)
        )
    
    @property
    def name(self) -> str:
        return "PaddleOCR"
    
    @property
    def is_available(self) -> bool:
        """Check if PaddleOCR is installed."""
        try:
            from paddleocr import PaddleOCR  # noqa: F401
            return True
        except ImportError:
            return False
    
    def supports(self, mime_hint: str) -> bool:
        return (mime_hint or "").lower().startswith("image/")
    
    def initialize(self) -> None:
        """Initialize PaddleOCR engine."""
        if self._initialized:
            return
        
        if not self.is_available:
            raise ServiceError(
                "PaddleOCR is not installed. Run: pip install 'vin-verify[ocr]'",
                provider=self.name,
                details={"retryable": False},
            )
        
        try:
            from paddleocr import PaddleOCR
            
            logger.info(f"Initializing PaddleOCR (lang={self.config.lang})...")
            self._ocr = PaddleOCR(
                lang=self.config.lang,
                use_doc_orientation_classify=False,
                use_doc_unwarping=False,
                use_textline_orientation=True,
                text_det_box_thresh=self.config.det_db_box_thresh,
            )
            self._initialized = True
            logger.info("PaddleOCR initialized successfully")
        except Exception as e:
            raise ServiceError(
                f"Failed to initialize PaddleOCR: {e}",
                provider=self.name,
                details={"error": str(e), "retryable": False},
            ) from e
    
    def recognize(self, content: bytes, mime_hint: str = "image/jpeg", **kwargs) -> RecognitionResult:
        if not self.supports(mime_hint):
            raise ServiceError(
                f"Unsupported content type for local OCR: {mime_hint}",
                provider=self.name,
                details={"mime_type": mime_hint, "retryable": False},
            )
        
        if not self._initialized:
            self.initialize()
        
        try:
            image = self._preprocessor.process(self._preprocessor.decode(content))
        except ValueError as e:
            raise ServiceError(str(e), provider=self.name, details={"retryable": False}) from e
        
        try:
            result = self._ocr.predict(image)
        except Exception as e:
            raise ServiceError(
                f"OCR prediction failed: {e}",
                provider=self.name,
                details={"error": str(e)},
            ) from e
        
        text, confidence, lines = self._parse_result(result)
        return RecognitionResult(
            text=text,
            confidence=confidence,
            provider=self.name,
            metadata={"lang": self.config.lang, "lines": lines},
        )
    
    def _parse_result(self, result: Any):
        """Parse PaddleOCR v3.x result format (list of dicts)."""
        if not result:
            return "", 0.0, 0
        
        if isinstance(result, list):
            result = result[0]
        
        if isinstance(result, dict):
            texts: List[str] = list(result.get('rec_texts', []))
            scores = list(result.get('rec_scores', []))
            if texts:
                avg_score = float(np.mean(scores)) if scores else 0.0
                return "\n".join(texts), avg_score, len(texts)
        
        return "", 0.0, 0


# =============================================================================
# GEMINI PROVIDER
# =============================================================================

class GeminiProvider(RecognitionProvider):
    """
    Remote recognition through the Gemini ``generateContent`` REST API.
    
    Images and PDFs are read with the document prompt; audio and video are
    transcribed. Service error messages are passed through unchanged.
    """
    
    def __init__(self, config: Optional[GeminiConfig] = None, client: Optional[httpx.Client] = None):
        self.config = config or GeminiConfig()
        self._client = client
        self._initialized = client is not None
    
    @property
    def name(self) -> str:
        return "Gemini"
    
    @property
    def is_available(self) -> bool:
        return bool(self.config.api_key)
    
    def initialize(self) -> None:
        if self._initialized:
            return
        self._client = httpx.Client(timeout=self.config.timeout)
        self._initialized = True
    
    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
            self._initialized = False
    
    def _prompt_for(self, mime_hint: str) -> str:
        if mime_hint.startswith(("audio/", "video/")):
            return self.config.transcription_prompt
        return self.config.document_prompt
    
    def recognize(self, content: bytes, mime_hint: str = "image/jpeg", **kwargs) -> RecognitionResult:
        if not self.config.api_key:
            raise ServiceError(
                "Gemini API key is not configured (set GEMINI_API_KEY)",
                provider=self.name,
                details={"retryable": False},
            )
        if not self._initialized:
            self.initialize()
        
        mime_hint = mime_hint or "image/jpeg"
        body = {
            "contents": [{
                "role": "user",
                "parts": [
                    {"inline_data": {
                        "mime_type": mime_hint,
                        "data": base64.b64encode(content).decode("ascii"),
                    }},
                    {"text": kwargs.get("prompt") or self._prompt_for(mime_hint)},
                ],
            }],
        }
        url = f"{self.config.endpoint}/{self.config.model}:generateContent"
        
        try:
            response = self._client.post(url, params={"key": self.config.api_key}, json=body)
        except httpx.TimeoutException as e:
            raise ServiceError(f"Gemini request timed out: {e}", provider=self.name) from e
        except httpx.HTTPError as e:
            raise ServiceError(f"Gemini request failed: {e}", provider=self.name) from e
        
        if response.status_code >= 400:
            raise ServiceError(
                f"Gemini API error: {self._error_message(response)}",
                provider=self.name,
                details={
                    "status_code": response.status_code,
                    "retryable": response.status_code == 429 or response.status_code >= 500,
                },
            )
        
        try:
            data = response.json()
        except ValueError as e:
            raise ServiceError(
                "Gemini returned a non-JSON response",
                provider=self.name,
                details={"status_code": response.status_code, "retryable": False},
            ) from e
        try:
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError):
            text = None
        if not text:
            raise ServiceError(
                "Recognition returned no text",
                provider=self.name,
                details={"retryable": False},
            )
        
        return RecognitionResult(
            text=text,
            provider=self.name,
            metadata={"model": self.config.model, "mime_type": mime_hint},
        )
    
    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            data = response.json()
        except ValueError:
            return response.text or "Unknown error"
        if isinstance(data, dict) and isinstance(data.get("error"), dict):
            return data["error"].get("message") or "Unknown error"
        return "Unknown error"


# =============================================================================
# FACTORY
# =============================================================================

class RecognitionProviderFactory:
    """
    Factory for creating recognition provider instances.
    
    Usage:
        provider = RecognitionProviderFactory.create("paddleocr")
        provider = RecognitionProviderFactory.create("gemini", api_key="...")
    """
    
    _providers: Dict[ProviderType, Type[RecognitionProvider]] = {
        ProviderType.PADDLEOCR: PaddleOCRProvider,
        ProviderType.GEMINI: GeminiProvider,
    }
    
    @classmethod
    def create(
        cls,
        provider_type: Union[str, ProviderType, None] = None,
        **kwargs
    ) -> RecognitionProvider:
        """
        Create a provider instance. Backends initialize lazily on first use.
        
        Args:
            provider_type: Provider to create (defaults to the configured one)
            **kwargs: Provider-specific configuration overrides
            
        Raises:
            ValueError: If provider type is not supported
        """
        if provider_type is None:
            provider_type = get_config().recognition.provider
        if isinstance(provider_type, str):
            try:
                provider_type = ProviderType(provider_type.lower())
            except ValueError:
                available = [p.value for p in ProviderType]
                raise ValueError(
                    f"Unknown provider type: '{provider_type}'. "
                    f"Available: {available}"
                )
        
        provider_class = cls._providers.get(provider_type)
        if provider_class is None:
            raise ValueError(f"Provider not implemented: {provider_type.value}")
        
        return provider_class(config=cls._create_config(provider_type, **kwargs))
    
    @classmethod
    def _create_config(cls, provider_type: ProviderType, **kwargs) -> ProviderConfig:
        """Create provider-specific config from kwargs and global settings."""
        settings = get_config().recognition
        common = dict(
            timeout=kwargs.get('timeout', settings.timeout),
            max_retries=kwargs.get('max_retries', settings.max_retries),
            retry_delay=kwargs.get('retry_delay', settings.retry_delay),
        )
        if provider_type == ProviderType.PADDLEOCR:
            return PaddleOCRConfig(
                lang=kwargs.get('lang', settings.ocr_lang),
                use_gpu=kwargs.get('use_gpu', settings.use_gpu),
                **common,
            )
        elif provider_type == ProviderType.GEMINI:
            return GeminiConfig(
                api_key=kwargs.get('api_key', settings.gemini_api_key),
                model=kwargs.get('model', settings.gemini_model),
                endpoint=kwargs.get('endpoint', settings.gemini_endpoint),
                **common,
            )
        return ProviderConfig(**common)
    
    @classmethod
    def list_available(cls) -> List[str]:
        """List all registered provider types."""
        return [p.value for p in cls._providers.keys()]
    
    @classmethod
    def register(cls, provider_type: ProviderType, provider_class: type) -> None:
        """Register a new provider type."""
        if not issubclass(provider_class, RecognitionProvider):
            raise TypeError(
                f"Provider class must inherit from RecognitionProvider, "
                f"got {provider_class.__name__}"
            )
        cls._providers[provider_type] = provider_class
        logger.info(f"Registered recognition provider: {provider_type.value}")
