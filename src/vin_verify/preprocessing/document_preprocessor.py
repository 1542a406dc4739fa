"""
Document Image Preprocessor
===========================

Image preparation for local OCR of registration documents and chassis
plates before text recognition.

Strategies:
- NONE: Decode only
- STANDARD: Cap size, grayscale, CLAHE (default)
- LOW_CONTRAST: Stronger CLAHE plus unsharp masking for faded scans
- ADAPTIVE: Pick STANDARD or LOW_CONTRAST from measured contrast
"""

import cv2
import numpy as np
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple
import logging

logger = logging.getLogger(__name__)


class PreprocessStrategy(str, Enum):
    """Preprocessing strategy enumeration."""
    NONE = 'none'
    STANDARD = 'standard'
    LOW_CONTRAST = 'low_contrast'
    ADAPTIVE = 'adaptive'


@dataclass
class PreprocessConfig:
    """Configuration for document image preprocessing."""
    
    strategy: PreprocessStrategy = PreprocessStrategy.STANDARD
    
    # Documents are downscaled to this longest side to prevent OOM
    max_dimension: int = 2048
    
    # CLAHE parameters
    clahe_clip_limit: float = 2.0
    clahe_tile_size: Tuple[int, int] = (8, 8)
    
    # Sharpening (low contrast)
    unsharp_radius: int = 1
    unsharp_amount: float = 1.5
    
    # Std dev of grayscale below this = low contrast
    low_contrast_threshold: float = 50.0


class DocumentPreprocessor:
    """
    Decodes uploaded image bytes and enhances them for OCR.
    
    Example:
        preprocessor = DocumentPreprocessor()
        image = preprocessor.decode(content)
        processed = preprocessor.process(image)
    """
    
    def __init__(
        self,
        strategy: Optional[PreprocessStrategy] = None,
        config: Optional[PreprocessConfig] = None,
    ):
        self.config = config or PreprocessConfig()
        
        if strategy is not None:
            self.config.strategy = PreprocessStrategy(strategy)
        
        self.clahe = cv2.createCLAHE(
            clipLimit=self.config.clahe_clip_limit,
            tileGridSize=self.config.clahe_tile_size
        )
        
        logger.debug(f"DocumentPreprocessor initialized with strategy={self.config.strategy.value}")
    
    @staticmethod
    def decode(content: bytes) -> np.ndarray:
        """
        Decode encoded image bytes (JPEG, PNG, ...) to a BGR array.
        
        Raises:
            ValueError: If the bytes are not a decodable image
        """
        if not content:
            raise ValueError("Image content is empty")
        buffer = np.frombuffer(content, dtype=np.uint8)
        image = cv2.imdecode(buffer, cv2.IMREAD_COLOR)
        if image is None:
            raise ValueError("Content is not a decodable image")
        return image
    
    def process(
        self,
        image: np.ndarray,
        strategy: Optional[PreprocessStrategy] = None,
    ) -> np.ndarray:
        """
        Process image for OCR.
        
        Args:
            image: Input image (BGR or grayscale)
            strategy: Override strategy for this call
            
        Returns:
            Preprocessed image (BGR format, compatible with PaddleOCR)
            
        Raises:
            ValueError: If image is invalid
        """
        if image is None or image.size == 0:
            raise ValueError("Input image is empty or None")
        
        active_strategy = PreprocessStrategy(strategy or self.config.strategy)
        
        if active_strategy == PreprocessStrategy.NONE:
            return image
        
        if len(image.shape) == 2:
            image = cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
        image = self._limit_size(image)
        
        if active_strategy == PreprocessStrategy.ADAPTIVE:
            gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
            active_strategy = PreprocessStrategy(self._suggest_strategy(gray))
            logger.debug(f"Adaptive preprocessing selected {active_strategy.value}")
        
        if active_strategy == PreprocessStrategy.LOW_CONTRAST:
            return self._process_low_contrast(image)
        return self._process_standard(image)
    
    def _process_standard(self, image: np.ndarray) -> np.ndarray:
        """Grayscale + CLAHE."""
        gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
        enhanced = self.clahe.apply(gray)
        return cv2.cvtColor(enhanced, cv2.COLOR_GRAY2BGR)
    
    def _process_low_contrast(self, image: np.ndarray) -> np.ndarray:
        """Stronger CLAHE and unsharp masking for faded scans."""
        gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
        
        strong_clahe = cv2.createCLAHE(clipLimit=4.0, tileGridSize=(4, 4))
        enhanced = strong_clahe.apply(gray)
        
        blurred = cv2.GaussianBlur(enhanced, (0, 0), self.config.unsharp_radius)
        sharpened = cv2.addWeighted(
            enhanced,
            1 + self.config.unsharp_amount,
            blurred,
            -self.config.unsharp_amount,
            0
        )
        return cv2.cvtColor(sharpened, cv2.COLOR_GRAY2BGR)
    
    def _limit_size(self, image: np.ndarray) -> np.ndarray:
        h, w = image.shape[:2]
        if max(h, w) <= self.config.max_dimension:
            return image
        scale = self.config.max_dimension / max(h, w)
        new_w, new_h = int(w * scale), int(h * scale)
        logger.warning(f"Image resized from {w}x{h} to {new_w}x{new_h} to prevent OOM")
        return cv2.resize(image, (new_w, new_h), interpolation=cv2.INTER_AREA)
    
    def analyze_image(self, image: np.ndarray) -> Dict[str, Any]:
        """Analyze image characteristics for debugging/tuning."""
        gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY) if len(image.shape) > 2 else image
        return {
            'width': image.shape[1],
            'height': image.shape[0],
            'contrast': float(np.std(gray)),
            'brightness': float(np.mean(gray)),
            'suggested_strategy': self._suggest_strategy(gray),
        }
    
    def _suggest_strategy(self, gray: np.ndarray) -> str:
        if np.std(gray) < self.config.low_contrast_threshold:
            return PreprocessStrategy.LOW_CONTRAST.value
        return PreprocessStrategy.STANDARD.value
