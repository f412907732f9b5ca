"""
Module: story_gen.utils.device
Purpose: Device and dtype selection for text-generation pipelines
Dependencies: torch
Author: Generated for StoryGenerator
"""

import platform
import torch
from typing import Optional, Dict, Any
import logging

logger = logging.getLogger(__name__)


def detect_device(prefer_device: Optional[str] = None) -> str:
    """
    Detect the best available compute device for PyTorch.

    Priority order:
    1. User-specified device (if provided and available)
    2. CUDA for NVIDIA GPUs
    3. MPS (Metal Performance Shaders) for Apple Silicon
    4. CPU fallback

    Args:
        prefer_device: Optional device preference ("cuda", "mps", "cpu")

    Returns:
        Device string: "cuda", "mps", or "cpu"

    Example:
        >>> detect_device(prefer_device="cpu")
        'cpu'
    """
    if prefer_device:
        prefer_device = prefer_device.lower()

        if prefer_device == "cpu":
            logger.info("Using user-specified CPU device")
            return "cpu"
        if prefer_device == "cuda" and torch.cuda.is_available():
            logger.info("Using user-specified CUDA device")
            return "cuda"
        if prefer_device == "mps" and _mps_available():
            logger.info("Using user-specified MPS device")
            return "mps"

        logger.warning(f"Device '{prefer_device}' not available, falling back to auto-detection")

    if torch.cuda.is_available():
        logger.info(f"Auto-detected CUDA device: {torch.cuda.get_device_name(0)}")
        return "cuda"

    if _mps_available():
        logger.info("Auto-detected MPS (Apple Silicon) device")
        return "mps"

    logger.info("No GPU detected, using CPU")
    return "cpu"


def select_dtype(device: str, quantized: bool = True) -> torch.dtype:
    """
    Pick the weight dtype for a pipeline.

    Reduced precision only pays off on a GPU; CPU inference stays in float32.

    Args:
        device: Device string from detect_device()
        quantized: Whether reduced-precision weights were requested

    Returns:
        torch dtype to pass as ``torch_dtype``
    """
    if quantized and device in ("cuda", "mps"):
        return torch.float16
    return torch.float32


def empty_cache(device: str) -> None:
    """Release cached GPU memory after a pipeline is dropped."""
    if device == "cuda":
        torch.cuda.empty_cache()
    elif device == "mps":
        torch.mps.empty_cache()


def get_device_info() -> Dict[str, Any]:
    """
    Get information about available compute devices.

    Returns:
        Dictionary with device availability and specifications
    """
    info: Dict[str, Any] = {
        "current_device": detect_device(),
        "cuda_available": torch.cuda.is_available(),
        "mps_available": _mps_available(),
        "cpu_threads": torch.get_num_threads(),
        "torch_version": torch.__version__,
        "platform": platform.platform(),
    }

    if info["cuda_available"]:
        info["cuda_device_name"] = torch.cuda.get_device_name(0)
        info["total_memory_gb"] = torch.cuda.get_device_properties(0).total_memory / (1024**3)

    return info


def _mps_available() -> bool:
    return torch.backends.mps.is_available() and torch.backends.mps.is_built()
