"""
Module: story_gen.utils
Purpose: Utility functions and helpers for StoryGenerator
"""

from story_gen.utils.device import detect_device, select_dtype

__all__ = ["detect_device", "select_dtype"]
