"""
studio_services -- orchestration layer.

Usage:
    from studio_config import get_active_config
    from studio_services import StudioPipeline

    pipeline = StudioPipeline(get_active_config())
    state = pipeline.initial_state()
"""

from studio_services.briefing import TextGenerator, build_briefing_prompt, generate_briefing
from studio_services.pipeline import StudioPipeline

__all__ = [
    "StudioPipeline",
    "TextGenerator",
    "build_briefing_prompt",
    "generate_briefing",
]
