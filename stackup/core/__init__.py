"""
stackup Core

Configuration loading, template rendering and stack orchestration.
"""

from .config_loader import (
    StackConfig,
    forget_credentials,
    generate_credentials,
    load_saved_credentials,
    load_stack_config,
    save_credentials,
)
from .template_renderer import TemplateRenderer

__all__ = [
    "StackConfig",
    "load_stack_config",
    "generate_credentials",
    "save_credentials",
    "load_saved_credentials",
    "forget_credentials",
    "TemplateRenderer",
]
