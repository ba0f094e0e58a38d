"""
Jinja2-based prompt template loading and rendering.

LLM prompts live as templates under prompts/ instead of inline strings:

    prompts/base/system.j2                      shared system prompt
    prompts/recommendation/lab_synthesis.j2     lab and mentor synthesis
    prompts/career/narrative.j2                 per-lab career outlook

Usage:
    from src.utils.prompt_loader import render_prompt

    prompt = render_prompt(
        "career/narrative.j2",
        lab_name="Vision Lab",
        keywords=["computer vision", "robotics"],
    )
"""

import re
from pathlib import Path
from typing import Any, Optional

import structlog
from jinja2 import (
    Environment,
    FileSystemLoader,
    StrictUndefined,
    TemplateNotFound,
    TemplateSyntaxError,
    Undefined,
    UndefinedError,
)

logger = structlog.get_logger(__name__)


class PromptLoader:
    """
    Loads and renders Jinja2 prompt templates from the prompts/ directory.
    """

    def __init__(
        self,
        template_dir: Optional[Path] = None,
        strict_undefined: bool = False,
    ) -> None:
        """
        Initialize PromptLoader with a Jinja2 environment.

        Args:
            template_dir: Base directory for templates (defaults to prompts/ in project root)
            strict_undefined: If True, raise error for undefined variables (default: False)
        """
        if template_dir is None:
            # Project root is 2 levels up from this file (src/utils/)
            project_root = Path(__file__).parent.parent.parent
            template_dir = project_root / "prompts"

        self.template_dir = template_dir
        self.strict_undefined = strict_undefined

        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=False,  # Prompts are text, not HTML
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            undefined=StrictUndefined if strict_undefined else Undefined,
        )

        self.env.filters["percent"] = self._percent_filter
        self.env.filters["truncate_text"] = self._truncate_text_filter

        logger.debug(
            "PromptLoader initialized",
            template_dir=str(self.template_dir),
            strict_undefined=strict_undefined,
        )

    def render(
        self,
        template_name: str,
        correlation_id: Optional[str] = None,
        **variables: Any,
    ) -> str:
        """
        Render a template with provided variables.

        Args:
            template_name: Path relative to prompts/ (e.g., "career/narrative.j2")
            correlation_id: Optional correlation ID for logging
            **variables: Template variables as keyword arguments

        Returns:
            Rendered prompt string

        Raises:
            TemplateNotFound: If template file doesn't exist
            TemplateSyntaxError: If template has syntax errors
            UndefinedError: If strict_undefined=True and a variable is missing
        """
        log = logger.bind(template_name=template_name, correlation_id=correlation_id)

        try:
            template = self.env.get_template(template_name)
            rendered = template.render(**variables)
            log.debug(
                "Template rendered",
                rendered_length=len(rendered),
                variables_provided=list(variables.keys()),
            )
            return rendered

        except TemplateNotFound as e:
            log.error(
                "Template not found",
                template_dir=str(self.template_dir),
                error=str(e),
            )
            raise

        except TemplateSyntaxError as e:
            log.error("Template syntax error", error=str(e), lineno=e.lineno)
            raise

        except UndefinedError as e:
            log.error(
                "Undefined variable in template",
                error=str(e),
                variables_provided=list(variables.keys()),
            )
            raise

    def get_system_prompt(
        self,
        prompt_type: str = "system",
        correlation_id: Optional[str] = None,
        **variables: Any,
    ) -> str:
        """Render a system prompt from the base/ directory."""
        template_name = f"base/{prompt_type}.j2"
        return self.render(template_name, correlation_id=correlation_id, **variables)

    @staticmethod
    def _percent_filter(value: Any, digits: int = 0) -> str:
        """Format a 0-1 score as a percentage string ("0.923" -> "92")."""
        try:
            return f"{float(value) * 100:.{digits}f}"
        except (TypeError, ValueError):
            return "0"

    @staticmethod
    def _truncate_text_filter(text: Any, limit: int = 1500) -> str:
        """Collapse whitespace and cut text to at most `limit` characters."""
        collapsed = re.sub(r"\s+", " ", str(text or "")).strip()
        if len(collapsed) <= limit:
            return collapsed
        return collapsed[:limit].rstrip() + "..."


_default_loader: Optional[PromptLoader] = None


def get_default_loader() -> PromptLoader:
    """
    Get or create the default PromptLoader instance.

    Returns:
        Global PromptLoader instance
    """
    global _default_loader
    if _default_loader is None:
        _default_loader = PromptLoader()
    return _default_loader


def render_prompt(
    template_name: str,
    correlation_id: Optional[str] = None,
    **variables: Any,
) -> str:
    """
    Render a prompt template with the default PromptLoader.

    Args:
        template_name: Path relative to prompts/ (e.g., "recommendation/lab_synthesis.j2")
        correlation_id: Optional correlation ID for logging
        **variables: Template variables as keyword arguments

    Returns:
        Rendered prompt string

    Example:
        >>> prompt = render_prompt(
        ...     "career/narrative.j2",
        ...     lab_name="Robotics Lab",
        ...     keywords=["SLAM", "manipulation"],
        ... )
    """
    loader = get_default_loader()
    return loader.render(template_name, correlation_id=correlation_id, **variables)
