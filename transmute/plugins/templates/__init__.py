import os.path
import re
from typing import Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined

THIS_DIR = os.path.abspath(os.path.dirname(__file__))


def to_snake_case(name: str) -> str:
    name = re.sub(r"(.)([A-Z][a-z]+)", r"\1_\2", name)
    return re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", name).lower()


def to_class_name(name: str) -> str:
    """'article summarizer', 'article-summarizer' and 'ArticleSummarizer' all map to ArticleSummarizer."""
    parts = re.split(r"[\s_\-]+", name.strip())
    return "".join(part[:1].upper() + part[1:] for part in parts if part)


def render_template(template_name: str, context: Optional[dict] = None) -> str:
    env = Environment(
        loader=FileSystemLoader(THIS_DIR),
        undefined=StrictUndefined,
        keep_trailing_newline=True,
    )
    return env.get_template(template_name).render(**(context or {}))
