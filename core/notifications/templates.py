"""Notification template loading and rendering."""

from pathlib import Path

import yaml


_templates: dict | None = None


def load_templates() -> dict:
    """
    Load notification templates from YAML file.

    Caches templates after first load.
    """
    global _templates
    if _templates is not None:
        return _templates

    yaml_path = Path(__file__).parent / "messages.yaml"
    with open(yaml_path, encoding="utf-8") as f:
        _templates = yaml.safe_load(f)

    return _templates


def render_message(template: str, context: dict) -> str:
    """
    Render a message template with context variables.

    Raises:
        KeyError: If a required variable is missing from context
    """
    return template.format(**context)


def get_message(kind: str, part: str, context: dict) -> str:
    """
    Get and render one part ("title" or "body") of a notification.

    Args:
        kind: Notification kind, e.g. "feedback_reminder"
        part: "title" or "body"
        context: Variables to substitute
    """
    templates = load_templates()
    template = templates[kind][part]
    return render_message(template, context)


def get_action(kind: str) -> str | None:
    """The client-side action attached to a kind, if any."""
    return load_templates().get(kind, {}).get("action")
