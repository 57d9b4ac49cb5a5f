"""Template engine -- renders Jinja2 patterns and packaged Go templates.

Usage::

    from codeforge.rendering import TemplateRenderer

    renderer = TemplateRenderer()
    renderer.render("var {{ Name }} int", {"Name": "age"})   # -> "var age int"
    renderer.render_template("repository.go.j2", {"EntityName": "User", ...})
"""

from codeforge.rendering.engine import TemplateRenderer

__all__ = ["TemplateRenderer"]
