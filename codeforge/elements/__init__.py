"""Typed Go code elements.

Each construct (variable, struct, interface, function, method) is a Pydantic
model with a ``kind`` discriminator and a pure ``render`` method::

    from codeforge.elements import Struct, Variable, RenderContext

    user = Struct(
        name="User",
        fields=[Variable(name="ID", type="string")],
    )
    print(user.render(RenderContext(package_name="domain")))
"""

from codeforge.elements.models import (
    ELEMENT_KINDS,
    CodeElement,
    Function,
    GoType,
    Interface,
    Method,
    MethodSignature,
    RenderContext,
    Struct,
    Variable,
    element_package,
)

__all__ = [
    "ELEMENT_KINDS",
    "CodeElement",
    "Function",
    "GoType",
    "Interface",
    "Method",
    "MethodSignature",
    "RenderContext",
    "Struct",
    "Variable",
    "element_package",
]
