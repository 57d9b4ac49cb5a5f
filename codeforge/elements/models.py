"""Pydantic v2 models for the Go code elements a generation request declares.

Every construct is one variant of the ``CodeElement`` tagged union, keyed by
the ``kind`` field.  Payloads are resolved into a concrete variant once, when
the request is parsed; after that the pipeline only calls ``render``.

Rendering is pure: the same element and ``RenderContext`` always produce the
same text.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, model_validator

from codeforge.errors import RenderError
from codeforge.utils import receiver_name, snake_case


# ---------------------------------------------------------------------------
# Render context
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RenderContext:
    """Naming/package context an element is rendered into."""

    package_name: str = "main"
    module_path: str = ""
    # Other packages whose declarations share the output file.
    local_packages: frozenset[str] = frozenset()


# ---------------------------------------------------------------------------
# Types
# ---------------------------------------------------------------------------

class GoType(BaseModel):
    """A Go type reference.

    Payloads may give a bare string (``"int"``, ``"*domain.User"``) which is
    taken verbatim as the type name.  A mapping with a ``type`` key and no
    ``name`` is read the same way.
    """
    name: str = Field(..., min_length=1, description="Type name, e.g. 'string' or 'User'")
    package: str = Field(default="", description="Qualifying package, e.g. 'domain'")
    is_pointer: bool = Field(default=False)
    is_slice: bool = Field(default=False)
    is_map: bool = Field(default=False)
    key_type: str = Field(default="", description="Map key type")
    element_type: str = Field(default="", description="Map value type")

    @model_validator(mode="before")
    @classmethod
    def _from_shorthand(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"name": data}
        if isinstance(data, dict) and "name" not in data and "type" in data:
            data = {"name": data["type"], **{k: v for k, v in data.items() if k != "type"}}
        return data

    def render(self, ctx: RenderContext | None = None) -> str:
        """Return the Go spelling of this type.

        The package qualifier is dropped when it matches the package being
        rendered into, or one of the context's local packages.
        """
        qualified = self.name
        if self.package and (
            ctx is None
            or (self.package != ctx.package_name and self.package not in ctx.local_packages)
        ):
            qualified = f"{self.package}.{self.name}"
        if self.is_pointer:
            qualified = f"*{qualified}"
        if self.is_map:
            qualified = f"map[{self.key_type or 'string'}]{self.element_type or qualified}"
        if self.is_slice:
            qualified = f"[]{qualified}"
        return qualified


# ---------------------------------------------------------------------------
# Rendering helpers
# ---------------------------------------------------------------------------

def _comment_lines(comments: str) -> list[str]:
    return [f"// {line}".rstrip() for line in comments.strip().splitlines()] if comments.strip() else []


def _indent_body(body: str) -> list[str]:
    lines = body.strip("\n").splitlines()
    return [f"\t{line}" if line.strip() else "" for line in lines]


def _render_params(params: list["Variable"], ctx: RenderContext | None) -> str:
    return ", ".join(p.render_param(ctx) for p in params)


def _render_returns(returns: list[GoType], ctx: RenderContext | None) -> str:
    if not returns:
        return ""
    if len(returns) == 1:
        return f" {returns[0].render(ctx)}"
    return " (" + ", ".join(r.render(ctx) for r in returns) + ")"


def _render_func(header: str, body: str) -> list[str]:
    return [f"{header} {{", *_indent_body(body), "}"]


# ---------------------------------------------------------------------------
# Element variants
# ---------------------------------------------------------------------------

class Variable(BaseModel):
    """A variable declaration, struct field, or parameter."""
    kind: Literal["variable"] = "variable"
    name: str = Field(..., min_length=1)
    type: GoType
    default_value: str = Field(default="", description="Initial value expression")
    tags: str = Field(default="", description="Struct tag body, without backticks")
    comments: str = Field(default="")

    def render(self, ctx: RenderContext | None = None) -> str:
        decl = f"var {self.name} {self.type.render(ctx)}"
        if self.default_value:
            decl += f" = {self.default_value}"
        return "\n".join([*_comment_lines(self.comments), decl])

    def render_param(self, ctx: RenderContext | None = None) -> str:
        return f"{self.name} {self.type.render(ctx)}"

    def render_field(self, ctx: RenderContext | None = None) -> str:
        """Render as a struct field line, generating a json tag if none is set."""
        tags = self.tags or f'json:"{snake_case(self.name)}"'
        return f"{self.name} {self.type.render(ctx)} `{tags}`"


class MethodSignature(BaseModel):
    """A method as declared inside an interface."""
    name: str = Field(..., min_length=1)
    parameters: list[Variable] = Field(default_factory=list)
    returns: list[GoType] = Field(default_factory=list)
    comments: str = Field(default="")

    def render(self, ctx: RenderContext | None = None) -> str:
        return f"{self.name}({_render_params(self.parameters, ctx)}){_render_returns(self.returns, ctx)}"


class Method(BaseModel):
    """A function bound to a receiver."""
    kind: Literal["method"] = "method"
    name: str = Field(..., min_length=1)
    receiver: Variable | None = Field(
        default=None, description="Receiver; defaults to a pointer to the owning struct"
    )
    parameters: list[Variable] = Field(default_factory=list)
    returns: list[GoType] = Field(default_factory=list)
    body: str = Field(default="")
    comments: str = Field(default="")

    def render(self, ctx: RenderContext | None = None, owner: str = "") -> str:
        receiver = self.receiver
        if receiver is None:
            if not owner:
                raise RenderError(f"Method '{self.name}' has no receiver and no owning struct")
            receiver = Variable(
                name=receiver_name(owner), type=GoType(name=owner, is_pointer=True)
            )
        header = (
            f"func ({receiver.render_param(ctx)}) {self.name}"
            f"({_render_params(self.parameters, ctx)}){_render_returns(self.returns, ctx)}"
        )
        return "\n".join([*_comment_lines(self.comments), *_render_func(header, self.body)])


class Function(BaseModel):
    """A package-level function."""
    kind: Literal["function"] = "function"
    name: str = Field(..., min_length=1)
    package: str = Field(default="")
    parameters: list[Variable] = Field(default_factory=list)
    returns: list[GoType] = Field(default_factory=list)
    body: str = Field(default="")
    comments: str = Field(default="")

    def render(self, ctx: RenderContext | None = None) -> str:
        header = (
            f"func {self.name}({_render_params(self.parameters, ctx)})"
            f"{_render_returns(self.returns, ctx)}"
        )
        return "\n".join([*_comment_lines(self.comments), *_render_func(header, self.body)])


class Struct(BaseModel):
    """A struct type with ordered fields and methods."""
    kind: Literal["struct"] = "struct"
    name: str = Field(..., min_length=1)
    package: str = Field(default="")
    fields: list[Variable] = Field(default_factory=list)
    methods: list[Method] = Field(default_factory=list)
    comments: str = Field(default="")

    def render(self, ctx: RenderContext | None = None) -> str:
        doc = _comment_lines(self.comments) or [f"// {self.name} represents a {self.name}"]
        lines = [*doc, f"type {self.name} struct {{"]
        lines.extend(f"\t{field.render_field(ctx)}" for field in self.fields)
        lines.append("}")
        blocks = ["\n".join(lines)]
        blocks.extend(method.render(ctx, owner=self.name) for method in self.methods)
        return "\n\n".join(blocks)


class Interface(BaseModel):
    """An interface type with ordered method signatures."""
    kind: Literal["interface"] = "interface"
    name: str = Field(..., min_length=1)
    package: str = Field(default="")
    methods: list[MethodSignature] = Field(default_factory=list)
    comments: str = Field(default="")

    def render(self, ctx: RenderContext | None = None) -> str:
        doc = _comment_lines(self.comments) or [
            f"// {self.name} defines the interface for {self.name}"
        ]
        lines = [*doc, f"type {self.name} interface {{"]
        for method in self.methods:
            lines.extend(f"\t{line}" for line in _comment_lines(method.comments))
            lines.append(f"\t{method.render(ctx)}")
        lines.append("}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Tagged union
# ---------------------------------------------------------------------------

CodeElement = Annotated[
    Union[Variable, Struct, Interface, Function, Method],
    Field(discriminator="kind"),
]

ELEMENT_KINDS: tuple[str, ...] = ("variable", "struct", "interface", "function", "method")


def element_package(element: BaseModel, default: str) -> str:
    """Return the package an element declares, or *default* when it has none."""
    return getattr(element, "package", "") or default
