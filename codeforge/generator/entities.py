"""Entity bundle helper.

``create_complete_entity_set`` expands one entity name into the four
elements of a layered CRUD slice: a domain model struct, a repository
interface, an application service and an HTTP handler.  Nothing is rendered
here; the result is an ordinary element list that can be put into a
``GenerationRequest`` like any other.

Each element declares its own package (``domain``, ``repository``,
``application``, ``handlers``).  Cross-package references are qualified, so
in split-file mode the generator places each file under
``internal/<package>/`` and imports the sibling packages from the module path.
In single-file mode those packages share one file, so their qualifiers are
dropped and nothing is imported for them.
"""

from __future__ import annotations

from pydantic import BaseModel

from codeforge.elements.models import (
    GoType,
    Interface,
    Method,
    MethodSignature,
    Struct,
    Variable,
)
from codeforge.errors import InvalidRequestError
from codeforge.utils import camel_case, pascal_case, receiver_name, snake_case

MODEL_PACKAGE = "domain"
REPOSITORY_PACKAGE = "repository"
SERVICE_PACKAGE = "application"
HANDLER_PACKAGE = "handlers"


def _ctx_param() -> Variable:
    return Variable(name="ctx", type=GoType(name="Context", package="context"))


def _id_param() -> Variable:
    return Variable(name="id", type=GoType(name="string"))


def _entity_ptr(entity: str) -> GoType:
    return GoType(name=entity, package=MODEL_PACKAGE, is_pointer=True)


def _entity_slice(entity: str) -> GoType:
    return GoType(name=entity, package=MODEL_PACKAGE, is_pointer=True, is_slice=True)


def _error() -> GoType:
    return GoType(name="error")


# ---------------------------------------------------------------------------
# Layer builders
# ---------------------------------------------------------------------------

def build_model(entity: str) -> Struct:
    """Domain model with id, name and timestamps."""
    table = snake_case(entity) + "s"
    return Struct(
        name=entity,
        package=MODEL_PACKAGE,
        comments=f"{entity} represents a {entity} entity",
        fields=[
            Variable(name="ID", type="string", tags='json:"id" gorm:"primaryKey"'),
            Variable(name="Name", type="string", tags='json:"name" gorm:"not null"'),
            Variable(name="CreatedAt", type="time.Time", tags='json:"created_at"'),
            Variable(name="UpdatedAt", type="time.Time", tags='json:"updated_at"'),
        ],
        methods=[
            Method(
                name="TableName",
                receiver=Variable(name=receiver_name(entity), type=GoType(name=entity)),
                returns=[GoType(name="string")],
                body=f'return "{table}"',
                comments=f"TableName returns the table name for {entity}",
            ),
        ],
    )


def build_repository(entity: str) -> Interface:
    """Repository interface with the five CRUD operations."""
    var = camel_case(entity)
    return Interface(
        name=f"{entity}Repository",
        package=REPOSITORY_PACKAGE,
        comments=f"{entity}Repository defines the interface for {entity} data access",
        methods=[
            MethodSignature(
                name="Create",
                parameters=[_ctx_param(), Variable(name=var, type=_entity_ptr(entity))],
                returns=[_error()],
            ),
            MethodSignature(
                name="GetByID",
                parameters=[_ctx_param(), _id_param()],
                returns=[_entity_ptr(entity), _error()],
            ),
            MethodSignature(
                name="Update",
                parameters=[_ctx_param(), Variable(name=var, type=_entity_ptr(entity))],
                returns=[_error()],
            ),
            MethodSignature(
                name="Delete",
                parameters=[_ctx_param(), _id_param()],
                returns=[_error()],
            ),
            MethodSignature(
                name="List",
                parameters=[_ctx_param()],
                returns=[_entity_slice(entity), _error()],
            ),
        ],
    )


def build_service(entity: str) -> Struct:
    """Application service delegating to the repository."""
    var = camel_case(entity)
    entity_param = Variable(name=var, type=_entity_ptr(entity))
    receiver = Variable(name="s", type=GoType(name=f"{entity}Service", is_pointer=True))
    return Struct(
        name=f"{entity}Service",
        package=SERVICE_PACKAGE,
        comments=f"{entity}Service provides business logic for {entity} operations",
        fields=[
            Variable(
                name="repository",
                type=GoType(name=f"{entity}Repository", package=REPOSITORY_PACKAGE),
                tags='json:"-"',
            ),
        ],
        methods=[
            Method(
                name=f"Create{entity}",
                receiver=receiver,
                parameters=[_ctx_param(), entity_param],
                returns=[_error()],
                body=(
                    f"if {var}.Name == \"\" {{\n"
                    f"\treturn errors.New(\"{snake_case(entity)} name is required\")\n"
                    "}\n"
                    f"return s.repository.Create(ctx, {var})"
                ),
            ),
            Method(
                name=f"Get{entity}",
                receiver=receiver,
                parameters=[_ctx_param(), _id_param()],
                returns=[_entity_ptr(entity), _error()],
                body="return s.repository.GetByID(ctx, id)",
            ),
            Method(
                name=f"Update{entity}",
                receiver=receiver,
                parameters=[_ctx_param(), entity_param],
                returns=[_error()],
                body=f"return s.repository.Update(ctx, {var})",
            ),
            Method(
                name=f"Delete{entity}",
                receiver=receiver,
                parameters=[_ctx_param(), _id_param()],
                returns=[_error()],
                body="return s.repository.Delete(ctx, id)",
            ),
            Method(
                name=f"List{entity}s",
                receiver=receiver,
                parameters=[_ctx_param()],
                returns=[_entity_slice(entity), _error()],
                body="return s.repository.List(ctx)",
            ),
        ],
    )


def build_handler(entity: str) -> Struct:
    """net/http handler exposing the service."""
    var = camel_case(entity)
    writer = Variable(name="w", type=GoType(name="ResponseWriter", package="http"))
    req = Variable(name="r", type=GoType(name="Request", package="http", is_pointer=True))
    receiver = Variable(name="h", type=GoType(name=f"{entity}Handler", is_pointer=True))

    def _handler(name: str, body: str) -> Method:
        return Method(name=name, receiver=receiver, parameters=[writer, req], body=body)

    return Struct(
        name=f"{entity}Handler",
        package=HANDLER_PACKAGE,
        comments=f"{entity}Handler handles HTTP requests for {entity} operations",
        fields=[
            Variable(
                name="service",
                type=GoType(name=f"{entity}Service", package=SERVICE_PACKAGE, is_pointer=True),
                tags='json:"-"',
            ),
        ],
        methods=[
            _handler(
                f"Create{entity}",
                f"var {var} domain.{entity}\n"
                f"if err := json.NewDecoder(r.Body).Decode(&{var}); err != nil {{\n"
                "\thttp.Error(w, err.Error(), http.StatusBadRequest)\n"
                "\treturn\n"
                "}\n"
                f"if err := h.service.Create{entity}(r.Context(), &{var}); err != nil {{\n"
                "\thttp.Error(w, err.Error(), http.StatusInternalServerError)\n"
                "\treturn\n"
                "}\n"
                "w.WriteHeader(http.StatusCreated)\n"
                f"json.NewEncoder(w).Encode({var})",
            ),
            _handler(
                f"Get{entity}",
                'id := r.URL.Query().Get("id")\n'
                f"{var}, err := h.service.Get{entity}(r.Context(), id)\n"
                "if err != nil {\n"
                "\thttp.Error(w, err.Error(), http.StatusNotFound)\n"
                "\treturn\n"
                "}\n"
                f"json.NewEncoder(w).Encode({var})",
            ),
            _handler(
                f"List{entity}s",
                f"items, err := h.service.List{entity}s(r.Context())\n"
                "if err != nil {\n"
                "\thttp.Error(w, err.Error(), http.StatusInternalServerError)\n"
                "\treturn\n"
                "}\n"
                "json.NewEncoder(w).Encode(items)",
            ),
            _handler(
                f"Delete{entity}",
                'id := r.URL.Query().Get("id")\n'
                f"if err := h.service.Delete{entity}(r.Context(), id); err != nil {{\n"
                "\thttp.Error(w, err.Error(), http.StatusInternalServerError)\n"
                "\treturn\n"
                "}\n"
                "w.WriteHeader(http.StatusNoContent)",
            ),
        ],
    )


def create_complete_entity_set(entity_name: str, module_path: str) -> list[BaseModel]:
    """Return ``[model, repository, service, handler]`` for *entity_name*.

    Raises:
        InvalidRequestError: If either argument is empty.
    """
    entity = pascal_case(entity_name.strip())
    if not entity:
        raise InvalidRequestError("Entity name is required")
    if not module_path.strip():
        raise InvalidRequestError("Module path is required for an entity set")
    return [
        build_model(entity),
        build_repository(entity),
        build_service(entity),
        build_handler(entity),
    ]
