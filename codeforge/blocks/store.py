"""In-memory building-block registry.

``BuildingBlockStore`` is shared by every caller of the process.  Reads run
in parallel; each create/update/delete holds the store exclusively.  Callers
always receive deep copies, never the backing objects.

On construction the store is seeded with the eight primitive blocks returned
by :func:`default_primitives`, so a minimal request can resolve common
constructs without prior registration.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator

from codeforge.blocks.models import BlockType, BuildingBlock
from codeforge.errors import AlreadyExistsError, NotFoundError


# ---------------------------------------------------------------------------
# Reader/writer lock
# ---------------------------------------------------------------------------


class ReadWriteLock:
    """Many concurrent readers or one writer.

    Writers waiting for the lock block new readers, so a steady stream of
    reads cannot starve a write.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._waiting_writers = 0

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._waiting_writers:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if not self._readers:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            self._waiting_writers += 1
            while self._writer or self._readers:
                self._cond.wait()
            self._waiting_writers -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


# ---------------------------------------------------------------------------
# Seed primitives
# ---------------------------------------------------------------------------


def default_primitives() -> list[BuildingBlock]:
    """Return fresh copies of the eight seed primitives."""
    return [
        BuildingBlock(
            type=BlockType.VARIABLE,
            name="string-variable",
            description="String variable declaration",
            template='var {{ Name }} string{% if DefaultValue %} = "{{ DefaultValue }}"{% endif %}',
            parameters={"Name": "myString", "DefaultValue": ""},
            examples=["var name string", 'var greeting string = "Hello"'],
        ),
        BuildingBlock(
            type=BlockType.VARIABLE,
            name="int-variable",
            description="Integer variable declaration",
            template="var {{ Name }} int{% if DefaultValue %} = {{ DefaultValue }}{% endif %}",
            parameters={"Name": "myInt", "DefaultValue": "0"},
            examples=["var count int", "var age int = 25"],
        ),
        BuildingBlock(
            type=BlockType.VARIABLE,
            name="bool-variable",
            description="Boolean variable declaration",
            template="var {{ Name }} bool{% if DefaultValue %} = {{ DefaultValue }}{% endif %}",
            parameters={"Name": "myBool", "DefaultValue": "false"},
            examples=["var isActive bool", "var isEnabled bool = true"],
        ),
        BuildingBlock(
            type=BlockType.STRUCT,
            name="basic-struct",
            description="Basic struct template",
            template=(
                "type {{ Name }} struct {\n"
                "{% for field in Fields | csv %}\n"
                '\t{{ field }} string `json:"{{ field | snake_case }}"`\n'
                "{% endfor %}\n"
                "}"
            ),
            parameters={"Name": "MyStruct", "Fields": "ID,Name,Email"},
            examples=['type User struct { ID string `json:"id"` }'],
        ),
        BuildingBlock(
            type=BlockType.INTERFACE,
            name="basic-interface",
            description="Basic interface template",
            template=(
                "type {{ Name }} interface {\n"
                "{% for method in Methods | csv %}\n"
                "\t{{ method }}({{ Parameters }}){{ ' ' ~ Returns if Returns else '' }}\n"
                "{% endfor %}\n"
                "}"
            ),
            parameters={"Name": "MyInterface", "Methods": "Get,Set,Delete", "Returns": "error"},
            examples=["type Repository interface { Get(id string) error }"],
        ),
        BuildingBlock(
            type=BlockType.FUNCTION,
            name="basic-function",
            description="Basic function template",
            template=(
                "func {{ Name }}({{ Parameters }}){% if Returns %} {{ Returns }}{% endif %} {\n"
                "\t{{ Body }}\n"
                "}"
            ),
            parameters={"Name": "MyFunction", "Parameters": "", "Returns": "error", "Body": "return nil"},
            examples=["func Process() error { return nil }"],
        ),
        BuildingBlock(
            type=BlockType.VARIABLE,
            name="string-constant",
            description="String constant declaration",
            template='const {{ Name }} = "{{ Value }}"',
            parameters={"Name": "MyConstant", "Value": "default"},
            examples=['const DefaultTimeout = "30s"'],
        ),
        BuildingBlock(
            type=BlockType.VARIABLE,
            name="package-declaration",
            description="Package declaration",
            template="package {{ Name }}",
            parameters={"Name": "main"},
            examples=["package main", "package models"],
        ),
    ]


PRIMITIVE_NAMES: tuple[str, ...] = (
    "string-variable",
    "int-variable",
    "bool-variable",
    "basic-struct",
    "basic-interface",
    "basic-function",
    "string-constant",
    "package-declaration",
)


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class BuildingBlockStore:
    """Thread-safe in-memory CRUD registry of building blocks.

    Iteration order is insertion order, so ``list_by_type`` and ``list_all``
    are stable for the lifetime of the process.
    """

    def __init__(self, seed: bool = True) -> None:
        self._blocks: dict[str, BuildingBlock] = {}
        self._lock = ReadWriteLock()
        if seed:
            for block in default_primitives():
                self._blocks[block.id] = block

    # -- Mutations ---------------------------------------------------------

    def create(self, block: BuildingBlock) -> BuildingBlock:
        """Register *block*.

        Raises:
            AlreadyExistsError: If the id is taken, or another block of the
                same type already uses the name.
        """
        with self._lock.write():
            if block.id in self._blocks:
                raise AlreadyExistsError(f"Building block with ID {block.id} already exists")
            if self._find_name(block.name, block.type) is not None:
                raise AlreadyExistsError(
                    f"Building block '{block.name}' of type {block.type.value} already exists"
                )
            self._blocks[block.id] = block.model_copy(deep=True)
        return block

    def create_variable_block(
        self, name: str, go_type: str, default_value: str = ""
    ) -> BuildingBlock:
        """Register a variable block whose template is fixed to *go_type*."""
        template = f"var {{{{ Name }}}} {go_type}{{% if DefaultValue %}} = {{{{ DefaultValue }}}}{{% endif %}}"
        example = f"var {name} {go_type}" + (f" = {default_value}" if default_value else "")
        block = BuildingBlock(
            type=BlockType.VARIABLE,
            name=name,
            description=f"Variable of type {go_type}",
            template=template,
            parameters={"Name": name, "DefaultValue": default_value},
            examples=[example],
        )
        return self.create(block)

    def update(self, block: BuildingBlock) -> BuildingBlock:
        """Replace the stored block with the same id and refresh ``updated_at``.

        Raises:
            NotFoundError: If no block has that id.
        """
        with self._lock.write():
            existing = self._blocks.get(block.id)
            if existing is None:
                raise NotFoundError(f"Building block with ID {block.id} not found")
            clash = self._find_name(block.name, block.type)
            if clash is not None and clash.id != block.id:
                raise AlreadyExistsError(
                    f"Building block '{block.name}' of type {block.type.value} already exists"
                )
            stored = block.model_copy(
                deep=True,
                update={
                    "created_at": existing.created_at,
                    "updated_at": datetime.now(timezone.utc),
                },
            )
            self._blocks[block.id] = stored
            return stored.model_copy(deep=True)

    def delete(self, block_id: str) -> None:
        """Remove a block.

        Raises:
            NotFoundError: If no block has that id.
        """
        with self._lock.write():
            if block_id not in self._blocks:
                raise NotFoundError(f"Building block with ID {block_id} not found")
            del self._blocks[block_id]

    # -- Queries -----------------------------------------------------------

    def get(self, block_id: str) -> BuildingBlock:
        """Return a copy of the block with *block_id*.

        Raises:
            NotFoundError: If no block has that id.
        """
        with self._lock.read():
            block = self._blocks.get(block_id)
            if block is None:
                raise NotFoundError(f"Building block with ID {block_id} not found")
            return block.model_copy(deep=True)

    def find_by_name(self, name: str, block_type: BlockType | None = None) -> BuildingBlock:
        """Return the first block called *name*, optionally restricted to a type.

        Raises:
            NotFoundError: If nothing matches.
        """
        with self._lock.read():
            block = self._find_name(name, block_type)
            if block is None:
                raise NotFoundError(f"Building block named '{name}' not found")
            return block.model_copy(deep=True)

    def list_by_type(self, block_type: BlockType) -> list[BuildingBlock]:
        """Return every block of *block_type* (possibly empty)."""
        with self._lock.read():
            return [
                b.model_copy(deep=True) for b in self._blocks.values() if b.type == block_type
            ]

    def list_all(self) -> list[BuildingBlock]:
        with self._lock.read():
            return [b.model_copy(deep=True) for b in self._blocks.values()]

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._blocks)

    # -- Internal ----------------------------------------------------------

    def _find_name(self, name: str, block_type: BlockType | None) -> BuildingBlock | None:
        for block in self._blocks.values():
            if block.name == name and (block_type is None or block.type == block_type):
                return block
        return None
