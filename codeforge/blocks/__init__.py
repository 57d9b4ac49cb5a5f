"""Building blocks -- named, parameterised templates for Go constructs.

Usage::

    from codeforge.blocks import BuildingBlockStore, BlockType
    from codeforge.rendering import TemplateRenderer

    store = BuildingBlockStore()
    block = store.find_by_name("int-variable", BlockType.VARIABLE)
    TemplateRenderer().render(block.template, {"Name": "age", "DefaultValue": "25"})
    # -> "var age int = 25"
"""

from codeforge.blocks.models import BlockType, BuildingBlock
from codeforge.blocks.store import (
    PRIMITIVE_NAMES,
    BuildingBlockStore,
    ReadWriteLock,
    default_primitives,
)

__all__ = [
    "PRIMITIVE_NAMES",
    "BlockType",
    "BuildingBlock",
    "BuildingBlockStore",
    "ReadWriteLock",
    "default_primitives",
]
