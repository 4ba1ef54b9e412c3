"""Base classes for computation blocks.

- Block: declares the context keys it reads and writes
- BlockContext: key/value store passed between blocks
- BlockExecutor: runs blocks in dependency order
"""

from abc import ABC, abstractmethod
from collections import deque
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field


# =============================================================================
# Block Context
# =============================================================================

@dataclass
class BlockContext:
    """Values shared between blocks, keyed by name.

    Example:
        context = BlockContext()
        context.set("cap_table", cap_table)
        OwnershipBlock().execute(context)
        ownership_df = context.get("ownership")
    """

    _data: Dict[str, Any] = field(default_factory=dict)

    def get(self, key: str) -> Any:
        """Get value from context.

        Raises:
            KeyError: If key not found in context
        """
        if key not in self._data:
            raise KeyError(f"Key '{key}' not found in context. Available keys: {list(self._data.keys())}")
        return self._data[key]

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def has(self, key: str) -> bool:
        return key in self._data

    def keys(self) -> List[str]:
        return list(self._data.keys())


# =============================================================================
# Block Base Class
# =============================================================================

class Block(ABC):
    """A unit of computation over a BlockContext.

    Subclasses declare ``inputs()`` and ``outputs()`` as context keys so the
    executor can order them, and implement ``execute()`` to read the inputs
    and write every output.
    """

    @abstractmethod
    def inputs(self) -> List[str]:
        """Context keys this block reads."""
        pass

    @abstractmethod
    def outputs(self) -> List[str]:
        """Context keys this block writes."""
        pass

    @abstractmethod
    def execute(self, context: BlockContext) -> None:
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(inputs={self.inputs()}, outputs={self.outputs()})"


# =============================================================================
# Dependency Resolution
# =============================================================================

class CircularDependencyError(Exception):
    """Raised when blocks have circular dependencies."""
    pass


def topological_sort(blocks: List[Block]) -> List[Block]:
    """Order blocks so every producer runs before its consumers.

    Inputs that no block produces must be supplied by the initial context.
    Blocks with no ordering constraint between them keep their given order.

    Raises:
        ValueError: If two blocks produce the same key
        CircularDependencyError: If the dependencies form a cycle
    """
    producers: Dict[str, Block] = {}
    for block in blocks:
        for key in block.outputs():
            if key in producers:
                raise ValueError(f"Multiple blocks produce '{key}': {producers[key]} and {block}")
            producers[key] = block

    pending = {id(block): 0 for block in blocks}
    consumers: Dict[int, List[Block]] = {id(block): [] for block in blocks}
    for block in blocks:
        for key in block.inputs():
            producer = producers.get(key)
            if producer is not None:
                consumers[id(producer)].append(block)
                pending[id(block)] += 1

    ready = deque(block for block in blocks if pending[id(block)] == 0)
    ordered: List[Block] = []
    while ready:
        block = ready.popleft()
        ordered.append(block)
        for consumer in consumers[id(block)]:
            pending[id(consumer)] -= 1
            if pending[id(consumer)] == 0:
                ready.append(consumer)

    if len(ordered) != len(blocks):
        stuck = [block for block in blocks if pending[id(block)] > 0]
        raise CircularDependencyError(f"Circular dependency detected among blocks: {stuck}")

    return ordered


# =============================================================================
# Block Executor
# =============================================================================

class BlockExecutor:
    """Runs blocks in dependency order against one context.

    Example:
        executor = BlockExecutor([DilutionBlock(), OwnershipBlock(), PricedRoundBlock()])
        context = BlockContext()
        context.set("cap_table", cap_table)
        context.set("priced_round_terms", terms)
        executor.execute(context)
        dilution_df = context.get("dilution")
    """

    def __init__(self, blocks: List[Block]):
        self.blocks = blocks
        self._sorted_blocks: Optional[List[Block]] = None

    def execute(self, context: BlockContext) -> BlockContext:
        """Execute all blocks, checking inputs before and outputs after each.

        Raises:
            CircularDependencyError: If blocks have circular dependencies
            KeyError: If a required input is missing from the context
            ValueError: If a block does not write a declared output
        """
        if self._sorted_blocks is None:
            self._sorted_blocks = topological_sort(self.blocks)

        for block in self._sorted_blocks:
            for key in block.inputs():
                if not context.has(key):
                    raise KeyError(
                        f"Block {block} requires input '{key}' but it's not in context. "
                        f"Available keys: {context.keys()}"
                    )

            block.execute(context)

            for key in block.outputs():
                if not context.has(key):
                    raise ValueError(f"Block {block} declared output '{key}' but didn't write it to context")

        return context
