"""Computation blocks for cap table analysis.

Architecture:
    CapTable (domain model) → Blocks (computation) → DataFrames (output)

Available blocks:
- OwnershipBlock: CapTable to ownership DataFrames
- PricedRoundBlock: pro forma ownership and SAFE conversions for a round
- DilutionBlock: per-holder ownership change across the round

Usage:
    from simplecap.blocks import BlockContext, BlockExecutor, OwnershipBlock, PricedRoundBlock, DilutionBlock

    context = BlockContext()
    context.set("cap_table", cap_table)
    context.set("priced_round_terms", PricedRoundTerms(
        investors_to_paid_amounts={"Cormorant Ventures": 4_000_000},
        pre_money_valuation=15_000_000,
    ))
    BlockExecutor([DilutionBlock(), PricedRoundBlock(), OwnershipBlock()]).execute(context)
    dilution_df = context.get("dilution")
"""

from .base import Block, BlockExecutor, BlockContext
from .ownership import OwnershipBlock
from .priced_round import PricedRoundBlock
from .dilution import DilutionBlock

__all__ = [
    "Block",
    "BlockExecutor",
    "BlockContext",
    "OwnershipBlock",
    "PricedRoundBlock",
    "DilutionBlock",
]
