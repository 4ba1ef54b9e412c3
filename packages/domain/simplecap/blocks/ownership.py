"""Ownership computation block.

Turns a CapTable into DataFrames.

Output DataFrames:
- ownership: one row per shareholder line
- ownership_by_class: shares, percent and value aggregated by share class
- ownership_summary: single row of totals
"""

from typing import List, Sequence
import pandas as pd

from .base import Block, BlockContext
from ..schemas import CapTable, Shareholder

OWNERSHIP_COLUMNS = [
    "name",
    "share_class",
    "is_founder",
    "num_shares",
    "percent",
    "price",
    "value",
]


def shareholders_frame(shareholders: Sequence[Shareholder]) -> pd.DataFrame:
    """One row per shareholder, in cap table order."""
    rows = [
        {
            "name": s.name,
            "share_class": s.share_class,
            "is_founder": s.is_founder,
            "num_shares": float(s.num_shares),
            "percent": float(s.percent),
            "price": float(s.price),
            "value": float(s.value),
        }
        for s in shareholders
    ]
    return pd.DataFrame(rows, columns=OWNERSHIP_COLUMNS)


class OwnershipBlock(Block):
    """Converts a CapTable to ownership DataFrames.

    Inputs (from context):
        - cap_table: CapTable

    Outputs (to context):
        - ownership: columns name, share_class, is_founder, num_shares,
          percent, price, value
        - ownership_by_class: columns share_class, num_shares, percent,
          value, holders_count (sorted by percent descending)
        - ownership_summary: single row with total_shares,
          post_money_valuation, founder_percent, preferred_percent,
          shareholders_count, pending_safes
    """

    def __init__(self, cap_table_key: str = "cap_table"):
        self.cap_table_key = cap_table_key

    def inputs(self) -> List[str]:
        return [self.cap_table_key]

    def outputs(self) -> List[str]:
        return ["ownership", "ownership_by_class", "ownership_summary"]

    def execute(self, context: BlockContext) -> None:
        cap_table: CapTable = context.get(self.cap_table_key)

        ownership_df = shareholders_frame(cap_table.shareholders)
        context.set("ownership", ownership_df)
        context.set("ownership_by_class", self._compute_by_class(ownership_df))
        context.set("ownership_summary", self._compute_summary(cap_table))

    def _compute_by_class(self, ownership_df: pd.DataFrame) -> pd.DataFrame:
        if ownership_df.empty:
            return pd.DataFrame(columns=["share_class", "num_shares", "percent", "value", "holders_count"])

        by_class = ownership_df.groupby("share_class", sort=False).agg(
            num_shares=("num_shares", "sum"),
            percent=("percent", "sum"),
            value=("value", "sum"),
            holders_count=("name", "nunique"),
        ).reset_index()

        return by_class.sort_values("percent", ascending=False).reset_index(drop=True)

    def _compute_summary(self, cap_table: CapTable) -> pd.DataFrame:
        return pd.DataFrame([{
            "total_shares": float(cap_table.total_shares_outstanding),
            "post_money_valuation": float(cap_table.post_money_valuation),
            "founder_percent": float(cap_table.founder_percent),
            "preferred_percent": float(cap_table.preferred_percent),
            "shareholders_count": len(cap_table.shareholders),
            "pending_safes": len(cap_table.pending_safes),
        }])
