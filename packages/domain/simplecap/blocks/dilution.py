"""Dilution computation block.

Compares ownership before and after a priced round, line by line.
"""

from typing import List
import pandas as pd

from .base import Block, BlockContext


class DilutionBlock(Block):
    """Per-holder ownership change across a priced round.

    A round only appends shareholder lines, so the first rows of the pro
    forma table are the existing holders in the same order. New lines start
    from 0%.

    Inputs (from context):
        - ownership: DataFrame from OwnershipBlock
        - pro_forma_ownership: DataFrame from PricedRoundBlock

    Outputs (to context):
        - dilution: columns name, share_class, is_new, percent_before,
          percent_after, percent_change, value_before, value_after
    """

    def __init__(self, before_key: str = "ownership", after_key: str = "pro_forma_ownership"):
        self.before_key = before_key
        self.after_key = after_key

    def inputs(self) -> List[str]:
        return [self.before_key, self.after_key]

    def outputs(self) -> List[str]:
        return ["dilution"]

    def execute(self, context: BlockContext) -> None:
        before: pd.DataFrame = context.get(self.before_key).reset_index(drop=True)
        after: pd.DataFrame = context.get(self.after_key).reset_index(drop=True)

        dilution = pd.DataFrame({
            "name": after["name"],
            "share_class": after["share_class"],
            "is_new": after.index >= len(before),
            "percent_before": before["percent"].reindex(after.index, fill_value=0.0),
            "percent_after": after["percent"],
            "value_before": before["value"].reindex(after.index, fill_value=0.0),
            "value_after": after["value"],
        })
        dilution["percent_change"] = dilution["percent_after"] - dilution["percent_before"]

        context.set("dilution", dilution[[
            "name",
            "share_class",
            "is_new",
            "percent_before",
            "percent_after",
            "percent_change",
            "value_before",
            "value_after",
        ]])
