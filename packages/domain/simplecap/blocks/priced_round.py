"""Priced round preview block.

Runs a prospective priced round against a CapTable without changing it and
tabulates the outcome.
"""

from typing import List
import pandas as pd

from .base import Block, BlockContext
from .ownership import shareholders_frame
from ..schemas import CapTable, PricedRoundTerms

CONVERSION_COLUMNS = [
    "safe_name",
    "paid_amount",
    "base_price",
    "cap_price",
    "discount_price",
    "effective_price",
    "applied_term",
    "shares",
    "share_class",
]


class PricedRoundBlock(Block):
    """Pro forma cap table for a priced round.

    Inputs (from context):
        - cap_table: CapTable (left unchanged)
        - priced_round_terms: PricedRoundTerms

    Outputs (to context):
        - safe_conversions: one row per pending SAFE with its candidate
          prices, effective price, applied term and shares issued
        - pro_forma_ownership: ownership DataFrame after the round (same
          columns as ``ownership``)
        - priced_round_summary: single row with base_price,
          total_pre_existing_shares, total_post_money_shares,
          pre_money_valuation, post_money_valuation, new_money
    """

    def __init__(self, cap_table_key: str = "cap_table", terms_key: str = "priced_round_terms"):
        self.cap_table_key = cap_table_key
        self.terms_key = terms_key

    def inputs(self) -> List[str]:
        return [self.cap_table_key, self.terms_key]

    def outputs(self) -> List[str]:
        return ["safe_conversions", "pro_forma_ownership", "priced_round_summary"]

    def execute(self, context: BlockContext) -> None:
        cap_table: CapTable = context.get(self.cap_table_key)
        terms: PricedRoundTerms = context.get(self.terms_key)

        result = cap_table.preview_priced_round(
            terms.investors_to_paid_amounts,
            terms.pre_money_valuation,
            terms.share_class,
        )

        conversions = pd.DataFrame(
            [
                {
                    key: float(value) if key not in ("safe_name", "applied_term", "share_class") else value
                    for key, value in conversion.model_dump().items()
                }
                for conversion in result.conversions
            ],
            columns=CONVERSION_COLUMNS,
        )
        context.set("safe_conversions", conversions)
        context.set("pro_forma_ownership", shareholders_frame(result.shareholders))
        context.set("priced_round_summary", pd.DataFrame([{
            "base_price": float(result.base_price),
            "total_pre_existing_shares": float(result.total_pre_existing_shares),
            "total_post_money_shares": float(result.total_post_money_shares),
            "pre_money_valuation": float(result.pre_money_valuation),
            "post_money_valuation": float(result.post_money_valuation),
            "new_money": float(result.new_money),
        }]))
