from __future__ import annotations


class InvoiceValidationError(Exception):
    """The invoice form is incomplete. ``errors`` lists every problem found."""

    def __init__(self, errors: list[str]) -> None:
        super().__init__("; ".join(errors))
        self.errors = list(errors)


class QuotationNotFoundError(Exception):
    def __init__(self, quotation_id: str) -> None:
        super().__init__(f"Quotation not found: {quotation_id}")
        self.quotation_id = quotation_id
