"""
Item-level quote builder.

Holds the vendor's line selection for an RFQ's item list. Lines are keyed by
the RFQ item index; `total_price` is kept equal to quantity x unit price.
"""
from souqote.utils.formatting import format_currency


EDITABLE_FIELDS = ("quantity_quoted", "unit_price", "delivery_time", "notes")


class QuoteBuilder:
    def __init__(self, rfq_items, currency: str = "AED"):
        self.rfq_items = [dict(item) for item in (rfq_items or [])]
        self.currency = currency
        self._lines = {}

    def _check_index(self, index: int):
        if not isinstance(index, int) or index < 0 or index >= len(self.rfq_items):
            raise IndexError(f"RFQ item {index} does not exist")

    def is_selected(self, index: int) -> bool:
        return index in self._lines

    def toggle(self, index: int) -> bool:
        """Select or deselect an item. Returns the new selection state."""
        self._check_index(index)
        if index in self._lines:
            del self._lines[index]
            return False

        rfq_item = self.rfq_items[index]
        quantity = float(rfq_item.get("quantity") or 1)
        self._lines[index] = {
            "rfq_item_index": index,
            "item_name": rfq_item.get("name", ""),
            "quantity_quoted": quantity,
            "unit_price": 0.0,
            "total_price": 0.0,
            "delivery_time": "",
            "notes": "",
        }
        return True

    def select_all(self):
        for index in range(len(self.rfq_items)):
            if index not in self._lines:
                self.toggle(index)

    def deselect_all(self):
        self._lines.clear()

    def update(self, index: int, field: str, value):
        self._check_index(index)
        if index not in self._lines:
            raise KeyError(f"RFQ item {index} is not selected")
        if field not in EDITABLE_FIELDS:
            raise KeyError(f"Field '{field}' cannot be edited")

        line = self._lines[index]
        if field in ("quantity_quoted", "unit_price"):
            value = float(value or 0)
        line[field] = value

        if field in ("quantity_quoted", "unit_price"):
            line["total_price"] = round(line["quantity_quoted"] * line["unit_price"], 2)
        return dict(line)

    @property
    def selected_count(self) -> int:
        return len(self._lines)

    @property
    def total(self) -> float:
        return round(sum(line["total_price"] for line in self._lines.values()), 2)

    def items(self):
        return [dict(self._lines[i]) for i in sorted(self._lines)]

    def summary(self) -> str:
        return (
            f"{self.selected_count} of {len(self.rfq_items)} selected, "
            f"total {format_currency(self.total, self.currency)}"
        )

    @classmethod
    def from_lines(cls, rfq_items, lines, currency: str = "AED"):
        """
        Rebuild a builder from submitted lines. Raises ValueError on an
        unknown or repeated index, a non-positive quantity or a negative price.
        """
        builder = cls(rfq_items, currency)
        for line in lines:
            index = line["rfq_item_index"]
            try:
                builder._check_index(index)
            except IndexError as exc:
                raise ValueError(str(exc))
            if builder.is_selected(index):
                raise ValueError(f"RFQ item {index} is quoted more than once")

            quantity = float(line.get("quantity_quoted") or 0)
            unit_price = float(line.get("unit_price") or 0)
            if quantity <= 0:
                raise ValueError(f"Quantity for item {index} must be greater than 0")
            if unit_price < 0:
                raise ValueError(f"Unit price for item {index} cannot be negative")

            builder.toggle(index)
            builder.update(index, "quantity_quoted", quantity)
            builder.update(index, "unit_price", unit_price)
            builder.update(index, "delivery_time", line.get("delivery_time") or "")
            builder.update(index, "notes", line.get("notes") or "")
        return builder
