import pytest

from souqote.quotes.builder import QuoteBuilder


RFQ_ITEMS = [
    {"name": "Rebar 12mm", "quantity": 100, "unit": "KG"},
    {"name": "Rebar 16mm", "quantity": 50, "unit": "KG"},
    {"name": "Binding wire", "quantity": 10, "unit": "ROLL"},
]


class TestQuoteBuilder:
    def test_toggle_seeds_rfq_quantity(self):
        builder = QuoteBuilder(RFQ_ITEMS)

        assert builder.toggle(1) is True
        line = builder.items()[0]
        assert line["item_name"] == "Rebar 16mm"
        assert line["quantity_quoted"] == 50
        assert line["unit_price"] == 0
        assert line["total_price"] == 0

        assert builder.toggle(1) is False
        assert builder.items() == []

    def test_update_recalculates_line_total(self):
        builder = QuoteBuilder(RFQ_ITEMS)
        builder.toggle(0)

        builder.update(0, "unit_price", 2.5)
        assert builder.items()[0]["total_price"] == 250

        builder.update(0, "quantity_quoted", 80)
        assert builder.items()[0]["total_price"] == 200

        builder.update(0, "notes", "Grade 60")
        assert builder.items()[0]["total_price"] == 200
        assert builder.items()[0]["notes"] == "Grade 60"

    def test_total_and_summary(self):
        builder = QuoteBuilder(RFQ_ITEMS, currency="AED")
        builder.select_all()
        builder.update(0, "unit_price", 3)
        builder.update(2, "unit_price", 12.25)

        assert builder.selected_count == 3
        assert builder.total == 422.5
        assert builder.summary() == "3 of 3 selected, total AED 422.50"

    def test_items_follow_rfq_order(self):
        builder = QuoteBuilder(RFQ_ITEMS)
        builder.toggle(2)
        builder.toggle(0)
        assert [line["rfq_item_index"] for line in builder.items()] == [0, 2]

    def test_deselect_all(self):
        builder = QuoteBuilder(RFQ_ITEMS)
        builder.select_all()
        builder.deselect_all()
        assert builder.selected_count == 0
        assert builder.total == 0

    def test_unknown_index_or_field(self):
        builder = QuoteBuilder(RFQ_ITEMS)
        with pytest.raises(IndexError):
            builder.toggle(7)
        with pytest.raises(KeyError):
            builder.update(0, "unit_price", 1)

        builder.toggle(0)
        with pytest.raises(KeyError):
            builder.update(0, "item_name", "Something else")

    def test_rfq_without_items(self):
        builder = QuoteBuilder([])
        builder.select_all()
        assert builder.items() == []
        assert builder.summary() == "0 of 0 selected, total AED 0"


class TestFromLines:
    def test_rebuilds_and_prices(self):
        builder = QuoteBuilder.from_lines(
            RFQ_ITEMS,
            [
                {"rfq_item_index": 1, "quantity_quoted": 40, "unit_price": 4},
                {"rfq_item_index": 0, "quantity_quoted": 100, "unit_price": 1.5, "delivery_time": "1 week"},
            ],
        )
        assert builder.total == 310
        assert builder.items()[0]["delivery_time"] == "1 week"
        assert builder.items()[1]["item_name"] == "Rebar 16mm"

    @pytest.mark.parametrize(
        "lines",
        [
            [{"rfq_item_index": 5, "quantity_quoted": 1, "unit_price": 1}],
            [
                {"rfq_item_index": 0, "quantity_quoted": 1, "unit_price": 1},
                {"rfq_item_index": 0, "quantity_quoted": 2, "unit_price": 1},
            ],
            [{"rfq_item_index": 0, "quantity_quoted": 0, "unit_price": 1}],
            [{"rfq_item_index": 0, "quantity_quoted": 1, "unit_price": -1}],
        ],
    )
    def test_invalid_lines(self, lines):
        with pytest.raises(ValueError):
            QuoteBuilder.from_lines(RFQ_ITEMS, lines)
