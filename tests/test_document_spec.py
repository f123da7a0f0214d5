import pytest

from document_spec import DocumentSpec, RecordKind, Record, Tenant, Party


def payload(**overrides):
    data = {
        "kind": "invoice",
        "tenant": {"business_name": "Acme Co", "brand_color": "#3c6b5b", "footer_text": "Thanks"},
        "record": {"number": "INV-0001", "currency": "EUR", "issue_date": "2025-09-01",
                   "due_date": "2025-09-15", "subtotal": 100, "tax_total": 23, "total": 123},
        "party": {"name": "Rosa Maria"},
        "items": [
            {"description": "Service A", "qty": 1, "unit_price": 100, "line_total": 100},
            {"description": "Service B", "qty": 2, "unit_price": 0, "line_total": 0},
        ],
    }
    data.update(overrides)
    return data


class TestRecordKind:
    @pytest.mark.parametrize("raw,kind", [("invoice", RecordKind.INVOICE), (" Quote ", RecordKind.QUOTE),
                                          ("RECEIPT", RecordKind.RECEIPT)])
    def test_parse(self, raw, kind):
        assert RecordKind.parse(raw) is kind

    def test_unknown(self):
        with pytest.raises(ValueError):
            RecordKind.parse("credit-note")

    def test_titles(self):
        assert RecordKind.INVOICE.title == "INVOICE"
        assert RecordKind.RECEIPT.party_label == "Received From"


class TestFromDict:
    def test_invoice(self):
        spec = DocumentSpec.from_dict(payload())
        assert spec.record.kind is RecordKind.INVOICE
        assert [(d.label, d.value) for d in spec.record.dates] == [("Issue", "2025-09-01"), ("Due", "2025-09-15")]
        assert spec.tenant.footer_text == "Thanks"
        assert spec.qr_target is None

    def test_item_order_kept(self):
        spec = DocumentSpec.from_dict(payload())
        assert [it.description for it in spec.line_items] == ["Service A", "Service B"]

    def test_quote(self):
        spec = DocumentSpec.from_dict(payload(
            kind="quote",
            record={"number": "Q-0003", "quote_date": "2025-10-01", "valid_until": "2025-10-31"},
        ))
        assert spec.record.kind is RecordKind.QUOTE
        assert [d.label for d in spec.record.dates] == ["Date", "Valid until"]

    def test_receipt(self):
        spec = DocumentSpec.from_dict(payload(kind="receipt", record={"number": "REC-1", "date": "2025-09-02"}))
        assert [(d.label, d.value) for d in spec.record.dates] == [("Date", "2025-09-02")]

    def test_defaults_to_invoice(self):
        data = payload()
        del data["kind"]
        assert DocumentSpec.from_dict(data).record.kind is RecordKind.INVOICE

    def test_blank_qr_target_ignored(self):
        assert DocumentSpec.from_dict(payload(qr_target="   ")).qr_target is None
        assert DocumentSpec.from_dict(payload(qr_target="https://x.example/p")).qr_target == "https://x.example/p"

    @pytest.mark.parametrize("bad", [
        [],
        {"record": {"number": "1"}},
        {"tenant": {"business_name": "  "}, "record": {"number": "1"}},
        {"tenant": {"business_name": "Acme"}, "record": {}},
    ])
    def test_rejects_incomplete(self, bad):
        with pytest.raises(ValueError):
            DocumentSpec.from_dict(bad)

    def test_unknown_kind_rejected(self):
        with pytest.raises(ValueError, match="Unknown record kind"):
            DocumentSpec.from_dict(payload(kind="memo"))

    def test_numeric_optional_fields_become_text(self):
        spec = DocumentSpec.from_dict(payload(
            tenant={"business_name": "Acme Co", "phone": 912345678, "address": 1000},
            party={"name": "Rosa Maria", "phone": 351912345678},
            qr_target=42,
        ))
        assert spec.tenant.contact_lines() == ["1000", "912345678"]
        assert spec.party.lines() == ["Rosa Maria", "351912345678"]
        assert spec.qr_target == "42"

    @pytest.mark.parametrize("items", [["Service A"], [{"description": "ok"}, 7], {"description": "x"}, 5])
    def test_malformed_items_rejected(self, items):
        with pytest.raises(ValueError, match="items"):
            DocumentSpec.from_dict(payload(items=items))

    @pytest.mark.parametrize("key", ["tenant", "record", "party"])
    def test_sections_must_be_objects(self, key):
        with pytest.raises(ValueError, match=key):
            DocumentSpec.from_dict(payload(**{key: "oops"}))


class TestRecord:
    def test_balanced(self):
        assert Record.invoice("1", subtotal=100, tax_total=23, total=123).totals_balanced()
        assert Record.invoice("1", subtotal="10.10", tax_total="0.2", total=10.3).totals_balanced()

    def test_unbalanced(self):
        assert not Record.invoice("1", subtotal=100, tax_total=23, total=120).totals_balanced()

    def test_invoice_without_due_date(self):
        assert [d.label for d in Record.invoice("1", issue_date="2025-01-01").dates] == ["Issue"]

    def test_balanced_beyond_default_precision(self):
        big = "1000000000000000000000000000000.01"
        assert Record.invoice("1", subtotal=1e30, tax_total="0.01", total=big).totals_balanced()


class TestContactLines:
    def test_tenant_order(self):
        t = Tenant("Acme", address="Rua A 1\n1000 Lisboa", phone="+351 1", website="acme.example", email="a@acme.example")
        assert t.contact_lines() == ["Rua A 1", "1000 Lisboa", "+351 1", "a@acme.example", "acme.example"]

    def test_party_blank_fields_dropped(self):
        assert Party(name=" ", address="", email=None).lines() == []

    def test_numeric_contact_fields(self):
        t = Tenant("Acme", phone=912345678, website=None)
        assert t.contact_lines() == ["912345678"]
        assert Party(name=12, address="Rua A\n 1000 ").lines() == ["12", "Rua A", "1000"]
