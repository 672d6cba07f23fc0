# Overview: Pytest coverage for product ids, faceted search, stock mutations and upload decoding.

import io

import pytest
from openpyxl import Workbook

from conftest import SHIRT_ID, intake_row
from dresscode.errors import BadRequest, InsufficientStock, NotFound
from dresscode.integrations.tabular import decode_rows
from dresscode.services import catalog_service, inventory_service
from dresscode.services.concurrency import run_in_transaction


class TestProductIds:

    def test_school_key_includes_pattern(self):
        assert catalog_service.derive_product_id(intake_row()) == SHIRT_ID

    def test_corporate_key_skips_school(self):
        line = intake_row(category="corporate", school_name="ignored")
        assert catalog_service.derive_product_id(line) == "CORPORATE_SHIRT_Formal_BOY_PLAIN"

    def test_other_categories_skip_pattern_and_blanks(self):
        line = {"category": "HOSPITAL", "product_category": "SCRUB", "product_name": "Classic", "gender": ""}
        assert catalog_service.derive_product_id(line) == "HOSPITAL_SCRUB_Classic"

    def test_category_is_required(self):
        with pytest.raises(BadRequest):
            catalog_service.derive_product_id({"product_name": "Classic"})

    def test_group_names_are_normalized(self):
        assert catalog_service.normalize_group(" work wear uniforms ") == "WORK WEAR UNIFORMS"
        with pytest.raises(BadRequest):
            catalog_service.normalize_group("")


class TestFacetedSearch:

    @pytest.fixture
    def two_products(self, catalog, wm_ctx, warehouse):
        inventory_service.process_csv_file(
            [intake_row(color="NAVY", size="S", quantity="4", gender="GIRL")],
            group="TOGS",
            destination_store_id=warehouse.id,
            actor=wm_ctx,
        )

    def test_filters_combine(self, db_session, two_products):
        girls = catalog_service.search_products("TOGS", {"gender": "GIRL"})
        assert [p.product_id for p in girls] == ["SCHOOL_ABC_SHIRT_Formal_GIRL_PLAIN"]

        white = catalog_service.search_products("TOGS", {"color": ["white", "red"]})
        assert [p.product_id for p in white] == [SHIRT_ID]

        assert catalog_service.search_products("TOGS", {"gender": "GIRL", "size": "M"}) == []

    def test_facet_values_ignore_their_own_filter(self, db_session, two_products):
        assert catalog_service.get_facet_values("TOGS", "gender", {"gender": "BOY"}) == ["BOY", "GIRL"]
        assert catalog_service.get_facet_values("TOGS", "size", {"gender": "BOY"}) == ["L", "M"]
        assert catalog_service.get_facet_values("TOGS", "color") == ["NAVY", "WHITE"]

    def test_unsupported_filter(self, db_session, catalog):
        with pytest.raises(BadRequest):
            catalog_service.search_products("TOGS", {"price_cents": 1})

    def test_paging(self, db_session, two_products):
        first = catalog_service.search_products("TOGS", limit=1)
        second = catalog_service.search_products("TOGS", limit=1, offset=1)
        assert len(first) == len(second) == 1
        assert first[0].product_id != second[0].product_id


class TestStockMutations:

    def test_decrement_never_goes_negative(self, db_session, catalog):
        vs = catalog_service.find_variant_size("TOGS", SHIRT_ID, "white", "l")
        with pytest.raises(InsufficientStock):
            run_in_transaction(lambda: catalog_service.decrement_quantity(vs.id, 6))
        assert catalog_service.find_variant_size("TOGS", SHIRT_ID, "WHITE", "L").quantity == 5

        run_in_transaction(lambda: catalog_service.decrement_quantity(vs.id, 5))
        assert catalog_service.find_variant_size("TOGS", SHIRT_ID, "WHITE", "L").quantity == 0

    def test_store_row_is_created_on_first_credit(self, db_session, catalog, store):
        vs = catalog_service.find_variant_size("TOGS", SHIRT_ID, "WHITE", "M")
        run_in_transaction(lambda: catalog_service.increment_store_quantity(store.id, vs.id, 2))
        run_in_transaction(lambda: catalog_service.increment_store_quantity(store.id, vs.id, 3))
        assert catalog_service.get_store_quantity(store.id, vs.id) == 5

        with pytest.raises(InsufficientStock):
            run_in_transaction(lambda: catalog_service.decrement_store_quantity(store.id, vs.id, 6))
        assert catalog_service.get_store_quantity(store.id, vs.id) == 5

    def test_non_positive_amounts_are_rejected(self, db_session, catalog):
        vs = catalog_service.find_variant_size("TOGS", SHIRT_ID, "WHITE", "M")
        with pytest.raises(BadRequest):
            catalog_service.decrement_quantity(vs.id, 0)

    def test_style_coat_lookup(self, db_session, catalog):
        assert catalog_service.find_by_style_coat("TG-WHT-L").size == "L"
        with pytest.raises(NotFound):
            catalog_service.find_by_style_coat("TG-NONE")


class TestUploadDecoding:

    def test_csv_with_bom_and_blank_rows(self):
        data = "\ufeffcategory , quantity\nSCHOOL, 3\n,\n".encode("utf-8")
        assert decode_rows(data, "stock.CSV") == [{"category": "SCHOOL", "quantity": "3"}]

    def test_xlsx(self):
        wb = Workbook()
        ws = wb.active
        ws.append(["variant_color", "variant_size", "quantity"])
        ws.append(["WHITE", "M", 4.0])
        ws.append([None, None, None])
        buf = io.BytesIO()
        wb.save(buf)

        assert decode_rows(buf.getvalue(), "stock.xlsx") == [
            {"variant_color": "WHITE", "variant_size": "M", "quantity": "4"}
        ]

    def test_unknown_extension(self):
        with pytest.raises(BadRequest):
            decode_rows(b"a,b", "stock.pdf")

    def test_non_utf8_csv(self):
        with pytest.raises(BadRequest):
            decode_rows("category\nÉCOLE\n".encode("latin-1"), "stock.csv")

    def test_corrupt_xlsx_has_fixed_message(self):
        with pytest.raises(BadRequest) as excinfo:
            decode_rows(b"PK\x03\x04 truncated", "stock.xlsx")
        assert excinfo.value.message == "Could not read spreadsheet"
