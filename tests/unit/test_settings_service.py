"""Test the settings document lifecycle and admin mutations."""
import json

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from coffeevan.errors import BackendUnavailable, ValidationError
from coffeevan.models.generated import ShopSettingsDoc
from coffeevan.services.settings_service import (
    SETTINGS_DOC_ID,
    ProductOption,
    SettingsService,
    settings_from_doc,
)


class TestLifecycle:
    def test_defaults_created_when_missing(self, settings_service, db):
        snapshot = settings_service.load()

        assert snapshot.max_orders_per_slot == 3
        assert snapshot.blocked_dates == frozenset()
        assert snapshot.product_options == ()
        assert db.get(ShopSettingsDoc, SETTINGS_DOC_ID) is not None

    def test_get_uses_cache_until_invalidated(self, settings_service, session_factory):
        settings_service.load()

        other = SettingsService(session_factory)
        other.update_max_orders_per_slot(5)

        assert settings_service.get().max_orders_per_slot == 3
        settings_service.invalidate()
        assert settings_service.get().max_orders_per_slot == 5

    def test_store_down_serves_last_snapshot(self, settings_service, monkeypatch):
        settings_service.update_max_orders_per_slot(4)

        def fail():
            raise BackendUnavailable("Settings store unavailable")

        monkeypatch.setattr(settings_service, "_fetch", fail)
        assert settings_service.load().max_orders_per_slot == 4

    def test_store_down_without_snapshot_raises(self, tmp_path):
        db_path = tmp_path / "missing" / "coffeevan.db"
        engine = create_engine(f"sqlite:///{db_path}")

        with pytest.raises(BackendUnavailable):
            SettingsService(sessionmaker(bind=engine)).get()


class TestMutations:
    def test_max_orders(self, settings_service):
        assert settings_service.update_max_orders_per_slot(6).max_orders_per_slot == 6
        assert settings_service.get().max_orders_per_slot == 6

    def test_max_orders_below_one_rejected(self, settings_service):
        with pytest.raises(ValidationError):
            settings_service.update_max_orders_per_slot(0)

    def test_toggle_blocked_date(self, settings_service):
        snapshot, blocked = settings_service.toggle_blocked_date("2026-12-25")
        assert blocked is True
        assert "2026-12-25" in snapshot.blocked_dates

        snapshot, blocked = settings_service.toggle_blocked_date("2026-12-25")
        assert blocked is False
        assert "2026-12-25" not in snapshot.blocked_dates

    def test_blocked_dates_persisted(self, settings_service, db):
        settings_service.toggle_blocked_date("2026-12-25")

        doc = db.get(ShopSettingsDoc, SETTINGS_DOC_ID)
        assert json.loads(doc.blocked_dates) == ["2026-12-25"]

    def test_option_crud(self, settings_service):
        option = settings_service.add_product_option("Oat milk", 0.40)
        assert settings_service.get().option_price(option.id) == 0.40

        updated = ProductOption(id=option.id, title="Oat milk", price=0.45)
        settings_service.update_product_option(updated)
        assert settings_service.get().option_price(option.id) == 0.45

        assert settings_service.delete_product_option(option.id) is True
        assert settings_service.get().get_option(option.id) is None
        assert settings_service.delete_product_option(option.id) is False

    def test_blank_option_title_rejected(self, settings_service):
        with pytest.raises(ValidationError):
            settings_service.add_product_option("  ", 0.10)

    def test_update_unknown_option_rejected(self, settings_service):
        with pytest.raises(ValidationError):
            settings_service.update_product_option(ProductOption(id="missing", title="X", price=1.0))


class TestDocumentParsing:
    def test_camel_case_default_flag_accepted(self):
        doc = ShopSettingsDoc(
            id=SETTINGS_DOC_ID,
            max_orders_per_slot=2,
            blocked_dates='["2026-12-25"]',
            product_options='[{"id": "opt1", "title": "Regular", "price": 0, "isDefault": true}]',
        )

        snapshot = settings_from_doc(doc)
        assert snapshot.product_options[0].is_default is True
        assert snapshot.blocked_dates == frozenset({"2026-12-25"})

    def test_malformed_json_ignored(self):
        doc = ShopSettingsDoc(id=SETTINGS_DOC_ID, max_orders_per_slot=2, blocked_dates="not json", product_options="{")

        snapshot = settings_from_doc(doc)
        assert snapshot.blocked_dates == frozenset()
        assert snapshot.product_options == ()
