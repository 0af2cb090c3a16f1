import json
import unittest

from models.app_setting import AppSetting, PreferenceDocument, PREFERENCES_KEY
from models.field import FieldReorderRequest
from support import DatabaseTestCase, ApiTestCase, ADMIN, STAFF
from utils.columns import STANDARD_COLUMNS
from utils.errors import AuthorizationError, StoreError, ValidationError
import routers.fields as fields_router
import routers.settings as settings_router

DOCUMENT = {
    "visibleFields": [2, 1],
    "fieldOrder": [2, 1, 3],
    "standardColumns": {
        "id": False,
        "client_name": True,
        "client_email": True,
        "client_phone": False,
        "status": True,
        "inquiry_date": True,
        "actions": True,
    },
    "standardColumnOrder": ["client_name", "status", "id", "client_email", "client_phone", "inquiry_date", "actions"],
}


class TestPreferenceDocument(DatabaseTestCase):

    def read(self, payload=STAFF):
        return settings_router.get_preferences(db=self.db, payload=payload)["preferences"]

    def stored_row(self):
        return self.db.query(AppSetting).filter(AppSetting.setting_key == PREFERENCES_KEY).first()

    def test_default_when_nothing_stored(self):
        first = self.make_field("budget", "number")
        second = self.make_field("source", "text")
        inactive = self.make_field("legacy", "text", is_active=False)
        fields_router.reorder(
            data=FieldReorderRequest(fieldOrders=[{"id": first, "display_order": 9}]),
            db=self.db,
        )

        preferences = self.read()

        self.assertEqual(preferences["visibleFields"], [second, first])
        self.assertEqual(preferences["fieldOrder"], [second, first])
        self.assertNotIn(inactive, preferences["visibleFields"])
        self.assertEqual(preferences["standardColumns"], {key: True for key in STANDARD_COLUMNS})
        self.assertEqual(preferences["standardColumnOrder"], STANDARD_COLUMNS)
        # the default is synthesized, not persisted
        self.assertIsNone(self.stored_row())

    def test_admin_write_then_staff_read(self):
        settings_router.write_preferences(self.db, PreferenceDocument(**DOCUMENT), ADMIN)
        self.assertEqual(self.read(STAFF), DOCUMENT)

    def test_write_replaces_whole_document(self):
        settings_router.write_preferences(self.db, PreferenceDocument(**DOCUMENT), ADMIN)
        settings_router.write_preferences(self.db, PreferenceDocument(visibleFields=[3]), ADMIN)

        self.assertEqual(self.read(), {"visibleFields": [3]})
        self.assertEqual(self.db.query(AppSetting).count(), 1)

    def test_staff_write_is_rejected_and_storage_unchanged(self):
        with self.assertRaises(AuthorizationError) as cm:
            settings_router.write_preferences(self.db, PreferenceDocument(**DOCUMENT), STAFF)
        self.assertEqual(cm.exception.status_code, 403)
        self.assertIsNone(self.stored_row())

        settings_router.write_preferences(self.db, PreferenceDocument(**DOCUMENT), ADMIN)
        with self.assertRaises(AuthorizationError):
            settings_router.write_preferences(self.db, PreferenceDocument(visibleFields=[]), STAFF)
        self.assertEqual(json.loads(self.stored_row().setting_value), DOCUMENT)

    def test_legacy_created_at_translated_on_read_only(self):
        legacy = dict(DOCUMENT)
        legacy["standardColumns"] = {"id": True, "client_name": True, "created_at": False}
        settings_router.write_preferences(self.db, PreferenceDocument(**legacy), ADMIN)

        columns = self.read()["standardColumns"]
        self.assertEqual(columns, {"id": True, "client_name": True, "inquiry_date": False})

        stored = json.loads(self.stored_row().setting_value)
        self.assertEqual(stored["standardColumns"], {"id": True, "client_name": True, "created_at": False})

    def test_legacy_key_ignored_when_inquiry_date_present(self):
        doc = dict(DOCUMENT)
        doc["standardColumns"] = {"created_at": False, "inquiry_date": True}
        settings_router.write_preferences(self.db, PreferenceDocument(**doc), ADMIN)
        self.assertEqual(self.read()["standardColumns"], {"created_at": False, "inquiry_date": True})

    def test_resolved_columns(self):
        budget = self.make_field("budget", "number", "Budget")
        source = self.make_field("source", "text", "Source")
        notes = self.make_field("notes", "textarea", "Notes")
        settings_router.write_preferences(
            self.db,
            PreferenceDocument(
                visibleFields=[budget, source, notes],
                fieldOrder=[notes, budget],
                standardColumns={"id": True, "status": True, "client_name": False},
                standardColumnOrder=["status", "client_name", "id"],
            ),
            ADMIN,
        )

        columns = settings_router.get_columns(db=self.db, payload=STAFF)

        self.assertEqual(columns["standardColumns"], ["status", "id"])
        self.assertEqual([f["id"] for f in columns["fields"]], [notes, budget, source])

    def test_app_settings(self):
        settings_router.save_app_settings(data=settings_router.AppSettingsUpdate(settings={"company_name": "Acme"}), db=self.db)
        settings_router.save_app_settings(data=settings_router.AppSettingsUpdate(settings={"company_name": "Acme Ltd"}), db=self.db)
        self.assertEqual(settings_router.get_app_settings(db=self.db)["settings"], {"company_name": "Acme Ltd"})

    def test_app_settings_cannot_replace_preferences(self):
        with self.assertRaises(ValidationError) as cm:
            settings_router.save_app_settings(
                data=settings_router.AppSettingsUpdate(settings={PREFERENCES_KEY: "not json", "company_name": "Acme"}),
                db=self.db,
            )
        self.assertEqual(cm.exception.status_code, 400)
        self.assertEqual(self.db.query(AppSetting).count(), 0)
        self.assertEqual(self.read()["standardColumns"], {key: True for key in STANDARD_COLUMNS})

    def test_unreadable_document_is_a_store_error(self):
        for stored in ("not json", "[1, 2]"):
            self.db.query(AppSetting).delete()
            self.db.add(AppSetting(setting_key=PREFERENCES_KEY, setting_value=stored))
            self.db.commit()
            with self.assertRaises(StoreError) as cm:
                self.read()
            self.assertEqual(cm.exception.status_code, 500)


class TestPreferenceEndpoints(ApiTestCase):

    def test_requires_authentication(self):
        response = self.client.get("/settings/preferences")
        self.assertEqual(response.status_code, 401)

    def test_staff_can_read_but_not_write(self):
        response = self.client.post("/settings/preferences", json=DOCUMENT, headers=self.headers(STAFF))
        self.assertEqual(response.status_code, 403)
        self.assertEqual(self.db.query(AppSetting).count(), 0)

        response = self.client.post("/settings/preferences", json=DOCUMENT, headers=self.headers(ADMIN))
        self.assertEqual(response.status_code, 200)

        response = self.client.get("/settings/preferences", headers=self.headers(STAFF))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["preferences"], DOCUMENT)

    def test_app_settings_are_admin_only(self):
        response = self.client.get("/settings/app", headers=self.headers(STAFF))
        self.assertEqual(response.status_code, 403)

    def test_app_settings_endpoint_rejects_preference_key(self):
        response = self.client.post(
            "/settings/app",
            json={"settings": {PREFERENCES_KEY: "not json"}},
            headers=self.headers(ADMIN),
        )
        self.assertEqual(response.status_code, 400)

        response = self.client.get("/settings/preferences", headers=self.headers(STAFF))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["preferences"]["standardColumnOrder"], STANDARD_COLUMNS)


if __name__ == "__main__":
    unittest.main()
