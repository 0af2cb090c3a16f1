from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from db.init import get_db
from models.app_setting import AppSetting, AppSettingsUpdate, PreferenceDocument, PREFERENCES_KEY
from models.field import CustomField
from routers.fields import serialize_field
from utils.columns import STANDARD_COLUMNS, migrate_standard_columns, visible_fields, visible_standard_columns
from utils.deps import get_current_user, role_required, is_admin
from utils.errors import AuthorizationError, StoreError, ValidationError
import json
import logging

logger = logging.getLogger(__name__)

router = APIRouter()


def default_preferences(db: Session) -> dict:
    field_ids = [
        fid
        for (fid,) in db.query(CustomField.id)
        .filter(CustomField.is_active.is_(True))
        .order_by(CustomField.display_order.asc(), CustomField.id.asc())
        .all()
    ]
    return {
        "visibleFields": field_ids,
        "fieldOrder": list(field_ids),
        "standardColumns": {key: True for key in STANDARD_COLUMNS},
        "standardColumnOrder": list(STANDARD_COLUMNS),
    }


def read_preferences(db: Session) -> dict:
    """Stored document with legacy columns translated, or a default that is not persisted."""
    row = db.query(AppSetting).filter(AppSetting.setting_key == PREFERENCES_KEY).first()
    if row is None:
        return default_preferences(db)

    try:
        preferences = json.loads(row.setting_value or "{}")
    except ValueError as e:
        logger.error(f"Stored column preferences are not valid JSON: {str(e)}")
        raise StoreError("Stored column preferences are unreadable") from e
    if not isinstance(preferences, dict):
        logger.error("Stored column preferences are not a JSON object")
        raise StoreError("Stored column preferences are unreadable")
    if "standardColumns" in preferences:
        preferences["standardColumns"] = migrate_standard_columns(preferences["standardColumns"])
    return preferences


def write_preferences(db: Session, document: PreferenceDocument, payload) -> dict:
    """Replace the whole document. Only admins may write it."""
    if not is_admin(payload):
        raise AuthorizationError("Only administrators can change column preferences")

    value = json.dumps(document.model_dump(exclude_unset=True))
    row = db.query(AppSetting).filter(AppSetting.setting_key == PREFERENCES_KEY).first()
    if row is None:
        db.add(AppSetting(setting_key=PREFERENCES_KEY, setting_value=value))
    else:
        row.setting_value = value
    db.commit()

    logger.info(f"Column preferences replaced by {payload.get('sub')}")
    return json.loads(value)


@router.get("/preferences")
def get_preferences(db: Session = Depends(get_db), payload=Depends(get_current_user)):
    return {"preferences": read_preferences(db)}


@router.post("/preferences", dependencies=[Depends(role_required("admin"))])
def save_preferences(data: PreferenceDocument, db: Session = Depends(get_db), payload=Depends(get_current_user)):
    write_preferences(db, data, payload)
    return {"message": "Preferences saved successfully. All users will see this configuration."}


@router.get("/columns")
def get_columns(db: Session = Depends(get_db), payload=Depends(get_current_user)):
    """The column layout every user sees, resolved from the current preferences."""
    preferences = read_preferences(db)
    fields = db.query(CustomField).order_by(CustomField.display_order.asc(), CustomField.id.asc()).all()
    return {
        "standardColumns": visible_standard_columns(preferences),
        "fields": [serialize_field(f) for f in visible_fields(fields, preferences)],
    }


@router.get("/app", dependencies=[Depends(role_required("admin"))])
def get_app_settings(db: Session = Depends(get_db)):
    rows = db.query(AppSetting).order_by(AppSetting.setting_key.asc()).all()
    return {"settings": {r.setting_key: r.setting_value for r in rows}}


@router.post("/app", dependencies=[Depends(role_required("admin"))])
def save_app_settings(data: AppSettingsUpdate, db: Session = Depends(get_db)):
    if PREFERENCES_KEY in data.settings:
        raise ValidationError(f"'{PREFERENCES_KEY}' is managed through /settings/preferences")
    for key, value in data.settings.items():
        row = db.query(AppSetting).filter(AppSetting.setting_key == key).first()
        if row is None:
            db.add(AppSetting(setting_key=key, setting_value=value))
        else:
            row.setting_value = value
    db.commit()
    return {"message": "Settings updated successfully"}
