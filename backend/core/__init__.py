from core.db_connector import ConnectionRegistry, detect_dialect, reflect_schema  # noqa: F401
from core.introspector import introspect, get_table_meta  # noqa: F401
from core.record_service import list_records, get_record, create_record, update_record, delete_record  # noqa: F401
from core.relationship_loader import load_relations  # noqa: F401
from core.auth import login, create_session, validate_session  # noqa: F401
