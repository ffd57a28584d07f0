from models.connection import DbContext, ConnectionRequest  # noqa: F401
from models.table import TableMetadata, ColumnMetadata, ForeignKeyRef, Relation  # noqa: F401
from models.records import ListRecordsParams, ListRecordsResult, MutationResult, DeleteResult  # noqa: F401
from models.auth import LoginCredentials, User, SessionData  # noqa: F401
