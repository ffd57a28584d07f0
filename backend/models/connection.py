"""Pydantic schemas for database connection contexts and connection-string building."""
from typing import Optional, Literal
from urllib.parse import quote
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

DEFAULT_PORTS = {"postgresql": 5432, "mysql": 3306, "mariadb": 3306, "sqlite": 0}


class DbContext(BaseModel):
    """The single connection string identifying one logical database."""
    url: str

    @field_validator("url")
    @classmethod
    def _url_required(cls, v: str) -> str:
        if not v:
            raise ValueError("Database URL is required")
        return v


class ConnectionRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    db_type: Literal["postgresql", "mysql", "mariadb", "sqlite"] = Field(..., description="Database engine type")

    # SQLite only uses `database` (the file path)
    host: Optional[str] = Field(None, description="Database host")
    port: Optional[int] = Field(None, description="Database port (defaults per engine)")
    database: str = Field(..., min_length=1, description="Database name or SQLite file path")
    user: Optional[str] = Field(None, description="Username")
    password: Optional[str] = Field(None, description="Password")
    schema_name: str = Field("public", alias="schema")

    def get_port(self) -> int:
        return self.port or DEFAULT_PORTS[self.db_type]

    def build_connection_url(self) -> str:
        if self.db_type == "sqlite":
            return self.database
        scheme = "postgresql" if self.db_type == "postgresql" else "mysql"
        user = quote(self.user or "", safe="")
        pwd = quote(self.password or "", safe="")
        return f"{scheme}://{user}:{pwd}@{self.host}:{self.get_port()}/{self.database}"
