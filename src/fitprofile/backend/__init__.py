from fitprofile.backend.base import Row, TableBackend
from fitprofile.backend.rest import RestTableBackend
from fitprofile.backend.sql import SqlTableBackend

__all__ = ["RestTableBackend", "Row", "SqlTableBackend", "TableBackend"]
