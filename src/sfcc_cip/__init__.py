import datetime
import time
from typing import TYPE_CHECKING

from sfcc_cip.exc import *

if TYPE_CHECKING:
    # Use this import purely for type annotations, a la https://mypy.readthedocs.io/en/latest/runtime_troubles.html#import-cycles
    from .client import Connection

# PEP 249 module globals
apilevel = "2.0"
threadsafety = 1  # Threads may share the module, but not connections.

paramstyle = "qmark"


class DBAPITypeObject(object):
    def __init__(self, *values):
        self.values = values

    def __eq__(self, other):
        return other in self.values

    def __repr__(self):
        return "DBAPITypeObject({})".format(self.values)


STRING = DBAPITypeObject("VARCHAR", "CHAR", "STRING")
BINARY = DBAPITypeObject("BINARY", "VARBINARY")
NUMBER = DBAPITypeObject(
    "TINYINT", "SMALLINT", "INTEGER", "BIGINT", "FLOAT", "REAL", "DOUBLE", "DECIMAL"
)
DATETIME = DBAPITypeObject("TIMESTAMP", "DATE", "TIME")
DATE = DBAPITypeObject("DATE")
ROWID = DBAPITypeObject()

__version__ = "2.11.0"
USER_AGENT_NAME = "PyCipClient"

Date = datetime.date
Timestamp = datetime.datetime


def DateFromTicks(ticks):
    return Date(*time.localtime(ticks)[:3])


def TimestampFromTicks(ticks):
    return Timestamp(*time.localtime(ticks)[:6])


def Binary(string):
    return bytes(string)


def connect(
    instance=None, client_id=None, client_secret=None, **kwargs
) -> "Connection":
    from .client import Connection

    return Connection(instance, client_id, client_secret, **kwargs)
