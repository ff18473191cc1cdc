import logging
import os
import time
from typing import Any, Dict, Iterable, List
from supabase import Client, create_client
from config import DatabaseCredentials
from service.errors import RepositoryError


_http_logger = logging.getLogger("httpx")
_httpcore_logger = logging.getLogger("httpcore")

class SupabaseService:
    """High-level wrapper for Supabase interactions (auth + table ops).
       Adheres to DIP: callers depend on this abstraction rather than raw client.
    """
    def __init__(self, creds: DatabaseCredentials):
        # Supabase uses httpx under the hood; its INFO-level request logs are very noisy.
        _http_logger.setLevel(logging.WARNING)
        _httpcore_logger.setLevel(logging.WARNING)
        self._creds = creds

        # Retry config for transient HTTP transport issues.
        self._max_retries = self._read_int_env("SUPABASE_MAX_RETRIES", 5, min_value=0)
        self._base_sleep = self._read_float_env("SUPABASE_RETRY_BASE_SLEEP", 1.0, min_value=0.0)
        self._insert_many_chunk_size = self._read_int_env("SUPABASE_INSERT_MANY_CHUNK", 500, min_value=1)
        self._fetch_all_chunk_size = self._read_int_env("SUPABASE_FETCH_ALL_CHUNK", 1000, min_value=1)

        self._client: Client = self._with_retries("connect", self._connect)

    @staticmethod
    def _read_int_env(name: str, default: int, *, min_value: int | None = None) -> int:
        try:
            v = int(os.getenv(name, str(default)))
        except ValueError:
            v = default
        if min_value is not None:
            v = max(min_value, v)
        return v

    @staticmethod
    def _read_float_env(name: str, default: float, *, min_value: float | None = None) -> float:
        try:
            v = float(os.getenv(name, str(default)))
        except ValueError:
            v = default
        if min_value is not None:
            v = max(min_value, v)
        return v

    def _should_retry_exception(self, err: Exception) -> bool:
        # Supabase uses httpx/httpcore underneath; HTTP/2 streams can be terminated mid-run.
        mod = type(err).__module__
        name = type(err).__name__
        return (mod.startswith("httpx") or mod.startswith("httpcore")) and name in {
            "RemoteProtocolError",
            "ConnectError",
            "ReadTimeout",
            "WriteError",
            "NetworkError",
            "ProtocolError",
        }

    def _connect(self) -> Client:
        client = create_client(self._creds.url, self._creds.api_key)
        client.auth.sign_in_with_password({"email": self._creds.email, "password": self._creds.password})
        return client

    def _reset_client(self) -> None:
        # Best-effort close of the existing session before reconnecting.
        postgrest = getattr(self._client, "postgrest", None)
        session = getattr(postgrest, "session", None)
        close = getattr(session, "close", None)
        if callable(close):
            try:
                close()
            except Exception as err:
                logging.getLogger(__name__).debug("Closing stale Supabase session failed: %s", err)
        self._client = self._connect()

    def _with_retries(self, op_name: str, fn):
        attempt = 0
        while True:
            try:
                return fn()
            except Exception as err:
                attempt += 1
                if attempt > self._max_retries or not self._should_retry_exception(err):
                    raise RepositoryError(f"Supabase {op_name} failed: {type(err).__name__}: {err}") from err

                # HTTP/2 connections may be terminated by the server mid-run; recreating the
                # client gives us a fresh connection pool.
                err_name = type(err).__name__
                if err_name == "RemoteProtocolError" and op_name != "connect":
                    self._reset_client()

                sleep_time = self._base_sleep * (2 ** min(attempt, 6))
                logging.getLogger(__name__).warning(
                    "Supabase %s failed (%s: %s). Retrying %s/%s in %.1fs",
                    op_name,
                    type(err).__name__,
                    err,
                    attempt,
                    self._max_retries,
                    sleep_time,
                )
                time.sleep(sleep_time)

    # Generic helpers
    def fetch_all(self, table: str, order_by: str | None = None) -> List[Dict[str, Any]]:
        # PostgREST applies a default row limit unless a range is specified.
        # Paginate until exhaustion so callers truly get *all* rows.
        chunk_size = max(1, int(self._fetch_all_chunk_size))
        all_rows: List[Dict[str, Any]] = []
        offset = 0
        while True:
            def fetch_chunk(start=offset):
                query = self._client.table(table).select("*")
                if order_by:
                    query = query.order(order_by)
                return query.range(start, start + chunk_size - 1).execute()
            resp = self._with_retries("fetch_all", fetch_chunk)
            rows = getattr(resp, "data", None)
            if not rows:
                break
            all_rows.extend(rows)
            if len(rows) < chunk_size:
                break
            offset += chunk_size
        return all_rows

    def upsert(self, table: str, rows: Iterable[Dict[str, Any]]) -> None:
        rows_list = list(rows)
        if not rows_list:
            return
        self._with_retries("upsert", lambda: self._client.table(table).upsert(rows_list).execute())

    def select_eq(self, table: str, column: str, value: Any) -> List[Dict[str, Any]]:
        resp = self._with_retries("select", lambda: self._client.table(table).select("*").eq(column, value).execute())
        return resp.data  # type: ignore

    def insert_many(self, table: str, rows: Iterable[Dict[str, Any]]) -> int:
        """Insert many rows. Returns number of rows acknowledged by the client."""
        rows_list = list(rows)
        if not rows_list:
            return 0

        # Chunk large inserts to avoid oversized payloads and to reduce the chance
        # of long-lived HTTP/2 streams being terminated.
        inserted = 0
        chunk_size = max(1, int(self._insert_many_chunk_size))
        for i in range(0, len(rows_list), chunk_size):
            chunk = rows_list[i : i + chunk_size]
            resp = self._with_retries("insert_many", lambda: self._client.table(table).insert(chunk).execute())
            data = getattr(resp, "data", None)
            inserted += len(data) if isinstance(data, list) else 0
        return inserted
