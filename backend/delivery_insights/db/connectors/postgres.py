import asyncpg
from typing import List, Dict, Any, Optional, Sequence, Tuple
import re

from delivery_insights.db.record_store import (
    Dimension,
    GroupedCount,
    Measure,
    OrderBy,
    RecordStore,
    Restaurant,
)
from delivery_insights.security.access_scope import AccessScope
from delivery_insights.utils.logger import get_logger
from delivery_insights.config import Settings, get_settings

# Initialize logger
logger = get_logger(__name__)

_IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")

class PostgresRecordStore(RecordStore):
    """
    PostgreSQL record store.

    Delivery records and restaurants are read through an asyncpg connection
    pool. Each query acquires its own connection, so grouped counts issued
    concurrently run in parallel on the server.
    """

    def __init__(
        self,
        dsn: Optional[str] = None,
        delivery_table: Optional[str] = None,
        restaurant_table: Optional[str] = None,
        min_size: Optional[int] = None,
        max_size: Optional[int] = None,
        settings: Optional[Settings] = None
    ):
        """
        Initialize the PostgreSQL record store.

        Args:
            dsn: Database connection URL
            delivery_table: Table holding delivery records
            restaurant_table: Restaurant reference table
            min_size: Minimum pool size
            max_size: Maximum pool size
            settings: Settings providing defaults for the above
        """
        settings = settings or get_settings()
        self.dsn = dsn or settings.database_url
        self.delivery_table = self._validate_identifier(delivery_table or settings.delivery_table)
        self.restaurant_table = self._validate_identifier(restaurant_table or settings.restaurant_table)
        self.min_size = min_size or settings.database_pool_min_size
        self.max_size = max_size or settings.database_pool_max_size
        self.pool: Optional[asyncpg.Pool] = None

    @staticmethod
    def _validate_identifier(name: str) -> str:
        if not _IDENTIFIER_PATTERN.match(name):
            raise ValueError(f"Invalid table name: {name}")
        return name

    async def _get_connection_pool(self) -> asyncpg.Pool:
        """Get a connection pool for the database."""
        if self.pool is None:
            try:
                self.pool = await asyncpg.create_pool(
                    dsn=self.dsn,
                    min_size=self.min_size,
                    max_size=self.max_size
                )
                logger.info(f"Created connection pool for {self.delivery_table} record store")
            except Exception as e:
                logger.error(f"Error creating connection pool: {str(e)}")
                raise

        return self.pool

    async def execute_query(
        self,
        query: str,
        params: Optional[Dict[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        """
        Execute a read-only SQL query and return the rows.

        Args:
            query: SQL query with ``:name`` placeholders
            params: Query parameters

        Returns:
            List of row dictionaries
        """
        if not self._is_read_only_query(query):
            raise ValueError("Only SELECT queries are allowed")

        query, param_values = self._bind_params(query, params or {})

        pool = await self._get_connection_pool()

        try:
            async with pool.acquire() as conn:
                rows = await conn.fetch(query, *param_values)
                return [dict(row) for row in rows]
        except Exception as e:
            logger.error(f"Error executing query: {str(e)}")
            raise

    @staticmethod
    def _bind_params(query: str, params: Dict[str, Any]) -> Tuple[str, List[Any]]:
        """Replace named parameters with positional ones, e.g. :ids -> $1."""
        param_values = []
        for i, (name, value) in enumerate(params.items()):
            query = re.sub(rf":{name}\b", f"${i + 1}", query)
            param_values.append(value)
        return query, param_values

    @staticmethod
    def _is_read_only_query(query: str) -> bool:
        return query.lstrip().upper().startswith("SELECT")

    @staticmethod
    def _scope_clause(scope: AccessScope) -> Tuple[str, Dict[str, Any]]:
        """Build the WHERE clause for a scope."""
        if scope.matches_nothing:
            return "WHERE FALSE", {}
        if scope.restaurant_id is not None:
            return f"WHERE {Dimension.RESTAURANT.value} = :restaurant_id", {"restaurant_id": scope.restaurant_id}
        return "", {}

    async def count(self, scope: AccessScope) -> int:
        where, params = self._scope_clause(scope)
        rows = await self.execute_query(
            f"SELECT COUNT(*) AS total FROM {self.delivery_table} {where}",
            params
        )
        return int(rows[0]["total"]) if rows else 0

    async def grouped_count(
        self,
        dimension: Dimension,
        scope: AccessScope,
        order_by: OrderBy = OrderBy.NONE,
        limit: Optional[int] = None
    ) -> List[GroupedCount]:
        column = Dimension(dimension).value
        where, params = self._scope_clause(scope)

        query = (
            f"SELECT {column} AS key, COUNT(*) AS count "
            f"FROM {self.delivery_table} {where} "
            f"GROUP BY {column}"
        )

        if order_by == OrderBy.COUNT_DESC:
            query += " ORDER BY count DESC, key ASC"
        elif order_by == OrderBy.KEY_ASC:
            query += " ORDER BY key ASC"

        if limit is not None:
            query += " LIMIT :limit"
            params["limit"] = int(limit)

        rows = await self.execute_query(query, params)
        return [GroupedCount(key=row["key"], count=int(row["count"])) for row in rows]

    async def average(self, measure: Measure, scope: AccessScope) -> Optional[float]:
        column = Measure(measure).value
        where, params = self._scope_clause(scope)
        rows = await self.execute_query(
            f"SELECT AVG({column}) AS average FROM {self.delivery_table} {where}",
            params
        )
        if not rows or rows[0]["average"] is None:
            return None
        return float(rows[0]["average"])

    async def find_restaurants_by_ids(self, ids: Sequence[str]) -> List[Restaurant]:
        if not ids:
            return []

        rows = await self.execute_query(
            f"SELECT id, name, code FROM {self.restaurant_table} WHERE id = ANY(:ids)",
            {"ids": list(ids)}
        )
        return [Restaurant(id=row["id"], name=row["name"], code=row.get("code")) for row in rows]

    async def close(self) -> None:
        """Close the connection pool."""
        if self.pool is not None:
            await self.pool.close()
            self.pool = None
            logger.info("Closed connection pool")
