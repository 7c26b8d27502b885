"""KnowledgeStore SQLite 实现

每个分区（basic_info / search_optimization / management_info / metadata）
以 JSON 文本存储，uploaded_at 冗余为独立列用于排序。
"""

import aiosqlite
import structlog

from ..exceptions import NotFoundError, NotPersistedError
from ..models.knowledge import (
    BasicInfo,
    KnowledgeResource,
    ManagementInfo,
    ResourceMetadata,
    SearchOptimization,
)

log = structlog.get_logger()


class SqliteKnowledgeStore:
    """KnowledgeStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def list_resources(self) -> list[KnowledgeResource]:
        """查询全部资源，最新上传在前"""
        cursor = await self._conn.execute(
            "SELECT * FROM knowledge_resources ORDER BY uploaded_at DESC, rowid DESC"
        )
        rows = await cursor.fetchall()
        return [self._row_to_resource(row) for row in rows]

    async def get_resource(self, resource_id: str) -> KnowledgeResource | None:
        """根据 resource_id 查询资源"""
        cursor = await self._conn.execute(
            "SELECT * FROM knowledge_resources WHERE resource_id = ?",
            (resource_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_resource(row)

    async def create_resource(self, resource: KnowledgeResource) -> KnowledgeResource:
        """创建资源记录"""
        await self._write(
            resource.resource_id,
            """
            INSERT INTO knowledge_resources (resource_id, basic_info,
                search_optimization, management_info, metadata, uploaded_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                resource.resource_id,
                resource.basic_info.model_dump_json(),
                resource.search_optimization.model_dump_json(),
                resource.management_info.model_dump_json(),
                resource.metadata.model_dump_json(),
                resource.metadata.uploaded_at.isoformat(),
            ),
        )
        return resource

    async def update_resource(self, resource: KnowledgeResource) -> KnowledgeResource:
        """整体替换资源记录

        Raises:
            NotFoundError: resource_id 不存在
        """
        rowcount = await self._write(
            resource.resource_id,
            """
            UPDATE knowledge_resources
            SET basic_info = ?, search_optimization = ?, management_info = ?,
                metadata = ?
            WHERE resource_id = ?
            """,
            (
                resource.basic_info.model_dump_json(),
                resource.search_optimization.model_dump_json(),
                resource.management_info.model_dump_json(),
                resource.metadata.model_dump_json(),
                resource.resource_id,
            ),
        )
        if rowcount == 0:
            raise NotFoundError(resource.resource_id, entity="KnowledgeResource")
        return resource

    async def delete_resource(self, resource_id: str) -> None:
        """删除资源，不存在时为 no-op"""
        await self._write(
            resource_id,
            "DELETE FROM knowledge_resources WHERE resource_id = ?",
            (resource_id,),
        )

    async def _write(self, resource_id: str, sql: str, params: tuple) -> int:
        try:
            cursor = await self._conn.execute(sql, params)
            await self._conn.commit()
            return cursor.rowcount
        except aiosqlite.Error as e:
            await self._conn.rollback()
            log.error(
                "knowledge_store_write_failed",
                resource_id=resource_id,
                error_type=type(e).__name__,
            )
            raise NotPersistedError(resource_id, e) from e

    @staticmethod
    def _row_to_resource(row: aiosqlite.Row) -> KnowledgeResource:
        """将数据库行转换为 KnowledgeResource 模型"""
        return KnowledgeResource(
            resource_id=row[0],
            basic_info=BasicInfo.model_validate_json(row[1]),
            search_optimization=SearchOptimization.model_validate_json(row[2]),
            management_info=ManagementInfo.model_validate_json(row[3]),
            metadata=ResourceMetadata.model_validate_json(row[4]),
        )
