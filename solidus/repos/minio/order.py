"""
Minio implementation of OrderRepository.

Each order is stored as a JSON object named after its order number in a
single bucket. Listing reads every object, which is acceptable for the
admin listing and promotion usage counts this store serves.
"""

import io
import logging
import secrets
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from minio import Minio
from minio.error import S3Error

from solidus.domain import Order
from solidus.repositories import OrderRepository
from solidus.repos.memory.order import count_usage

logger = logging.getLogger(__name__)


class MinioOrderRepository(OrderRepository):
    """
    Minio implementation of OrderRepository.
    Uses Minio for persistence of Order objects.
    """

    def __init__(
        self,
        endpoint: str,
        access_key: str = "minioadmin",
        secret_key: str = "minioadmin",
        bucket_name: str = "orders",
        client: Optional[Minio] = None,
    ) -> None:
        logger.debug(
            "Initializing MinioOrderRepository",
            extra={"minio_endpoint": endpoint, "bucket_name": bucket_name},
        )
        self.client = client or Minio(
            endpoint,
            access_key=access_key,
            secret_key=secret_key,
            secure=False,
        )
        self.bucket_name = bucket_name
        self._ensure_bucket_exists()

    def _ensure_bucket_exists(self) -> None:
        try:
            if not self.client.bucket_exists(self.bucket_name):
                logger.info(
                    "Creating orders bucket",
                    extra={"bucket_name": self.bucket_name},
                )
                self.client.make_bucket(self.bucket_name)
        except S3Error as e:
            logger.error(
                "Failed to create orders bucket",
                extra={"bucket_name": self.bucket_name, "error": str(e)},
            )
            raise

    def _read_object(self, object_name: str) -> Optional[bytes]:
        try:
            response = self.client.get_object(
                bucket_name=self.bucket_name, object_name=object_name
            )
        except S3Error as e:
            if getattr(e, "code", None) == "NoSuchKey":
                return None
            raise
        try:
            return response.read()
        finally:
            response.close()
            response.release_conn()

    async def get(self, number: str) -> Optional[Order]:
        """Retrieve an order by its number from Minio."""
        try:
            data = self._read_object(number)
        except S3Error as e:
            logger.error(
                "MinioOrderRepository: Error retrieving order object",
                extra={
                    "order_number": number,
                    "error": str(e),
                    "error_type": type(e).__name__,
                },
                exc_info=True,
            )
            raise

        if data is None:
            logger.debug(
                "MinioOrderRepository: Order not found (NoSuchKey)",
                extra={"order_number": number},
            )
            return None
        return Order.model_validate_json(data.decode("utf-8"))

    async def save(self, order: Order) -> None:
        """Persist the state of an order to Minio."""
        object_name = order.number
        order_json = order.model_dump_json().encode("utf-8")

        existing = self._read_object(object_name)
        if existing == order_json:
            logger.debug(
                "MinioOrderRepository: Order state already matches, "
                "skipping save (idempotent)",
                extra={"order_number": order.number},
            )
            return

        try:
            self.client.put_object(
                bucket_name=self.bucket_name,
                object_name=object_name,
                data=io.BytesIO(order_json),
                length=len(order_json),
                content_type="application/json",
                metadata={
                    "state": order.state.value,
                    "saved_at": datetime.now(timezone.utc).isoformat(),
                },
            )
        except S3Error as e:
            logger.error(
                "MinioOrderRepository: Failed to persist order state",
                extra={
                    "order_number": order.number,
                    "state": order.state.value,
                    "error": str(e),
                    "error_type": type(e).__name__,
                },
                exc_info=True,
            )
            raise

        logger.info(
            "MinioOrderRepository: Order state persisted",
            extra={
                "order_number": order.number,
                "state": order.state.value,
                "payload_size_bytes": len(order_json),
            },
        )

    async def generate_id(self) -> str:
        return f"order-{uuid.uuid4()}"

    async def generate_number(self) -> str:
        while True:
            number = f"R{secrets.randbelow(10**9):09d}"
            if self._read_object(number) is None:
                return number

    async def list_all(self) -> List[Order]:
        orders = []
        for obj in self.client.list_objects(self.bucket_name):
            data = self._read_object(obj.object_name)
            if data is not None:
                orders.append(Order.model_validate_json(data.decode("utf-8")))
        return sorted(orders, key=lambda o: o.created_at)

    async def list_for_user(self, user_id: str) -> List[Order]:
        return [o for o in await self.list_all() if o.user_id == user_id]

    async def count_promotion_usage(
        self,
        promotion_id: str,
        promotion_code_id: Optional[str] = None,
        excluded_number: Optional[str] = None,
    ) -> int:
        return count_usage(
            await self.list_all(),
            promotion_id,
            promotion_code_id,
            excluded_number,
        )
