"""
Tests for MinioOrderRepository.

A small in-process fake stands in for the Minio client so the repository's
object naming, idempotent saves and missing-key handling can be checked
without a running server.
"""

import io
from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Any, Dict, Iterator, List, Optional
from unittest.mock import MagicMock

import pytest
from minio.error import S3Error

from solidus.domain import Order, OrderPromotion, OrderState
from solidus.repos.minio import MinioOrderRepository
from solidus.tests.factories import OrderFactory, order_with_items


def no_such_key(object_name: str) -> S3Error:
    return S3Error(
        code="NoSuchKey",
        message="Object does not exist",
        resource=object_name,
        request_id="req",
        host_id="host",
        response=MagicMock(),
    )


class FakeResponse:
    def __init__(self, data: bytes) -> None:
        self._data = data
        self.closed = False

    def read(self) -> bytes:
        return self._data

    def close(self) -> None:
        self.closed = True

    def release_conn(self) -> None:
        pass


class FakeMinioClient:
    def __init__(self) -> None:
        self.buckets: Dict[str, Dict[str, bytes]] = {}
        self.put_calls: List[Dict[str, Any]] = []

    def bucket_exists(self, bucket_name: str) -> bool:
        return bucket_name in self.buckets

    def make_bucket(self, bucket_name: str) -> None:
        self.buckets[bucket_name] = {}

    def get_object(self, bucket_name: str, object_name: str) -> FakeResponse:
        objects = self.buckets[bucket_name]
        if object_name not in objects:
            raise no_such_key(object_name)
        return FakeResponse(objects[object_name])

    def put_object(
        self,
        bucket_name: str,
        object_name: str,
        data: io.BytesIO,
        length: int,
        content_type: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
    ) -> None:
        self.put_calls.append(
            {"object_name": object_name, "metadata": metadata}
        )
        self.buckets[bucket_name][object_name] = data.read(length)

    def list_objects(self, bucket_name: str) -> Iterator[SimpleNamespace]:
        for name in list(self.buckets[bucket_name]):
            yield SimpleNamespace(object_name=name)


@pytest.fixture
def fake_client() -> FakeMinioClient:
    return FakeMinioClient()


@pytest.fixture
def repo(fake_client: FakeMinioClient) -> MinioOrderRepository:
    return MinioOrderRepository(
        "localhost:9000", bucket_name="orders", client=fake_client  # type: ignore[arg-type]
    )


def test_bucket_is_created(
    repo: MinioOrderRepository, fake_client: FakeMinioClient
) -> None:
    assert "orders" in fake_client.buckets


@pytest.mark.asyncio
async def test_save_and_get(
    repo: MinioOrderRepository, fake_client: FakeMinioClient
) -> None:
    order = order_with_items()

    await repo.save(order)
    retrieved = await repo.get(order.number)

    assert retrieved == order
    assert list(fake_client.buckets["orders"]) == [order.number]
    metadata = fake_client.put_calls[0]["metadata"]
    assert metadata["state"] == "cart"


@pytest.mark.asyncio
async def test_get_missing_order(repo: MinioOrderRepository) -> None:
    assert await repo.get("R000000000") is None


@pytest.mark.asyncio
async def test_unchanged_order_is_not_rewritten(
    repo: MinioOrderRepository, fake_client: FakeMinioClient
) -> None:
    order = OrderFactory()

    await repo.save(order)
    await repo.save(order)

    assert len(fake_client.put_calls) == 1


@pytest.mark.asyncio
async def test_other_errors_propagate(
    repo: MinioOrderRepository, fake_client: FakeMinioClient
) -> None:
    error = S3Error(
        code="AccessDenied",
        message="Access denied",
        resource="R1",
        request_id="req",
        host_id="host",
        response=MagicMock(),
    )
    fake_client.get_object = MagicMock(side_effect=error)  # type: ignore[method-assign]

    with pytest.raises(S3Error):
        await repo.get("R1")


@pytest.mark.asyncio
async def test_list_and_usage(repo: MinioOrderRepository) -> None:
    completed: Order = OrderFactory(
        user_id="user-a",
        state=OrderState.COMPLETE,
        completed_at=datetime(2018, 6, 1, tzinfo=timezone.utc),
        order_promotions=[OrderPromotion(promotion_id="promo-foo")],
    )
    cart: Order = OrderFactory(user_id="user-b")
    await repo.save(completed)
    await repo.save(cart)

    assert {o.number for o in await repo.list_all()} == {
        completed.number,
        cart.number,
    }
    assert [o.number for o in await repo.list_for_user("user-a")] == [
        completed.number
    ]
    assert await repo.count_promotion_usage("promo-foo") == 1


@pytest.mark.asyncio
async def test_generate_number_skips_existing(
    repo: MinioOrderRepository,
) -> None:
    number = await repo.generate_number()

    assert number.startswith("R")
    assert len(number) == 10
    assert await repo.get(number) is None
