"""Minio-backed repositories."""

from .order import MinioOrderRepository

__all__ = ["MinioOrderRepository"]
