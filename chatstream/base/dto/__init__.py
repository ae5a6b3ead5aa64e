"""Pydantic DTOs for pushed frame payloads."""

from .frame_payload import ChunkPayloadDTO, ErrorDetailDTO, ErrorPayloadDTO

__all__ = ["ChunkPayloadDTO", "ErrorDetailDTO", "ErrorPayloadDTO"]
