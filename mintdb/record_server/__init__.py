"""
MintDB Record Server - durable store for minted asset records.

This package implements a small record store built on:
- A durable identifier counter (region 0)
- A durable map from identifier to encoded record (region 1)
- Stateless handlers for create, read, update and delete
- A FastAPI surface over those handlers

Architecture:
    ┌─────────────┐     ┌─────────────┐     ┌─────────────────┐
    │   Client    │────▶│  HTTP API   │────▶│  RecordService  │
    └─────────────┘     └─────────────┘     └────────┬────────┘
                                                     │
                                  ┌──────────────────┴──────────┐
                                  ▼                             ▼
                           ┌─────────────┐               ┌─────────────┐
                           │ IdAllocator │               │ RecordStore │
                           └──────┬──────┘               └──────┬──────┘
                                  ▼                             ▼
                           ┌─────────────────────────────────────────┐
                           │   StorageBackend (SQLite / in-memory)   │
                           └─────────────────────────────────────────┘

Invariants:
    - Identifiers are issued once and never recycled
    - The counter is strictly greater than every issued identifier
    - Each handler performs at most one record mutation, as its last step
    - created_at never changes; updated_at >= created_at when present

How to change safely:
    - The record encoding is persisted; add fields with defaults only
    - Never reset or rewind the counter region
    - Region numbers are part of the on-disk layout
"""

from ._version import __version__

__all__ = ["__version__"]
