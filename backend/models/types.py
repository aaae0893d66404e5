"""Shared type definitions for type checking.

Uses NewType for IDs to provide compile-time type safety - prevents mixing
recipient IDs with other string identifiers.

Uses TypeAlias for types that are purely structural.
"""

from typing import NewType, TypeAlias

# ID types using NewType for type safety
RecipientID = NewType("RecipientID", str)

# Structural aliases using TypeAlias
TopicName: TypeAlias = str
TopicList: TypeAlias = list[str]
Cursor: TypeAlias = int  # Offset into the eligible recipient population
