# Copyright DataStax, Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
# http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


def _abbreviated(items: list[Any], max_shown: int = 5) -> str:
    if len(items) <= max_shown:
        return str(items)
    shown = ", ".join(str(item) for item in items[:max_shown])
    return f"[{shown} ... ({len(items)} total)]"


@dataclass
class OperationResult:
    """
    The result of a write operation.

    Attributes:
        raw_results: the responses from the API. Operations spanning several
            requests (e.g. insert_many, delete_many) have one entry per request.
    """

    raw_results: list[dict[str, Any]]

    def _describe(self, *pieces: str) -> str:
        all_pieces = list(pieces) + ["raw_results=..."]
        return f"{self.__class__.__name__}({', '.join(all_pieces)})"


@dataclass
class CollectionInsertOneResult(OperationResult):
    """The result of an insert_one on a collection: `inserted_id` is the document _id."""

    inserted_id: Any

    def __repr__(self) -> str:
        return self._describe(f"inserted_id={self.inserted_id!r}")


@dataclass
class CollectionInsertManyResult(OperationResult):
    """
    The result of an insert_many on a collection.

    Attributes:
        raw_results: the responses from the API, one per chunk.
        inserted_ids: the _id of all documents written. For unordered
            concurrent insertions the order is not guaranteed to follow
            the input.
    """

    inserted_ids: list[Any]

    def __repr__(self) -> str:
        return self._describe(f"inserted_ids={_abbreviated(self.inserted_ids)}")


@dataclass
class CollectionUpdateResult(OperationResult):
    """
    The result of an update (or replace) operation on a collection.

    Attributes:
        update_info: a summary of the update, with keys "n" (matched count),
            "updatedExisting", "ok", "nModified" and, if an upsert took place,
            "upserted" (the _id of the new document).
    """

    update_info: dict[str, Any]

    def __repr__(self) -> str:
        return self._describe(f"update_info={self.update_info}")


@dataclass
class CollectionDeleteResult(OperationResult):
    """
    The result of a delete operation on a collection.

    Attributes:
        deleted_count: the number of documents deleted, or -1 when unknown
            (as for a delete_all).
    """

    deleted_count: int

    def __repr__(self) -> str:
        return self._describe(f"deleted_count={self.deleted_count}")


@dataclass
class TableInsertOneResult(OperationResult):
    """
    The result of an insert_one on a table.

    Attributes:
        inserted_id: the primary key of the row, as a dictionary.
        inserted_id_tuple: the same primary key as a tuple, in the order
            of the primary key columns.
    """

    inserted_id: dict[str, Any]
    inserted_id_tuple: tuple[Any, ...] = field(default_factory=tuple)

    def __repr__(self) -> str:
        return self._describe(f"inserted_id={self.inserted_id}")


@dataclass
class TableInsertManyResult(OperationResult):
    """
    The result of an insert_many on a table.

    Attributes:
        inserted_ids: the primary keys of the rows written, as dictionaries.
        inserted_id_tuples: the same primary keys, as tuples.
    """

    inserted_ids: list[dict[str, Any]]
    inserted_id_tuples: list[tuple[Any, ...]] = field(default_factory=list)

    def __repr__(self) -> str:
        return self._describe(f"inserted_ids={_abbreviated(self.inserted_ids)}")
