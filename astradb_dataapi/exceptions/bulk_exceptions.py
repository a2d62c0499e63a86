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
from typing import Any, Sequence

from astradb_dataapi.exceptions.data_api_exceptions import DataAPIException


@dataclass
class InsertManyException(DataAPIException):
    """
    An exception occurring within an insert_many, an operation that spans
    several requests (one per chunk). It describes both the root error(s)
    and the portion of the input that was written successfully.

    With concurrent, unordered insertions more than one chunk may fail, hence
    more than one root exception can be collected. With ordered insertions
    the operation stops at the first failing chunk.

    Attributes:
        inserted_ids: the IDs (documents) or primary keys (rows) that have
            been successfully inserted.
        exceptions: the root exceptions leading to this error.
        succeeded_chunks: indices (0-based, in input order) of the chunks
            fully accepted by the API.
        failed_chunks: indices of the chunks which failed, entirely or in part.
            Chunks never dispatched (after a cancellation or an ordered
            failure) are listed in neither.
    """

    inserted_ids: list[Any]
    exceptions: Sequence[Exception]
    succeeded_chunks: list[int] = field(default_factory=list)
    failed_chunks: list[int] = field(default_factory=list)

    def __str__(self) -> str:
        num_ids = len(self.inserted_ids)
        if self.exceptions:
            excs_strs = [str(exc) for exc in self.exceptions[:8]]
            exc_desc = ", ".join(excs_strs)
            if len(self.exceptions) > 8:
                exc_desc += " ... (more exceptions)"
            return (
                f"{self.__class__.__name__}({exc_desc} "
                f"[with {num_ids} inserted ids; failed chunks: {self.failed_chunks}])"
            )
        else:
            return f"{self.__class__.__name__}()"


@dataclass
class CollectionInsertManyException(InsertManyException):
    """An insert_many on a collection failed, partially or completely."""

    pass


@dataclass
class TableInsertManyException(InsertManyException):
    """
    An insert_many on a table failed, partially or completely.
    Here, the `inserted_ids` are the primary keys of the rows written,
    each expressed as a dictionary.
    """

    pass
