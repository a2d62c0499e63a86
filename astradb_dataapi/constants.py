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

from typing import Any, Dict, Iterable, Optional, Tuple, TypeVar, Union

from astradb_dataapi.settings.defaults import (
    DATA_API_DESTINATION_ASTRA,
    DATA_API_DESTINATION_CASSANDRA,
    DATA_API_DESTINATION_DSE,
    DATA_API_DESTINATION_HCD,
    DATA_API_DESTINATION_OTHERS,
    DATA_API_ENVIRONMENT_DEV,
    DATA_API_ENVIRONMENT_PROD,
    DATA_API_ENVIRONMENT_TEST,
    DATA_API_VERSION_V1,
)
from astradb_dataapi.utils.str_enum import StrEnum

DefaultDocumentType = Dict[str, Any]
DefaultRowType = Dict[str, Any]
ProjectionType = Union[
    Iterable[str], Dict[str, Union[bool, Dict[str, Union[int, Iterable[int]]]]]
]
SortType = Dict[str, Any]
HybridSortType = Dict[str, Any]
FilterType = Dict[str, Any]
UpdateType = Dict[str, Any]
CallerType = Tuple[Optional[str], Optional[str]]

DOC = TypeVar("DOC")
ROW = TypeVar("ROW")


def normalize_optional_projection(
    projection: ProjectionType | None,
) -> dict[str, bool | dict[str, int | Iterable[int]]] | None:
    if projection:
        if isinstance(projection, dict):
            return projection
        else:
            # an iterable over field names is an allow-list projection
            return {field: True for field in projection}
    else:
        return None


class Environment(StrEnum):
    """
    The Astra DB environments. Each one has its own control-plane (DevOps API)
    base URL and its own domain for database API endpoints.
    """

    PROD = DATA_API_ENVIRONMENT_PROD
    DEV = DATA_API_ENVIRONMENT_DEV
    TEST = DATA_API_ENVIRONMENT_TEST


class DataAPIDestination(StrEnum):
    """
    The kind of deployment the Data API runs on: Astra DB, or one of the
    self-deployed flavours.
    """

    ASTRA = DATA_API_DESTINATION_ASTRA
    DSE = DATA_API_DESTINATION_DSE
    HCD = DATA_API_DESTINATION_HCD
    CASSANDRA = DATA_API_DESTINATION_CASSANDRA
    OTHERS = DATA_API_DESTINATION_OTHERS


class APIVersion(StrEnum):
    V1 = DATA_API_VERSION_V1


class ReturnDocument:
    """
    Admitted values for the `return_document` parameter in
    `find_one_and_replace` and `find_one_and_update` collection
    methods.
    """

    def __init__(self) -> None:
        raise NotImplementedError

    BEFORE = "before"
    AFTER = "after"


class SortMode:
    """
    Admitted values for the `sort` parameter in the find methods,
    e.g. `sort={"field": SortMode.ASCENDING}`.
    """

    def __init__(self) -> None:
        raise NotImplementedError

    ASCENDING = 1
    DESCENDING = -1


class VectorMetric:
    """
    Admitted values for the "metric" of vector-enabled collections and of
    vector indexes on tables.
    """

    def __init__(self) -> None:
        raise NotImplementedError

    DOT_PRODUCT = "dot_product"
    EUCLIDEAN = "euclidean"
    COSINE = "cosine"


class TextAnalyzer:
    """
    Names of the built-in text analyzers, for text indexes on tables and
    lexical search on collections. Language-specific analyzers (e.g.
    "english") can be used by name as well.
    """

    def __init__(self) -> None:
        raise NotImplementedError

    STANDARD = "standard"
    SIMPLE = "simple"
    WHITESPACE = "whitespace"
    STOP = "stop"
    LOWERCASE = "lowercase"
    KEYWORD = "keyword"


class CloudProvider(StrEnum):
    AWS = "AWS"
    GCP = "GCP"
    AZURE = "AZURE"
