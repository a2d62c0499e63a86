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

import pytest

from astradb_dataapi.constants import DataAPIDestination, Environment
from astradb_dataapi.settings.defaults import (
    DEFAULT_ASTRA_DB_KEYSPACE,
    DEFAULT_CONNECTION_TIMEOUT_MS,
    DEFAULT_REQUEST_TIMEOUT_MS,
)
from astradb_dataapi.utils.cancellation import CancellationToken
from astradb_dataapi.utils.command_options import (
    CommandOptions,
    HttpClientOptions,
    TimeoutOptions,
    defaultCommandOptions,
    merge_command_options,
)
from astradb_dataapi.utils.unset import _UNSET


class TestCommandOptions:
    @pytest.mark.describe("test of merging no layers yields the defaults")
    def test_commandoptions_defaults(self) -> None:
        merged = merge_command_options()
        assert merged == defaultCommandOptions()
        assert merged.environment == Environment.PROD
        assert merged.destination == DataAPIDestination.ASTRA
        assert merged.keyspace == DEFAULT_ASTRA_DB_KEYSPACE
        assert merged.token is None
        assert merged.timeout_options.request_timeout_ms == DEFAULT_REQUEST_TIMEOUT_MS
        assert merge_command_options(None, _UNSET, None) == merged

    @pytest.mark.describe("test of the most specific layer winning in a merge")
    def test_commandoptions_precedence(self) -> None:
        client_layer = CommandOptions(token="t_client", keyspace="ks_client")
        database_layer = CommandOptions(keyspace="ks_database")
        call_layer = CommandOptions(token="t_call")

        merged = merge_command_options(client_layer, database_layer, call_layer)
        assert merged.token == "t_call"
        assert merged.keyspace == "ks_database"

        # unset and None attributes defer to the layers below
        merged_n = merge_command_options(
            client_layer, CommandOptions(token=None, keyspace=_UNSET)
        )
        assert merged_n.token == "t_client"
        assert merged_n.keyspace == "ks_client"

    @pytest.mark.describe("test of merging being idempotent and not altering inputs")
    def test_commandoptions_idempotence(self) -> None:
        layer = CommandOptions(
            keyspace="ks",
            additional_headers={"h1": "v1"},
            timeout_options=TimeoutOptions(request_timeout_ms=123),
        )
        merged_1 = merge_command_options(layer)
        merged_2 = merge_command_options(layer, layer)
        assert merged_1 == merged_2
        assert merged_1.with_override(layer) == merged_1
        assert layer.additional_headers == {"h1": "v1"}
        assert layer.environment is _UNSET

    @pytest.mark.describe("test of grouped settings merged field by field")
    def test_commandoptions_grouped_settings(self) -> None:
        merged = merge_command_options(
            CommandOptions(
                timeout_options=TimeoutOptions(
                    connection_timeout_ms=11, request_timeout_ms=22
                ),
                http_client_options=HttpClientOptions(use_http2=True),
            ),
            CommandOptions(
                timeout_options=TimeoutOptions(request_timeout_ms=33),
                http_client_options=HttpClientOptions(follow_redirects=False),
            ),
        )
        assert merged.timeout_options.connection_timeout_ms == 11
        assert merged.timeout_options.request_timeout_ms == 33
        assert merged.http_client_options.use_http2 is True
        assert merged.http_client_options.follow_redirects is False

        # a layer without a timeout group leaves it untouched
        assert merge_command_options(
            CommandOptions(keyspace="x")
        ).timeout_options.connection_timeout_ms == DEFAULT_CONNECTION_TIMEOUT_MS

    @pytest.mark.describe("test of headers and redacted names merged across layers")
    def test_commandoptions_header_merging(self) -> None:
        merged = merge_command_options(
            CommandOptions(
                additional_headers={"h1": "v1", "h2": "v2"},
                redacted_header_names=["Secret-One"],
            ),
            CommandOptions(
                additional_headers={"h2": "v2b", "h3": None},
                redacted_header_names={"Secret-Two"},
            ),
        )
        assert merged.additional_headers == {"h1": "v1", "h2": "v2b", "h3": None}
        assert merged.redacted_header_names == {"Secret-One", "Secret-Two"}

    @pytest.mark.describe("test of enum coercion in CommandOptions")
    def test_commandoptions_enum_coercion(self) -> None:
        opts = CommandOptions(environment="DEV", destination="Hcd", api_version="v1")
        assert opts.environment == Environment.DEV
        assert opts.destination == DataAPIDestination.HCD
        with pytest.raises(ValueError):
            CommandOptions(environment="nowhere")

    @pytest.mark.describe("test of CommandOptions repr hiding secrets")
    def test_commandoptions_repr(self) -> None:
        opts = CommandOptions(token="AstraCS:secret", embedding_api_key="sk-secret")
        the_repr = repr(opts)
        assert "secret" not in the_repr
        assert "token=***" in the_repr
        assert repr(CommandOptions()) == "CommandOptions()"

    @pytest.mark.describe("test of cancellation token carried by the options")
    def test_commandoptions_cancellation_token(self) -> None:
        token = CancellationToken()
        merged = merge_command_options(
            CommandOptions(cancellation_token=token), CommandOptions(keyspace="k")
        )
        assert merged.cancellation_token is token
