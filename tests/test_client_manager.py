"""Tests for client repository resolution."""

import uuid
from unittest.mock import Mock

import pytest

from blob_manager.client_manager import ClientManager
from blob_manager.constants import CLIENT_ACCOUNTS_TABLE
from blob_manager.errors import ErrorKind
from blob_manager.models import ContainersInfo, RepositoryInfo, RequestOptions
from blob_manager.storage.memory import MemoryTableStore
from blob_manager.storage_models import QueryResult
from tests.fixtures.accounts import (
    CLIENT_ID,
    CLIENT_KEY,
    MOVIE_STORE,
    PICTURE_STORE,
    client_entity,
    container_entity,
)


def _failed(status_code=503):
    return QueryResult(is_successful=False, status_code=status_code, error="service down")


class TestGetRepositoryInfo:
    """Test resolving a client key to its repository."""

    def test_resolves_client_and_containers(self, client_manager):
        error, info = client_manager.get_repository_info()

        assert error is None
        assert isinstance(info, RepositoryInfo)
        assert info.client_id == CLIENT_ID
        assert info.client_key == CLIENT_KEY
        assert info.client_name == "Squid"
        assert info.movie_container.media_store == MOVIE_STORE
        assert info.movie_container.container_id == f"{CLIENT_ID}_mov"
        assert info.picture_container.media_store == PICTURE_STORE

    def test_callback_receives_result(self, client_manager):
        cb = Mock()
        outcome = client_manager.get_repository_info(cb)

        cb.assert_called_once_with(None, outcome.result)

    def test_callback_only_matches_empty_options(self, client_manager):
        """op(cb) behaves exactly like op({}, cb)."""
        cb_only, cb_with_options = Mock(), Mock()
        client_manager.get_repository_info(cb_only)
        client_manager.get_repository_info({}, cb_with_options)

        assert cb_only.call_args == cb_with_options.call_args

    def test_unknown_client_key_is_404_without_container_lookup(self, table_store, settings):
        store = Mock(wraps=table_store)
        manager = ClientManager(str(uuid.uuid4()), store, settings)

        error, info = manager.get_repository_info()

        assert info is None
        assert error.kind == ErrorKind.NOT_FOUND
        assert error.status_code == 404
        assert error.message == ClientManager.MESSAGE["NO_CLIENT_FOR_CLIENT_KEY"]
        assert store.query.call_count == 1

    def test_query_failure_propagates_status(self, settings):
        store = Mock()
        store.query.return_value = _failed(503)
        manager = ClientManager(CLIENT_KEY, store, settings)

        error, _ = manager.get_repository_info()

        assert error.kind == ErrorKind.QUERY_FAILED
        assert error.status_code == 503
        assert error.message == ClientManager.MESSAGE["CLIENT_QUERY_FAILED"]
        assert error.err == "service down"

    def test_first_record_wins(self, settings):
        store = MemoryTableStore({
            CLIENT_ACCOUNTS_TABLE: [
                client_entity(client_id="1", name="First"),
                client_entity(client_id="2", name="Second"),
                container_entity("1_mov", "first-mov"),
                container_entity("2_mov", "second-mov"),
            ]
        })
        manager = ClientManager(CLIENT_KEY, store, settings)

        _, info = manager.get_repository_info()

        assert info.client_id == "1"
        assert info.movie_container.media_store == "first-mov"

    def test_container_errors_propagate(self, settings):
        store = MemoryTableStore({CLIENT_ACCOUNTS_TABLE: [client_entity()]})
        manager = ClientManager(CLIENT_KEY, store, settings)

        error, info = manager.get_repository_info()

        assert info is None
        assert error.kind == ErrorKind.NOT_FOUND
        assert error.message == ClientManager.MESSAGE["NO_CONTAINER_FOR_CLIENT_ID"]

    def test_client_key_queried_as_guid(self, settings):
        store = Mock()
        store.query.return_value = QueryResult(entries=[])
        ClientManager(CLIENT_KEY, store, settings).get_repository_info()

        table, query, _ = store.query.call_args.args
        assert table == CLIENT_ACCOUNTS_TABLE
        assert query.partition_key == settings.data_partition
        assert query.conditions[0].name == "ClientKey"
        assert query.conditions[0].value == uuid.UUID(CLIENT_KEY)

    def test_non_guid_client_key_queried_as_string(self, settings):
        store = Mock()
        store.query.return_value = QueryResult(entries=[])
        ClientManager("legacy-key", store, settings).get_repository_info()

        _, query, _ = store.query.call_args.args
        assert query.conditions[0].value == "legacy-key"

    def test_options_forwarded_to_backend(self, table_store, settings):
        store = Mock(wraps=table_store)
        manager = ClientManager(CLIENT_KEY, store, settings)

        manager.get_repository_info({"timeoutIntervalInMs": 1500})

        for call in store.query.call_args_list:
            options = call.args[2]
            assert isinstance(options, RequestOptions)
            assert options.timeout_interval_in_ms == 1500

    def test_default_options_fill_unset_values(self, table_store):
        from blob_manager.config import BlobManagerSettings

        settings = BlobManagerSettings(
            provider="memory",
            default_options=RequestOptions(maximum_execution_time_in_ms=30000),
        )
        store = Mock(wraps=table_store)
        ClientManager(CLIENT_KEY, store, settings).get_repository_info()

        options = store.query.call_args.args[2]
        assert options.maximum_execution_time_in_ms == 30000

    def test_malformed_client_record_is_query_failure(self, settings):
        entity = client_entity()
        del entity["ClientKey"]
        store = Mock()
        store.query.return_value = QueryResult(entries=[entity])
        cb = Mock()

        error, info = ClientManager(CLIENT_KEY, store, settings).get_repository_info(cb)

        assert info is None
        assert error.kind == ErrorKind.QUERY_FAILED
        assert error.message == ClientManager.MESSAGE["INVALID_CLIENT_RECORD"]
        assert isinstance(error.err, KeyError)
        cb.assert_called_once_with(error, None)

    def test_invalid_option_type_reported_to_callback(self, table_store, settings):
        store = Mock(wraps=table_store)
        cb = Mock()

        error, info = ClientManager(CLIENT_KEY, store, settings).get_repository_info(
            {"timeoutIntervalInMs": "soon"}, cb
        )

        assert info is None
        assert error.kind == ErrorKind.INVALID_OPTIONS
        assert error.status_code == 400
        cb.assert_called_once_with(error, None)
        store.query.assert_not_called()

    def test_fractional_timeout_accepted(self, table_store, settings):
        store = Mock(wraps=table_store)

        error, _ = ClientManager(CLIENT_KEY, store, settings).get_repository_info(
            {"timeoutIntervalInMs": 1500.5}
        )

        assert error is None
        options = store.query.call_args.args[2]
        assert options.timeout_interval_in_ms == 1500.5
        assert options.to_sdk_kwargs()["read_timeout"] == pytest.approx(1.5005)


class TestGetContainersInfo:
    """Test the container lookup."""

    def test_movie_only(self, settings):
        """Rows for 123_mov only give a movie container and no picture key."""
        store = MemoryTableStore({
            CLIENT_ACCOUNTS_TABLE: [container_entity("123_mov", "store-mov", cota=0, current_size=42)]
        })
        manager = ClientManager(CLIENT_KEY, store, settings)
        cb = Mock()

        error, containers = manager.get_containers_info("123", cb)

        assert error is None
        cb.assert_called_once_with(None, containers)
        dumped = containers.model_dump(by_alias=True, exclude_none=True)
        assert dumped == {
            "movieContainer": {
                "containerID": "123_mov",
                "mediaStore": "store-mov",
                "cota": 0,
                "currentSize": 42,
            }
        }

    def test_both_containers(self, client_manager):
        error, containers = client_manager.get_containers_info(CLIENT_ID)

        assert error is None
        assert containers.movie_container.media_store == MOVIE_STORE
        assert containers.picture_container.media_store == PICTURE_STORE

    def test_no_rows_is_404(self, client_manager):
        error, containers = client_manager.get_containers_info("999")

        assert containers is None
        assert error.kind == ErrorKind.NOT_FOUND
        assert error.status_code == 404
        assert error.err is None

    def test_query_failure(self, settings):
        store = Mock()
        store.query.return_value = _failed(500)
        manager = ClientManager(CLIENT_KEY, store, settings)

        error, _ = manager.get_containers_info(CLIENT_ID)

        assert error.kind == ErrorKind.QUERY_FAILED
        assert error.status_code == 500
        assert error.message == ClientManager.MESSAGE["CONTAINER_QUERY_FAILED"]

    def test_query_uses_both_row_keys(self, settings):
        store = Mock()
        store.query.return_value = QueryResult(entries=[])
        ClientManager(CLIENT_KEY, store, settings).get_containers_info("77")

        _, query, _ = store.query.call_args.args
        assert query.partition_key == settings.container_partition
        assert query.operator == "or"
        assert [c.value for c in query.conditions] == ["77_mov", "77_pic"]

    def test_missing_table_is_query_failure(self, settings):
        manager = ClientManager(CLIENT_KEY, MemoryTableStore(), settings)

        error, _ = manager.get_containers_info(CLIENT_ID)

        assert error.kind == ErrorKind.QUERY_FAILED
        assert error.status_code == 404

    def test_container_record_without_store_is_query_failure(self, settings):
        entity = container_entity("123_mov", "store-mov")
        del entity["MediaStore"]
        store = MemoryTableStore({CLIENT_ACCOUNTS_TABLE: [entity]})
        cb = Mock()

        error, containers = ClientManager(CLIENT_KEY, store, settings).get_containers_info("123", cb)

        assert containers is None
        assert error.kind == ErrorKind.QUERY_FAILED
        assert error.message == ClientManager.MESSAGE["INVALID_CONTAINER_RECORD"]
        cb.assert_called_once_with(error, None)

    def test_container_record_with_bad_size_is_query_failure(self, settings):
        store = MemoryTableStore({
            CLIENT_ACCOUNTS_TABLE: [container_entity("123_pic", "store-pic", current_size="lots")]
        })

        error, _ = ClientManager(CLIENT_KEY, store, settings).get_containers_info("123")

        assert error.kind == ErrorKind.QUERY_FAILED
        assert error.message == ClientManager.MESSAGE["INVALID_CONTAINER_RECORD"]

    def test_invalid_options_reported_to_callback(self, client_manager):
        cb = Mock()

        error, _ = client_manager.get_containers_info(CLIENT_ID, {"maximumExecutionTimeInMs": []}, cb)

        assert error.kind == ErrorKind.INVALID_OPTIONS
        cb.assert_called_once_with(error, None)


class TestMappers:
    """Test table record conversion."""

    def test_map_repository_info(self):
        info = ClientManager.map_repository_info(client_entity(client_key=uuid.UUID(CLIENT_KEY)))

        assert info.client_id == CLIENT_ID
        assert info.client_key == CLIENT_KEY
        assert info.movie_container is None

    def test_map_missing_entities(self):
        assert ClientManager.map_repository_info(None) is None
        assert ClientManager.map_container_info(None) is None

    def test_map_container_info_defaults(self):
        entity = container_entity("1_pic", "store")
        del entity["Cota"]
        entity["CurrentSize"] = None

        info = ClientManager.map_container_info(entity)

        assert info.cota == 0
        assert info.current_size == 0

    def test_repository_info_is_immutable(self):
        info = ClientManager.map_repository_info(client_entity())

        with pytest.raises(Exception):
            info.client_name = "Changed"

    def test_merge_keeps_original(self):
        info = ClientManager.map_repository_info(client_entity())
        containers = ContainersInfo(
            movie_container=ClientManager.map_container_info(container_entity("123_mov", "m"))
        )

        merged = info.with_containers(containers)

        assert merged.movie_container.media_store == "m"
        assert merged.picture_container is None
        assert info.movie_container is None
