"""
Unit tests for ScanValve and QueryValve.

These tests verify:
1. The projection sent to DynamoDB is exactly preloaded ∪ requested keys
2. with_* methods return new valves and leave the receiver untouched
3. Exactly one remote call per fetch, with the configured limit
4. Remote failures surface as FetchError (an OSError) and are not retried
5. The client is closed once per fetch, including on failure
"""

import logging

import pytest

from dynavalve import (
    ClientCredentials,
    FetchError,
    QueryValve,
    ScanValve,
    ThrottlingError,
    ValidationError,
    between,
    equal_to,
    greater_or_equal,
)


def _projected(kwargs: dict) -> set[str]:
    """Attribute names behind the ProjectionExpression placeholders."""
    placeholders = [p.strip() for p in kwargs["ProjectionExpression"].split(",")]
    return {kwargs["ExpressionAttributeNames"][p] for p in placeholders}


@pytest.mark.unit
class TestScanValveProjection:
    """Test how the projected attribute set is built."""

    def test_projection_is_union_of_preloaded_and_keys(self, mock_client, mock_credentials):
        valve = ScanValve().with_attribute_to_get("a", "b")

        valve.fetch(mock_credentials, "items", {}, ["b", "c"])

        kwargs = mock_client.scan.call_args.kwargs
        assert _projected(kwargs) == {"a", "b", "c"}
        # Duplicates collapse: three placeholders, not four
        assert len(kwargs["ProjectionExpression"].split(",")) == 3

    def test_no_attributes_means_no_projection(self, mock_client, mock_credentials):
        ScanValve().fetch(mock_credentials, "items")

        kwargs = mock_client.scan.call_args.kwargs
        assert "ProjectionExpression" not in kwargs
        assert "ExpressionAttributeNames" not in kwargs

    def test_single_string_key_is_one_attribute(self, mock_client, mock_credentials):
        ScanValve().fetch(mock_credentials, "items", {}, "email")

        assert _projected(mock_client.scan.call_args.kwargs) == {"email"}

    def test_reserved_words_go_through_placeholders(self, mock_client, mock_credentials):
        ScanValve().fetch(mock_credentials, "items", {}, ["name", "status"])

        kwargs = mock_client.scan.call_args.kwargs
        assert "name" not in kwargs["ProjectionExpression"]
        assert _projected(kwargs) == {"name", "status"}


@pytest.mark.unit
class TestScanValveRequest:
    """Test the request sent by fetch()."""

    def test_default_limit_is_100(self, mock_client, mock_credentials):
        ScanValve().fetch(mock_credentials, "items")

        kwargs = mock_client.scan.call_args.kwargs
        assert kwargs["TableName"] == "items"
        assert kwargs["Limit"] == 100
        assert kwargs["ReturnConsumedCapacity"] == "TOTAL"
        assert "ExclusiveStartKey" not in kwargs

    def test_with_limit_is_sent(self, mock_client, mock_credentials):
        ScanValve().with_limit(7).fetch(mock_credentials, "items")

        assert mock_client.scan.call_args.kwargs["Limit"] == 7

    def test_empty_conditions_mean_unfiltered_scan(self, mock_client, mock_credentials):
        ScanValve().fetch(mock_credentials, "items", {})

        assert "FilterExpression" not in mock_client.scan.call_args.kwargs

    def test_conditions_become_filter_expression(self, mock_client, mock_credentials):
        ScanValve().with_attribute_to_get("id").fetch(
            mock_credentials, "items", {"age": greater_or_equal(18)}
        )

        kwargs = mock_client.scan.call_args.kwargs
        assert "FilterExpression" in kwargs
        assert "age" in kwargs["ExpressionAttributeNames"].values()
        assert "id" in kwargs["ExpressionAttributeNames"].values()
        assert {"N": "18"} in kwargs["ExpressionAttributeValues"].values()

    def test_exactly_one_remote_call(self, mock_client, mock_credentials):
        ScanValve().fetch(mock_credentials, "items")

        assert mock_client.scan.call_count == 1

    def test_items_are_deserialized_in_order(self, mock_client, mock_credentials):
        mock_client.scan.return_value = {
            "Items": [
                {"id": {"S": "z"}, "n": {"N": "1"}},
                {"id": {"S": "a"}, "n": {"N": "2.5"}},
            ],
            "Count": 2,
        }

        dosage = ScanValve().fetch(mock_credentials, "items")

        assert dosage.items() == [{"id": "z", "n": 1}, {"id": "a", "n": 2.5}]
        assert dosage.has_next() is False

    def test_empty_table_name_rejected(self, mock_client, mock_credentials):
        with pytest.raises(ValueError, match="table_name"):
            ScanValve().fetch(mock_credentials, "")
        mock_client.scan.assert_not_called()

    def test_none_credentials_rejected(self):
        with pytest.raises(ValueError, match="credentials"):
            ScanValve().fetch(None, "items")


@pytest.mark.unit
class TestScanValveImmutability:
    """Test that with_* methods never mutate the receiver."""

    def test_with_limit_returns_new_valve(self):
        original = ScanValve()
        changed = original.with_limit(5)

        assert changed is not original
        assert original.limit == 100
        assert changed.limit == 5

    def test_with_attribute_to_get_returns_new_valve(self):
        original = ScanValve().with_attribute_to_get("a")
        changed = original.with_attribute_to_get("b", "c")

        assert original.attributes == frozenset({"a"})
        assert changed.attributes == frozenset({"a", "b", "c"})

    def test_with_attribute_to_get_keeps_limit(self):
        valve = ScanValve().with_limit(3).with_attribute_to_get("x")
        assert valve.limit == 3

    def test_with_limit_keeps_attributes(self):
        valve = ScanValve().with_attribute_to_get("x").with_limit(3)
        assert valve.attributes == frozenset({"x"})

    def test_original_behaviour_unchanged(self, mock_client, mock_credentials):
        original = ScanValve()
        original.with_limit(5).with_attribute_to_get("a")

        original.fetch(mock_credentials, "items")

        kwargs = mock_client.scan.call_args.kwargs
        assert kwargs["Limit"] == 100
        assert "ProjectionExpression" not in kwargs

    def test_duplicate_attribute_collapses(self):
        valve = ScanValve().with_attribute_to_get("a").with_attribute_to_get("a")
        assert valve.attributes == frozenset({"a"})

    def test_valve_is_frozen(self):
        valve = ScanValve()
        with pytest.raises(AttributeError):
            valve.limit = 10  # type: ignore[misc]

    def test_equal_valves(self):
        assert ScanValve().with_limit(5) == ScanValve(limit=5)
        assert hash(ScanValve().with_attribute_to_get("a")) == hash(
            ScanValve(attributes=frozenset({"a"}))
        )

    @pytest.mark.parametrize("limit", [0, -1])
    def test_non_positive_limit_rejected(self, limit):
        with pytest.raises(ValueError, match="limit must be positive"):
            ScanValve().with_limit(limit)

    def test_with_attribute_to_get_requires_a_name(self):
        with pytest.raises(ValueError):
            ScanValve().with_attribute_to_get()


@pytest.mark.unit
class TestScanValveFailures:
    """Test failure mapping and client release."""

    def test_client_error_surfaces_as_fetch_error(
        self, mock_client, mock_credentials, throttling_error
    ):
        mock_client.scan.side_effect = throttling_error

        with pytest.raises(ThrottlingError) as exc_info:
            ScanValve().fetch(mock_credentials, "items")

        error = exc_info.value
        assert isinstance(error, FetchError)
        assert isinstance(error, OSError)
        assert error.original_error is throttling_error
        # The core never retries
        assert mock_client.scan.call_count == 1

    def test_client_closed_after_success(self, mock_client, mock_credentials):
        ScanValve().fetch(mock_credentials, "items")

        mock_client.close.assert_called_once_with()

    def test_client_closed_after_failure(self, mock_client, mock_credentials, validation_error):
        mock_client.scan.side_effect = validation_error

        with pytest.raises(ValidationError):
            ScanValve().fetch(mock_credentials, "items")

        mock_client.close.assert_called_once_with()

    def test_close_failure_does_not_mask_original(
        self, mock_client, mock_credentials, throttling_error
    ):
        mock_client.scan.side_effect = throttling_error
        mock_client.close.side_effect = RuntimeError("close failed")

        with pytest.raises(ThrottlingError):
            ScanValve().fetch(mock_credentials, "items")

    def test_fresh_client_per_fetch(self, single_page_store):
        credentials = single_page_store.credentials()
        valve = ScanValve()

        valve.fetch(credentials, "items")
        valve.fetch(credentials, "items")

        assert len(single_page_store.clients) == 2
        assert single_page_store.closed == 2


@pytest.mark.unit
class TestScanValveLogging:
    """Test the log record emitted per remote call."""

    def test_one_info_record_per_fetch(self, mock_client, mock_credentials, caplog):
        mock_client.scan.return_value = {
            "Items": [{"id": {"S": "a"}}],
            "Count": 1,
            "ConsumedCapacity": {"TableName": "items", "CapacityUnits": 0.5},
        }
        caplog.set_level(logging.INFO, logger="dynavalve")

        ScanValve().fetch(mock_credentials, "items", {"age": greater_or_equal(18)})

        records = [r for r in caplog.records if getattr(r, "operation", None) == "fetch"]
        assert len(records) == 1
        record = records[0]
        assert record.levelno == logging.INFO
        assert record.table == "items"
        assert record.count == 1
        assert record.capacity == 0.5
        assert "age" in record.filter
        assert record.elapsed_ms >= 0
        assert "(0.5 units)" in record.getMessage()


@pytest.mark.unit
class TestQueryValve:
    """Test QueryValve request building."""

    def test_query_sends_key_condition(self, mock_client, mock_credentials):
        QueryValve().fetch(mock_credentials, "messages", {"room": equal_to("general")})

        kwargs = mock_client.query.call_args.kwargs
        assert kwargs["TableName"] == "messages"
        assert "KeyConditionExpression" in kwargs
        assert "room" in kwargs["ExpressionAttributeNames"].values()
        assert {"S": "general"} in kwargs["ExpressionAttributeValues"].values()
        assert kwargs["ScanIndexForward"] is True
        mock_client.scan.assert_not_called()

    def test_query_options(self, mock_client, mock_credentials):
        valve = (
            QueryValve()
            .with_index_name("by_user")
            .with_consistent_read()
            .with_scan_index_forward(False)
            .with_limit(10)
        )

        valve.fetch(
            mock_credentials,
            "messages",
            {"user": equal_to("u1"), "ts": between("2024-01-01", "2024-12-31")},
            ["content"],
        )

        kwargs = mock_client.query.call_args.kwargs
        assert kwargs["IndexName"] == "by_user"
        assert kwargs["ConsistentRead"] is True
        assert kwargs["ScanIndexForward"] is False
        assert kwargs["Limit"] == 10
        assert _projected(kwargs) == {"content"}

    def test_query_without_conditions_rejected(self, mock_client, mock_credentials):
        with pytest.raises(ValueError, match="partition key"):
            QueryValve().fetch(mock_credentials, "messages", {})
        mock_client.query.assert_not_called()

    def test_query_options_do_not_mutate(self):
        original = QueryValve()
        original.with_index_name("idx").with_consistent_read().with_scan_index_forward(False)

        assert original.index_name is None
        assert original.consistent_read is False
        assert original.scan_index_forward is True

    def test_query_client_closed_on_failure(self, mock_client, throttling_error):
        mock_client.query.side_effect = throttling_error

        with pytest.raises(ThrottlingError):
            QueryValve().fetch(
                ClientCredentials(lambda: mock_client), "messages", {"room": equal_to("x")}
            )

        mock_client.close.assert_called_once_with()
