from decimal import Decimal

import pytest

from helpers import FakeGraphQLClient, run, settle
from uniswap_explorer.aggregator import ResultAggregator
from uniswap_explorer.graphql import GraphQLResponse
from uniswap_explorer.metrics import MetricDefinition
from uniswap_explorer.registry import QueryDescriptor
from uniswap_explorer.results import QueryStatus

ENDPOINT = "https://example.invalid/subgraphs/uniswap-v2"


@pytest.fixture
def client():
    return FakeGraphQLClient()


@pytest.fixture
def aggregator(client, registry, metrics):
    return ResultAggregator(client, ENDPOINT, registry, metrics)


def test_results_are_pending_before_completion(aggregator, registry):
    async def scenario():
        aggregator.submit_all()
        await settle()

        for descriptor in registry.list_queries():
            assert aggregator.current_result(descriptor.name).status is QueryStatus.PENDING
        assert aggregator.derive_metric("eth_price_usd") is None
        assert aggregator.derive_metric("dai_price_usd") is None
        assert aggregator.pending_count == len(registry)
        aggregator.close()

    run(scenario())


def test_price_is_derived_once_both_queries_are_ready(aggregator, client, registry,
                                                      eth_price_payload, dai_payload):
    async def scenario():
        aggregator.submit_all()
        await settle()

        client.resolve(registry.get("eth_price"), eth_price_payload)
        await settle()
        assert aggregator.derive_metric("eth_price_usd") == Decimal("1800.12")
        assert aggregator.derive_metric("dai_price_usd") is None

        client.resolve(registry.get("dai_token"), dai_payload)
        await settle()
        price = aggregator.derive_metric("dai_price_usd")
        assert abs(float(price) - 0.990066) < 1e-9
        assert aggregator.derive_metric("dai_price_usd_text") == "0.99"
        assert aggregator.derive_metric("dai_total_liquidity_text") == "82,268,746.91"
        assert aggregator.derive_metric("eth_price_usd_text") == "1,800.12"
        assert aggregator.derive_metric("dai_price_usd") == price
        aggregator.close()

    run(scenario())


def test_empty_rows_leave_metrics_undefined(aggregator, client, registry, eth_price_payload):
    async def scenario():
        aggregator.submit_all()
        await settle()

        client.resolve(registry.get("eth_price"), eth_price_payload)
        client.resolve(registry.get("dai_token"), {"tokens": []})
        client.resolve(registry.get("dai_usdt_swaps"), {"swaps": []})
        await settle()

        assert aggregator.current_result("dai_token").status is QueryStatus.READY
        assert aggregator.derive_metric("dai_price_usd") is None
        assert aggregator.derive_metric("dai_price_usd_text") is None
        assert aggregator.derive_metric("dai_total_liquidity_text") is None
        assert aggregator.derive_metric("latest_swap_time") is None
        assert aggregator.derive_metric("dai_usdt_swaps") == ()
        aggregator.close()

    run(scenario())


def test_failed_query_only_affects_its_dependents(aggregator, client, registry,
                                                  eth_price_payload, dai_payload):
    async def scenario():
        aggregator.submit_all()
        await settle()

        client.respond(registry.get("dai_token"), GraphQLResponse.from_body(
            {"data": None, "errors": [{"message": "indexer unavailable"}]}))
        client.resolve(registry.get("eth_price"), eth_price_payload)
        await settle()

        result = aggregator.current_result("dai_token")
        assert result.status is QueryStatus.FAILED
        assert result.payload is None
        assert "indexer unavailable" in result.error
        assert aggregator.derive_metric("dai_price_usd") is None
        assert aggregator.derive_metric("dai_total_liquidity_text") is None
        assert aggregator.derive_metric("eth_price_usd_text") == "1,800.12"
        aggregator.close()

    run(scenario())


def test_transport_exception_marks_query_failed(aggregator, client, registry):
    async def scenario():
        aggregator.submit_all()
        await settle()

        client.fail(registry.get("eth_price"), ConnectionError("connection reset"))
        await settle()

        result = aggregator.current_result("eth_price")
        assert result.status is QueryStatus.FAILED
        assert "connection reset" in result.error
        assert aggregator.derive_metric("eth_price_usd") is None
        aggregator.close()

    run(scenario())


def test_response_without_data_is_a_failure(aggregator, client, registry):
    async def scenario():
        aggregator.submit_all()
        await settle()

        client.respond(registry.get("eth_price"), GraphQLResponse.from_body({"data": None}))
        await settle()

        assert aggregator.current_result("eth_price").status is QueryStatus.FAILED
        aggregator.close()

    run(scenario())


def test_swap_time_is_formatted_in_display_timezone(aggregator, client, registry, swaps_payload):
    async def scenario():
        aggregator.submit_all()
        await settle()

        client.resolve(registry.get("dai_usdt_swaps"), swaps_payload)
        await settle()

        assert aggregator.derive_metric("latest_swap_time") == "12/31/2020, 7:00:00 PM"
        assert aggregator.derive_metric("latest_swap_date") == "Thu Dec 31 2020"
        rows = aggregator.derive_metric("dai_usdt_swaps")
        assert [row.pair for row in rows] == ["DAI/USDT"]
        aggregator.close()

    run(scenario())


def test_snapshot_is_stable_without_new_completions(aggregator, client, registry,
                                                    eth_price_payload, dai_payload):
    async def scenario():
        aggregator.submit_all()
        await settle()
        client.resolve(registry.get("eth_price"), eth_price_payload)
        client.resolve(registry.get("dai_token"), dai_payload)
        await settle()

        first = aggregator.snapshot()
        second = aggregator.snapshot()
        assert first == second
        assert first is not second
        assert first.is_ready("eth_price", "dai_token")
        assert first.is_loading("dai_weth_pair")
        assert first.value("dai_price_usd_text") == "0.99"
        aggregator.close()

    run(scenario())


def test_submit_twice_issues_one_request(aggregator, client, registry):
    async def scenario():
        descriptor = registry.get("dai_token")
        first = aggregator.submit(descriptor)
        second = aggregator.submit(QueryDescriptor("dai_token", descriptor.document, dict(descriptor.parameters)))
        await settle()

        assert first is second
        assert client.call_count(descriptor) == 1

        client.resolve(descriptor, {"tokens": []})
        await settle()
        assert aggregator.submit(descriptor) is first
        assert client.call_count(descriptor) == 1
        aggregator.close()

    run(scenario())


def test_changed_parameters_reissue_the_query(aggregator, client, registry, dai_payload):
    async def scenario():
        original = registry.get("dai_token")
        first = aggregator.submit(original)
        await settle()

        changed = QueryDescriptor("dai_token", original.document, {"tokenAddress": "0xdeadbeef"})
        second = aggregator.submit(changed)
        await settle()

        assert second is not first
        assert first.released
        assert client.call_count(changed) == 1

        client.resolve(changed, dai_payload)
        await settle()
        assert aggregator.current_result("dai_token").status is QueryStatus.READY
        assert aggregator.derive_metric("dai_total_liquidity_text") == "82,268,746.91"
        aggregator.close()

    run(scenario())


def test_close_releases_pending_subscriptions(aggregator, client, registry):
    notifications = []

    async def scenario():
        aggregator.add_listener(notifications.append)
        subscriptions = aggregator.submit_all()
        await settle()

        aggregator.close()
        await settle()

        assert all(subscription.released for subscription in subscriptions)
        assert all(subscription.done for subscription in subscriptions)
        assert aggregator.current_result("eth_price").status is QueryStatus.PENDING

        # completion delivered after teardown is ignored
        aggregator._complete(subscriptions[0], aggregator._interpret(GraphQLResponse(data={"bundles": []})))
        assert aggregator.current_result("eth_price").status is QueryStatus.PENDING
        assert notifications == []

        with pytest.raises(RuntimeError):
            aggregator.submit(registry.get("eth_price"))

    run(scenario())


def test_listeners_receive_each_recomputation(aggregator, client, registry, eth_price_payload):
    seen = []

    def broken_listener(view_model):
        raise RuntimeError("render failed")

    async def scenario():
        aggregator.add_listener(broken_listener)
        aggregator.add_listener(seen.append)
        aggregator.submit_all()
        await settle()

        client.resolve(registry.get("eth_price"), eth_price_payload)
        await settle()

        assert len(seen) == 1
        assert seen[0].status("eth_price") is QueryStatus.READY
        assert seen[0].value("eth_price_usd") == Decimal("1800.12")
        aggregator.close()

    run(scenario())


def test_wait_returns_when_all_queries_finish(aggregator, client, registry):
    async def scenario():
        aggregator.submit_all()
        await settle()
        assert await aggregator.wait(timeout=0.01) is False

        for descriptor in registry.list_queries():
            client.resolve(descriptor, {})
        assert await aggregator.wait(timeout=1) is True
        assert aggregator.pending_count == 0
        assert aggregator.snapshot().ready_count == len(registry)
        aggregator.close()

    run(scenario())


def test_unknown_names_raise_key_error(aggregator):
    with pytest.raises(KeyError):
        aggregator.current_result("nope")
    with pytest.raises(KeyError):
        aggregator.derive_metric("nope")


def test_metric_depending_on_unregistered_query_is_rejected(client, registry):
    bogus = MetricDefinition("bogus", ("not_registered",), lambda payload: payload)
    with pytest.raises(ValueError):
        ResultAggregator(client, ENDPOINT, registry, [bogus])


def test_metric_errors_are_contained(client, registry):
    def explode(payload):
        return payload["missing"]

    async def scenario():
        aggregator = ResultAggregator(client, ENDPOINT, registry,
                                      [MetricDefinition("explodes", ("eth_price",), explode)])
        aggregator.submit_all()
        await settle()
        client.resolve(registry.get("eth_price"), {"bundles": []})
        await settle()

        assert aggregator.derive_metric("explodes") is None
        aggregator.close()

    run(scenario())


def test_wrong_payload_shape_does_not_break_recomputation(client, registry):
    seen = []

    def eth_price_from_row(payload):
        return payload["bundles"][0].get("ethPrice")

    async def scenario():
        aggregator = ResultAggregator(client, ENDPOINT, registry,
                                      [MetricDefinition("eth_price_raw", ("eth_price",), eth_price_from_row)])
        aggregator.add_listener(seen.append)
        subscriptions = aggregator.submit_all()
        await settle()

        client.resolve(registry.get("eth_price"), {"bundles": ["1800.12"]})
        await settle()

        assert aggregator.derive_metric("eth_price_raw") is None
        assert aggregator.snapshot().value("eth_price_raw") is None
        assert len(seen) == 1
        assert seen[0].status("eth_price") is QueryStatus.READY
        eth_task = subscriptions[0].task
        assert eth_task.done() and eth_task.exception() is None
        aggregator.close()

    run(scenario())
